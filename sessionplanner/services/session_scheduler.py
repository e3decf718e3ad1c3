"""
Application service for planning a series of sessions between two parties.

The service owns the per-request instant: it is read once from the clock and
threaded through every step, so parsing, generation and filtering all agree
on what "now" is.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from pendulum import DateTime

from ..clock import Clock, SystemClock
from ..config import AppConfig
from ..domain.conflict_detector import ConflictDetector
from ..domain.models import (
    AlternativeOption,
    ConflictRecord,
    FeasibilityResult,
    ParseResult,
    ProposedSession,
    SchedulingPlan,
    SchedulingRequest,
    ValidationResult,
)
from ..domain.preference_parser import PreferenceParser
from ..domain.proposal_builder import ProposalBuilder
from ..domain.slot_generator import SlotGenerator
from .alternatives import AlternativeOptionGenerator
from .feasibility import HEADROOM_FACTOR, FeasibilityValidator
from .mutual_availability import CommitmentStoreProtocol, MutualAvailabilityFinder
from .slot_finder import AvailableSlotFinder

logger = logging.getLogger(__name__)


class SessionSchedulingService:
    """
    Orchestrates preference parsing, slot search and proposal building.
    """

    def __init__(
        self,
        store: CommitmentStoreProtocol,
        clock: Clock | None = None,
        parser: PreferenceParser | None = None,
        finder: MutualAvailabilityFinder | None = None,
        builder: ProposalBuilder | None = None,
        detector: ConflictDetector | None = None,
        slot_finder: AvailableSlotFinder | None = None,
    ) -> None:
        self._store = store
        self._clock = clock or SystemClock()
        self._parser = parser or PreferenceParser()
        self._finder = finder or MutualAvailabilityFinder(store, self._parser, self._clock)
        self._builder = builder or ProposalBuilder()
        self._detector = detector or ConflictDetector()
        self._validator = FeasibilityValidator(self._finder)
        self._alternatives = AlternativeOptionGenerator(self._finder)
        self._slot_finder = slot_finder or AvailableSlotFinder(
            store, SlotGenerator(self._parser), self._detector, self._clock
        )

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        store: CommitmentStoreProtocol,
        clock: Clock | None = None,
    ) -> "SessionSchedulingService":
        """Build a service with the engine settings of a configuration."""
        clock = clock or SystemClock(config.timezone)
        parser = PreferenceParser(slot_spacing_minutes=config.engine.slot_spacing_minutes)
        finder = MutualAvailabilityFinder(
            store,
            parser,
            clock,
            lead_time_hours=config.engine.lead_time_hours,
            min_search_weeks=config.engine.min_search_weeks,
            tolerate_minor_conflicts=config.engine.tolerate_minor_conflicts,
        )
        detector = ConflictDetector(buffer_minutes=config.engine.conflict_buffer_minutes)
        generator = SlotGenerator(parser, max_weeks=config.engine.reschedule_search_weeks)
        return cls(
            store,
            clock=clock,
            parser=parser,
            finder=finder,
            detector=detector,
            slot_finder=AvailableSlotFinder(store, generator, detector, clock),
        )

    def build_request(
        self,
        party_a_id: str,
        party_b_id: str,
        preferred_days: Sequence[str] | None,
        preferred_times: Sequence[str] | None,
        **options,
    ) -> ParseResult[SchedulingRequest]:
        """
        Build a request from raw preference strings.

        Extra keyword arguments are passed on to ``SchedulingRequest``.
        Skipped preference entries are reported as warnings.
        """
        days = self._parser.parse_weekdays(preferred_days)
        windows = self._parser.parse_time_windows(preferred_times)

        request = SchedulingRequest(
            party_a_id=party_a_id,
            party_b_id=party_b_id,
            weekdays=days.value,
            time_windows=windows.value,
            **options,
        )
        return ParseResult(value=request, warnings=days.warnings + windows.warnings)

    def validate_preferences(
        self,
        preferred_days: Sequence[str] | None,
        preferred_times: Sequence[str] | None,
    ) -> ValidationResult:
        """Collect every problem with raw preferences without dropping any."""
        return self._parser.validate(preferred_days, preferred_times)

    async def propose_sessions(
        self,
        request: SchedulingRequest,
        *,
        now: DateTime | None = None,
    ) -> List[ProposedSession]:
        """
        Find mutual slots and turn them into proposals.

        With even distribution the search probes for more slots than needed
        so the spacing pass has something to choose from.
        """
        now = now or self._clock.now()

        logger.info(
            "Generating %d session proposals for %s and %s",
            request.sessions_needed, request.party_a_id, request.party_b_id,
        )

        wanted = request.sessions_needed
        if request.distribute_evenly:
            wanted *= HEADROOM_FACTOR

        slots = await self._finder.find_mutual_slots(
            request.party_a_id,
            request.party_b_id,
            request.weekdays,
            request.time_windows,
            wanted,
            request.session_duration_minutes,
            now=now,
        )

        if not slots:
            logger.warning("No available slots found for the given preferences")
            return []

        return self._builder.build_proposals(slots, request)

    async def check_feasibility(
        self,
        request: SchedulingRequest,
        *,
        now: DateTime | None = None,
        preference_errors: Sequence[str] = (),
    ) -> FeasibilityResult:
        now = now or self._clock.now()
        return await self._validator.validate(request, now=now, preference_errors=preference_errors)

    async def suggest_alternatives(
        self,
        request: SchedulingRequest,
        *,
        now: DateTime | None = None,
    ) -> List[AlternativeOption]:
        now = now or self._clock.now()
        return await self._alternatives.generate(request, now=now)

    async def plan(
        self,
        request: SchedulingRequest,
        *,
        now: DateTime | None = None,
        warnings: Sequence[str] = (),
    ) -> SchedulingPlan:
        """
        Propose sessions and, when there are too few, explain and offer alternatives.
        """
        now = now or self._clock.now()

        proposals = await self.propose_sessions(request, now=now)
        plan = SchedulingPlan(request=request, proposals=proposals, warnings=list(warnings))

        if not plan.is_complete:
            plan.feasibility = await self.check_feasibility(
                request, now=now, preference_errors=warnings
            )
            plan.alternatives = await self.suggest_alternatives(request, now=now)

        return plan

    async def list_conflicts(
        self,
        owner_id: str,
        range_start: DateTime,
        range_end: DateTime,
    ) -> List[ConflictRecord]:
        """List a party's active commitments in a date range."""
        commitments = await self._store.get_active_commitments(owner_id, range_start, range_end)
        conflicts = self._detector.list_conflicts(commitments, range_start, range_end)
        logger.info("Found %d conflicts for %s in date range", len(conflicts), owner_id)
        return conflicts

    async def find_reschedule_slots(
        self,
        party_a_id: str,
        party_b_id: str,
        days_of_week: Sequence[int],
        time_ranges: Sequence[str] | None,
        duration_minutes: int,
        count: int,
        *,
        now: DateTime | None = None,
    ) -> ParseResult[List[DateTime]]:
        """Find new starts for a session that has to be moved."""
        now = now or self._clock.now()
        return await self._slot_finder.find_available_slots(
            party_a_id,
            party_b_id,
            days_of_week,
            time_ranges,
            duration_minutes,
            count,
            now=now,
        )

    async def is_slot_available(
        self,
        party_a_id: str,
        party_b_id: str,
        start: DateTime,
        duration_minutes: int,
        *,
        exclude_id: str | None = None,
    ) -> bool:
        return await self._slot_finder.is_slot_available(
            party_a_id, party_b_id, start, duration_minutes, exclude_id=exclude_id
        )
