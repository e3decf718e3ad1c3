"""
Finding slots that are free for both parties of a scheduling request.

The finder coordinates fetching commitments via a store adapter and
delegates candidate generation and overlap checks to the domain layer.
Depending on a protocol keeps the store mockable in tests.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Protocol, Sequence, Tuple

from pendulum import DateTime

from ..clock import Clock, SystemClock
from ..domain.conflict_detector import ConflictDetector
from ..domain.models import (
    CandidateSlot,
    ConflictRecord,
    ConflictSeverity,
    ExistingCommitment,
    TimeWindow,
    WeekdaySet,
)
from ..domain.preference_parser import PreferenceParser

logger = logging.getLogger(__name__)


class CommitmentStoreProtocol(Protocol):
    """Protocol describing the commitment store behaviour needed by the services."""

    async def get_active_commitments(
        self,
        owner_id: str,
        range_start: DateTime,
        range_end: DateTime,
    ) -> List[ExistingCommitment]:
        """Return the owner's non-cancelled commitments overlapping the range."""


async def fetch_both(
    store: CommitmentStoreProtocol,
    party_a_id: str,
    party_b_id: str,
    range_start: DateTime,
    range_end: DateTime,
) -> Tuple[List[ExistingCommitment], List[ExistingCommitment]]:
    """
    Load both parties' commitments concurrently.

    Both fetches must complete before filtering; a failure in either one
    aborts the whole call.
    """
    party_a, party_b = await asyncio.gather(
        store.get_active_commitments(party_a_id, range_start, range_end),
        store.get_active_commitments(party_b_id, range_start, range_end),
    )
    logger.debug(
        "Loaded %d commitments for %s and %d for %s",
        len(party_a), party_a_id, len(party_b), party_b_id,
    )
    return party_a, party_b


class MutualAvailabilityFinder:
    """
    Produces an ordered list of slots free for both parties.

    Algorithm:
    1. Derive the search horizon from the session count
    2. Generate candidate starts, leaving a lead time after now
    3. Load both parties' commitments spanning the candidates
    4. Walk candidates chronologically, rejecting any overlap
    5. Stop as soon as enough slots are collected
    """

    def __init__(
        self,
        store: CommitmentStoreProtocol,
        parser: PreferenceParser | None = None,
        clock: Clock | None = None,
        *,
        lead_time_hours: int = 2,
        min_search_weeks: int = 4,
        tolerate_minor_conflicts: bool = False,
    ) -> None:
        self._store = store
        self._parser = parser or PreferenceParser()
        self._clock = clock or SystemClock()
        # Strict overlap in this mode, no buffer
        self._detector = ConflictDetector(buffer_minutes=0)
        self.lead_time_hours = lead_time_hours
        self.min_search_weeks = min_search_weeks
        self.tolerate_minor_conflicts = tolerate_minor_conflicts

    def weeks_to_check(self, sessions_needed: int, weekday_count: int) -> int:
        return max(self.min_search_weeks, sessions_needed // max(weekday_count, 1) + 2)

    async def find_mutual_slots(
        self,
        party_a_id: str,
        party_b_id: str,
        weekdays: WeekdaySet,
        time_windows: Sequence[TimeWindow],
        sessions_needed: int,
        duration_minutes: int,
        *,
        now: DateTime | None = None,
    ) -> List[CandidateSlot]:
        """
        Find up to ``sessions_needed`` of the earliest mutually free slots.

        Returning fewer slots than requested is a valid outcome; the caller
        decides whether to widen the search.
        """
        now = now or self._clock.now()

        logger.info(
            "Finding mutual availability for %s and %s, %d sessions needed",
            party_a_id, party_b_id, sessions_needed,
        )

        if sessions_needed <= 0:
            return []

        weeks = self.weeks_to_check(sessions_needed, len(weekdays))
        candidates = self._parser.generate_candidate_starts(
            weekdays,
            time_windows,
            duration_minutes,
            now.add(hours=self.lead_time_hours),
            weeks,
            now=now,
        )

        if not candidates:
            logger.warning("No candidate slots generated for the given preferences")
            return []

        party_a_commitments, party_b_commitments = await fetch_both(
            self._store,
            party_a_id,
            party_b_id,
            candidates[0],
            candidates[-1].add(minutes=duration_minutes),
        )

        available: List[CandidateSlot] = []
        for start in candidates:
            conflicts = self._detector.find_conflicts(
                party_a_commitments, start, duration_minutes
            ) + self._detector.find_conflicts(
                party_b_commitments, start, duration_minutes
            )

            if conflicts and not self._is_tolerable(conflicts):
                logger.debug("Rejected %s: %d conflicts", start, len(conflicts))
                continue

            conflict = min(conflicts, key=lambda c: c.start) if conflicts else None
            available.append(CandidateSlot(start=start, duration_minutes=duration_minutes, conflict=conflict))

            if len(available) >= sessions_needed:
                logger.info(
                    "Found %d available slots (target: %d), stopping search",
                    len(available), sessions_needed,
                )
                break

        if len(available) < sessions_needed:
            logger.warning(
                "Only found %d available slots out of %d requested",
                len(available), sessions_needed,
            )

        return available

    def _is_tolerable(self, conflicts: List[ConflictRecord]) -> bool:
        return self.tolerate_minor_conflicts and all(
            c.severity == ConflictSeverity.MINOR for c in conflicts
        )
