"""
Slot search for reschedule flows.

Works on plain day numbers and time strings and checks candidates with the
buffered conflict rules, so moved sessions never end up back to back.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from pendulum import DateTime

from ..clock import Clock, SystemClock
from ..domain.conflict_detector import ConflictDetector
from ..domain.models import ParseResult
from ..domain.slot_generator import SlotGenerator
from .mutual_availability import CommitmentStoreProtocol, fetch_both

logger = logging.getLogger(__name__)


class AvailableSlotFinder:
    """Finds and checks slots for an existing pair of parties."""

    def __init__(
        self,
        store: CommitmentStoreProtocol,
        generator: SlotGenerator | None = None,
        detector: ConflictDetector | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._store = store
        self._generator = generator or SlotGenerator()
        self._detector = detector or ConflictDetector()
        self._clock = clock or SystemClock()

    async def find_available_slots(
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
        """
        Return up to ``count`` of the earliest starts free for both parties.

        Args:
            party_a_id: First party
            party_b_id: Second party
            days_of_week: Day numbers, 0=Sunday .. 6=Saturday
            time_ranges: ``"HH:MM-HH:MM"`` strings; business hours when empty
            duration_minutes: Session length
            count: Number of slots wanted
            now: The instant captured for this request
        """
        now = now or self._clock.now()

        logger.info(
            "Finding %d available slots for %s and %s, duration %d min",
            count, party_a_id, party_b_id, duration_minutes,
        )

        candidates = self._generator.generate_for_days(
            days_of_week,
            time_ranges,
            duration_minutes,
            now=now,
        )

        if count <= 0 or not candidates.value:
            return ParseResult(value=[], warnings=candidates.warnings)

        party_a, party_b = await fetch_both(
            self._store,
            party_a_id,
            party_b_id,
            candidates.value[0].subtract(minutes=self._detector.buffer_minutes),
            candidates.value[-1].add(minutes=duration_minutes),
        )

        available: List[DateTime] = []
        for start in candidates.value:
            if self._detector.find_conflict(party_a, start, duration_minutes):
                continue
            if self._detector.find_conflict(party_b, start, duration_minutes):
                continue

            available.append(start)
            logger.debug("Found available slot: %s", start)
            if len(available) >= count:
                break

        logger.info("Found %d available slots out of %d requested", len(available), count)
        return ParseResult(value=available, warnings=candidates.warnings)

    async def is_slot_available(
        self,
        party_a_id: str,
        party_b_id: str,
        start: DateTime,
        duration_minutes: int,
        *,
        exclude_id: str | None = None,
    ) -> bool:
        """
        Check a single proposed start for both parties.

        ``exclude_id`` names the session being moved so it does not collide
        with itself.
        """
        party_a, party_b = await fetch_both(
            self._store,
            party_a_id,
            party_b_id,
            start.subtract(minutes=self._detector.buffer_minutes),
            start.add(minutes=duration_minutes),
        )

        for commitments in (party_a, party_b):
            conflict = self._detector.find_conflict(
                commitments, start, duration_minutes, exclude_id=exclude_id
            )
            if conflict:
                logger.info(
                    "Slot %s blocked by %s (%s)",
                    start, conflict.commitment_id, conflict.severity.name,
                )
                return False

        return True
