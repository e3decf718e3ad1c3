"""
Turning chosen slots into concrete proposed sessions.
"""

import logging
from typing import List, Sequence

from .models import (
    CandidateSlot,
    ConflictSeverity,
    ProposedSession,
    SchedulingRequest,
    TimeWindow,
    Weekday,
    WeekdaySet,
)

logger = logging.getLogger(__name__)

OFF_PEAK_NOTE = "Outside peak preferred hours"

DAY_PENALTY = 0.3
TIME_PENALTY = 0.3
NOTE_THRESHOLD = 0.8


def confidence_score(
    slot: CandidateSlot,
    weekdays: WeekdaySet,
    windows: Sequence[TimeWindow],
) -> float:
    """Score how well a slot matches the stated preferences, in [0, 1]."""
    score = 1.0

    if Weekday.of(slot.start) not in weekdays:
        score -= DAY_PENALTY

    time_of_day = slot.start.time()
    if not any(window.contains(time_of_day) for window in windows):
        score -= TIME_PENALTY

    return max(0.0, round(score, 2))


class ProposalBuilder:
    """Assigns roles, scores and order to a set of available slots."""

    def build_proposals(
        self,
        slots: Sequence[CandidateSlot],
        request: SchedulingRequest,
    ) -> List[ProposedSession]:
        """
        Convert slots into at most ``request.sessions_needed`` proposals.

        Slots are expected in chronological order.
        """
        if request.distribute_evenly and len(slots) > request.sessions_needed:
            selected = self.distribute_evenly(
                slots,
                request.sessions_needed,
                request.min_days_between,
            )
            logger.info("Distributed slots evenly, selected %d slots", len(selected))
        else:
            selected = list(slots[:request.sessions_needed])

        proposals: List[ProposedSession] = []
        for index, slot in enumerate(selected):
            sequence_number = index + 1
            organizer_id, participant_id = self._assign_roles(request, sequence_number)
            score = confidence_score(slot, request.weekdays, request.time_windows)

            proposals.append(ProposedSession(
                scheduled_at=slot.start,
                duration_minutes=slot.duration_minutes,
                sequence_number=sequence_number,
                organizer_id=organizer_id,
                participant_id=participant_id,
                conflict_level=slot.conflict.severity if slot.conflict else ConflictSeverity.NONE,
                confidence_score=score,
                note=OFF_PEAK_NOTE if score < NOTE_THRESHOLD else None,
            ))

        logger.info("Built %d proposed sessions", len(proposals))
        return proposals

    @staticmethod
    def distribute_evenly(
        slots: Sequence[CandidateSlot],
        sessions_needed: int,
        min_days_between: int,
    ) -> List[CandidateSlot]:
        """
        Greedily pick slots at least ``min_days_between`` days apart.

        Starts from the earliest slot. When the walk cannot reach
        ``sessions_needed`` slots, the earliest slots are used instead.
        """
        if len(slots) <= sessions_needed:
            return list(slots)

        distributed = [slots[0]]
        last_start = slots[0].start

        for slot in slots[1:]:
            if len(distributed) >= sessions_needed:
                break
            days_since_last = (slot.start - last_start).total_seconds() / 86400
            if days_since_last >= min_days_between:
                distributed.append(slot)
                last_start = slot.start

        if len(distributed) < sessions_needed:
            logger.warning(
                "Even distribution found only %d of %d slots, using earliest slots instead",
                len(distributed), sessions_needed,
            )
            return list(slots[:sessions_needed])

        return distributed

    @staticmethod
    def _assign_roles(request: SchedulingRequest, sequence_number: int) -> tuple[str, str]:
        # Alternating: odd sessions are organized by party A, even by party B
        if request.is_alternating_roles and sequence_number % 2 == 0:
            return request.party_b_id, request.party_a_id
        return request.party_a_id, request.party_b_id
