"""
Conflict detection against a party's existing commitments.
"""

import logging
from typing import Iterable, List

from pendulum import DateTime

from .models import (
    ConflictRecord,
    ConflictSeverity,
    ExistingCommitment,
    severity_for_status,
)

logger = logging.getLogger(__name__)


def overlaps(start1: DateTime, end1: DateTime, start2: DateTime, end2: DateTime) -> bool:
    """Two half-open intervals overlap iff each starts before the other ends."""
    return start1 < end2 and end1 > start2


def to_conflict_record(commitment: ExistingCommitment) -> ConflictRecord:
    """Describe a commitment as a conflict from its owner's point of view."""
    return ConflictRecord(
        commitment_id=commitment.id,
        title=commitment.title,
        start=commitment.start,
        end=commitment.end,
        duration_minutes=commitment.duration_minutes,
        status_label=commitment.status.value,
        other_party_id=commitment.other_party_id,
        severity=severity_for_status(commitment.status),
    )


class ConflictDetector:
    """
    Decides whether a proposed interval collides with existing commitments.

    A buffer is appended after every commitment's end so that sessions are
    not booked back to back. Completed, cancelled and no-show commitments
    never block a new booking.
    """

    def __init__(self, buffer_minutes: int = 15):
        if buffer_minutes < 0:
            raise ValueError("buffer_minutes must not be negative")
        self.buffer_minutes = buffer_minutes

    def find_conflicts(
        self,
        commitments: Iterable[ExistingCommitment],
        proposed_start: DateTime,
        proposed_duration: int,
        exclude_id: str | None = None,
    ) -> List[ConflictRecord]:
        """
        Return every commitment blocking the proposed interval, ordered by start.

        Args:
            commitments: The owner's commitments
            proposed_start: Start of the interval to check
            proposed_duration: Length of the interval in minutes
            exclude_id: Commitment to ignore, e.g. the session being moved
        """
        proposed_end = proposed_start.add(minutes=proposed_duration)
        blocking: List[ExistingCommitment] = []

        for commitment in commitments:
            if exclude_id is not None and commitment.id == exclude_id:
                continue
            if severity_for_status(commitment.status) == ConflictSeverity.NONE:
                continue

            buffered_end = commitment.end.add(minutes=self.buffer_minutes)
            if overlaps(proposed_start, proposed_end, commitment.start, buffered_end):
                blocking.append(commitment)

        blocking.sort(key=lambda c: c.start)
        return [to_conflict_record(c) for c in blocking]

    def find_conflict(
        self,
        commitments: Iterable[ExistingCommitment],
        proposed_start: DateTime,
        proposed_duration: int,
        exclude_id: str | None = None,
    ) -> ConflictRecord | None:
        """Return the earliest blocking commitment, or None if the interval is free."""
        conflicts = self.find_conflicts(
            commitments,
            proposed_start,
            proposed_duration,
            exclude_id=exclude_id,
        )
        if not conflicts:
            return None

        conflict = conflicts[0]
        logger.debug(
            "Conflict with commitment %s (%s) at %s",
            conflict.commitment_id, conflict.status_label, conflict.start,
        )
        return conflict

    def list_conflicts(
        self,
        commitments: Iterable[ExistingCommitment],
        range_start: DateTime,
        range_end: DateTime,
    ) -> List[ConflictRecord]:
        """
        List every active commitment overlapping a range, ordered by start.

        No buffer is applied; cancelled and no-show commitments are left out.
        """
        active = [
            c for c in commitments
            if c.status.is_active and overlaps(range_start, range_end, c.start, c.end)
        ]
        active.sort(key=lambda c: c.start)
        return [to_conflict_record(c) for c in active]
