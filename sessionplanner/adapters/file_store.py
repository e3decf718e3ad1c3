"""
Commitment stores backed by in-memory data or a JSON snapshot file.
"""

import json
import logging
from pathlib import Path
from typing import Iterable, List

from pendulum import DateTime

from ..domain.conflict_detector import overlaps
from ..domain.exceptions import CommitmentStoreError
from ..domain.models import ExistingCommitment
from .appointment_records import commitment_from_record

logger = logging.getLogger(__name__)


class InMemoryCommitmentStore:
    """
    Serves commitments from a list held in memory.

    Useful for tests and for callers that already loaded a snapshot.
    """

    def __init__(self, commitments: Iterable[ExistingCommitment] = ()):
        self.commitments: List[ExistingCommitment] = list(commitments)

    def add(self, commitment: ExistingCommitment) -> None:
        self.commitments.append(commitment)

    async def get_active_commitments(
        self,
        owner_id: str,
        range_start: DateTime,
        range_end: DateTime,
    ) -> List[ExistingCommitment]:
        """Return the owner's active commitments overlapping the range, by start."""
        matching = [
            c for c in self.commitments
            if c.owner_id == owner_id
            and c.status.is_active
            and overlaps(range_start, range_end, c.start, c.end)
        ]
        return sorted(matching, key=lambda c: c.start)


class FileCommitmentStore(InMemoryCommitmentStore):
    """
    Loads appointments from a JSON file.

    Every appointment is exposed as a commitment of both its organizer and
    its participant. A malformed entry fails the whole load.
    """

    def __init__(self, path: Path, timezone: str = "Europe/Berlin"):
        self.path = path
        self.timezone = timezone
        super().__init__(self._load())

    def _load(self) -> List[ExistingCommitment]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                records = json.load(f)
        except OSError as exc:
            raise CommitmentStoreError(f"Could not read appointments file {self.path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise CommitmentStoreError(f"Invalid JSON in {self.path}: {exc}") from exc

        if not isinstance(records, list):
            raise CommitmentStoreError("Appointments file must contain a list at the root level.")

        commitments: List[ExistingCommitment] = []
        for record in records:
            if not isinstance(record, dict):
                raise CommitmentStoreError(f"Appointment entry is not an object: {record!r}")
            for owner_key in ("organizerId", "participantId"):
                owner_id = record.get(owner_key)
                if not owner_id:
                    continue
                try:
                    commitments.append(commitment_from_record(record, owner_id, self.timezone))
                except (KeyError, ValueError) as exc:
                    raise CommitmentStoreError(
                        f"Could not parse appointment {record.get('id')} in {self.path}: {exc}"
                    ) from exc

        logger.info("Loaded %d commitments from %s", len(commitments), self.path)
        return commitments
