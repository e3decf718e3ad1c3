"""
Conversion of appointment records into owner-centric commitments.

Records look like this (as exported by the appointment store)::

    {
        "id": "apt-1",
        "title": "Session 1: Python basics",
        "organizerId": "alice",
        "participantId": "bob",
        "scheduledAt": "2024-11-25T14:00:00+01:00",
        "durationMinutes": 60,
        "status": "Confirmed"
    }
"""

from typing import Any, Dict

import pendulum
from pendulum import DateTime

from ..domain.models import CommitmentStatus, ExistingCommitment


def parse_datetime(value: str, timezone: str) -> DateTime:
    """
    Parse an ISO 8601 string into a pendulum DateTime in the given timezone.

    Raises:
        ValueError: If the string is not a datetime
    """
    dt = pendulum.parse(value, tz=timezone)
    if isinstance(dt, DateTime):
        return dt.in_timezone(timezone)
    raise ValueError(f"Could not parse datetime: {value}")


def involves(record: Dict[str, Any], owner_id: str) -> bool:
    return owner_id in (record.get("organizerId"), record.get("participantId"))


def commitment_from_record(
    record: Dict[str, Any],
    owner_id: str,
    timezone: str,
) -> ExistingCommitment:
    """
    Build the commitment one party has through an appointment.

    Raises:
        KeyError: If a required field is missing
        ValueError: If a field cannot be parsed
    """
    organizer = record.get("organizerId")
    participant = record.get("participantId")
    other_party = participant if organizer == owner_id else organizer

    return ExistingCommitment(
        id=str(record["id"]),
        owner_id=owner_id,
        start=parse_datetime(record["scheduledAt"], timezone),
        duration_minutes=int(record["durationMinutes"]),
        status=CommitmentStatus.parse(record.get("status", "Pending")),
        title=record.get("title", ""),
        other_party_id=other_party,
    )
