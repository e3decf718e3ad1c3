"""
Shared fixtures for the test suite.
"""

import pendulum
import pytest

from sessionplanner.clock import FixedClock
from sessionplanner.domain.models import CommitmentStatus, ExistingCommitment

TZ = "Europe/Berlin"


@pytest.fixture
def monday_morning():
    """Monday, 25.11.2024 08:00."""
    return pendulum.parse("2024-11-25 08:00", tz=TZ)


@pytest.fixture
def clock(monday_morning):
    return FixedClock(monday_morning)


@pytest.fixture
def make_commitment():
    """Factory for commitments, e.g. make_commitment("bob", "2024-11-25 14:00")."""
    counter = {"next": 0}

    def _make(
        owner_id,
        start,
        duration_minutes=60,
        status=CommitmentStatus.CONFIRMED,
        commitment_id=None,
        other_party_id=None,
    ):
        counter["next"] += 1
        if isinstance(start, str):
            start = pendulum.parse(start, tz=TZ)
        return ExistingCommitment(
            id=commitment_id or f"apt-{counter['next']}",
            owner_id=owner_id,
            start=start,
            duration_minutes=duration_minutes,
            status=status,
            title=f"Session {counter['next']}",
            other_party_id=other_party_id,
        )

    return _make
