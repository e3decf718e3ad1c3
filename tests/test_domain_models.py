"""
Tests for domain models.
"""

import pendulum
import pytest
from datetime import time

from sessionplanner.domain.exceptions import InvalidArgumentError
from sessionplanner.domain.models import (
    DEFAULT_WEEKDAYS,
    CommitmentStatus,
    ConflictSeverity,
    ProposedSession,
    SchedulingPlan,
    SchedulingRequest,
    TimeWindow,
    Weekday,
    format_weekdays,
    severity_for_status,
)


class TestWeekday:
    """Tests for Weekday enum."""

    def test_of_uses_monday_as_zero(self):
        """Test that Monday 25.11.2024 maps to Weekday.MONDAY."""
        dt = pendulum.parse("2024-11-25 09:00", tz="Europe/Berlin")

        assert Weekday.of(dt) == Weekday.MONDAY
        assert Weekday.MONDAY == 0
        assert Weekday.SUNDAY == 6

    def test_previous_and_next_wrap_around(self):
        """Test neighbouring days across the week boundary."""
        assert Weekday.MONDAY.previous() == Weekday.SUNDAY
        assert Weekday.SUNDAY.next() == Weekday.MONDAY
        assert Weekday.WEDNESDAY.next() == Weekday.THURSDAY

    def test_format_weekdays_in_calendar_order(self):
        """Test rendering of a weekday set."""
        days = frozenset({Weekday.FRIDAY, Weekday.MONDAY})

        assert format_weekdays(days) == "Monday, Friday"


class TestTimeWindow:
    """Tests for TimeWindow model."""

    def test_create_valid_window(self):
        """Test creating a valid time window."""
        window = TimeWindow(start=time(9, 0), end=time(17, 0))

        assert window.start_minutes == 540
        assert window.end_minutes == 1020
        assert str(window) == "09:00-17:00"

    def test_invalid_window_raises_error(self):
        """Test that start after end raises ValueError."""
        with pytest.raises(ValueError, match="must be before end"):
            TimeWindow(start=time(17, 0), end=time(9, 0))

    def test_empty_window_raises_error(self):
        """Test that a zero-length window is rejected."""
        with pytest.raises(ValueError):
            TimeWindow(start=time(9, 0), end=time(9, 0))

    def test_contains_is_half_open(self):
        """Test that the start is inside and the end is outside."""
        window = TimeWindow(start=time(14, 0), end=time(16, 0))

        assert window.contains(time(14, 0))
        assert window.contains(time(15, 59))
        assert not window.contains(time(16, 0))
        assert not window.contains(time(13, 59))

    def test_from_minutes(self):
        """Test building a window from minutes since midnight."""
        window = TimeWindow.from_minutes(360, 1380)

        assert window == TimeWindow(start=time(6, 0), end=time(23, 0))


class TestCommitmentStatus:
    """Tests for status parsing and severity mapping."""

    @pytest.mark.parametrize("label,expected", [
        ("Confirmed", CommitmentStatus.CONFIRMED),
        ("confirmed", CommitmentStatus.CONFIRMED),
        ("PaymentCompleted", CommitmentStatus.PAYMENT_COMPLETED),
        ("payment_completed", CommitmentStatus.PAYMENT_COMPLETED),
        ("no-show", CommitmentStatus.NO_SHOW),
    ])
    def test_parse(self, label, expected):
        """Test case-insensitive status parsing."""
        assert CommitmentStatus.parse(label) == expected

    def test_parse_unknown_raises(self):
        """Test that unknown labels raise ValueError."""
        with pytest.raises(ValueError, match="Unknown commitment status"):
            CommitmentStatus.parse("Postponed")

    def test_inactive_statuses(self):
        """Test that only cancelled and no-show are inactive."""
        inactive = {s for s in CommitmentStatus if not s.is_active}

        assert inactive == {CommitmentStatus.CANCELLED, CommitmentStatus.NO_SHOW}

    @pytest.mark.parametrize("status,severity", [
        (CommitmentStatus.PENDING, ConflictSeverity.MINOR),
        (CommitmentStatus.RESCHEDULE_REQUESTED, ConflictSeverity.MINOR),
        (CommitmentStatus.CONFIRMED, ConflictSeverity.MODERATE),
        (CommitmentStatus.WAITING_FOR_PAYMENT, ConflictSeverity.MODERATE),
        (CommitmentStatus.PAYMENT_COMPLETED, ConflictSeverity.MAJOR),
        (CommitmentStatus.IN_PROGRESS, ConflictSeverity.MAJOR),
        (CommitmentStatus.COMPLETED, ConflictSeverity.NONE),
        (CommitmentStatus.CANCELLED, ConflictSeverity.NONE),
        (CommitmentStatus.NO_SHOW, ConflictSeverity.NONE),
    ])
    def test_severity_mapping(self, status, severity):
        """Test that every status maps to exactly one severity."""
        assert severity_for_status(status) == severity


class TestSchedulingRequest:
    """Tests for SchedulingRequest validation."""

    def _request(self, **overrides):
        values = dict(
            party_a_id="alice",
            party_b_id="bob",
            weekdays={Weekday.MONDAY},
            time_windows=[TimeWindow(start=time(14, 0), end=time(16, 0))],
        )
        values.update(overrides)
        return SchedulingRequest(**values)

    def test_defaults(self):
        """Test default values of a request."""
        request = self._request()

        assert request.session_duration_minutes == 60
        assert request.sessions_needed == 1
        assert request.min_days_between == 1
        assert request.max_days_between == 14
        assert not request.distribute_evenly
        assert not request.is_alternating_roles
        assert isinstance(request.weekdays, frozenset)

    @pytest.mark.parametrize("overrides", [
        {"party_b_id": ""},
        {"party_b_id": "alice"},
        {"weekdays": set()},
        {"time_windows": []},
        {"session_duration_minutes": 0},
        {"sessions_needed": 0},
        {"min_days_between": 5, "max_days_between": 2},
        {"min_days_between": -1},
    ])
    def test_invalid_request_raises(self, overrides):
        """Test that invalid fields raise InvalidArgumentError."""
        with pytest.raises(InvalidArgumentError):
            self._request(**overrides)

    def test_invalid_argument_is_value_error(self):
        """Test that callers can catch invalid arguments as ValueError."""
        with pytest.raises(ValueError):
            self._request(sessions_needed=-3)

    def test_default_weekdays_are_monday_to_friday(self):
        """Test the default weekday set."""
        assert DEFAULT_WEEKDAYS == frozenset(Weekday(n) for n in range(5))


class TestProposedSession:
    """Tests for ProposedSession model."""

    def test_format_display(self):
        """Test display formatting."""
        session = ProposedSession(
            scheduled_at=pendulum.parse("2024-11-27 14:00", tz="Europe/Berlin"),
            duration_minutes=90,
            sequence_number=2,
            organizer_id="alice",
            participant_id="bob",
        )

        assert session.ends_at == pendulum.parse("2024-11-27 15:30", tz="Europe/Berlin")
        assert session.format_display() == "#2 Wednesday, 27.11.2024 | 14:00 - 15:30"
        assert session.conflict_level == ConflictSeverity.NONE

    def test_plan_completeness(self):
        """Test that a plan is complete once it has enough proposals."""
        request = self._request_for(2)
        session = ProposedSession(
            scheduled_at=pendulum.parse("2024-11-25 14:00", tz="Europe/Berlin"),
            duration_minutes=60,
            sequence_number=1,
            organizer_id="alice",
            participant_id="bob",
        )

        assert not SchedulingPlan(request=request, proposals=[session]).is_complete
        assert SchedulingPlan(request=request, proposals=[session, session]).is_complete

    @staticmethod
    def _request_for(sessions):
        return SchedulingRequest(
            party_a_id="alice",
            party_b_id="bob",
            weekdays={Weekday.MONDAY},
            time_windows=[TimeWindow(start=time(14, 0), end=time(16, 0))],
            sessions_needed=sessions,
        )
