"""
Tests for SessionSchedulingService.
"""

import asyncio

import pendulum
import pytest

from sessionplanner.adapters import InMemoryCommitmentStore
from sessionplanner.config import AppConfig
from sessionplanner.domain.exceptions import InvalidArgumentError
from sessionplanner.domain.models import ConflictSeverity, CommitmentStatus, Weekday
from sessionplanner.services import SessionSchedulingService


def at(value):
    return pendulum.parse(value, tz="Europe/Berlin")


class CountingStore(InMemoryCommitmentStore):
    """Counts fetches per owner."""

    def __init__(self, commitments=()):
        super().__init__(commitments)
        self.fetches = 0

    async def get_active_commitments(self, owner_id, range_start, range_end):
        self.fetches += 1
        return await super().get_active_commitments(owner_id, range_start, range_end)


class TestBuildRequest:
    """Tests for building requests from raw preferences."""

    def test_warnings_from_both_preference_kinds(self, clock):
        """Test that skipped days and ranges are both reported."""
        service = SessionSchedulingService(InMemoryCommitmentStore(), clock=clock)

        parsed = service.build_request(
            "alice", "bob", ["Montag", "Blorp"], ["14:00-16:00", "bad"], sessions_needed=2
        )

        assert parsed.value.weekdays == frozenset({Weekday.MONDAY})
        assert parsed.value.sessions_needed == 2
        assert len(parsed.warnings) == 2

    def test_defaults_without_preferences(self, clock):
        """Test the Monday-Friday, 09:00-17:00 fallback."""
        service = SessionSchedulingService(InMemoryCommitmentStore(), clock=clock)

        parsed = service.build_request("alice", "bob", None, None)

        assert len(parsed.value.weekdays) == 5
        assert str(parsed.value.time_windows[0]) == "09:00-17:00"
        assert parsed.warnings == []

    def test_invalid_options_raise(self, clock):
        """Test that invalid request fields are programmer errors."""
        service = SessionSchedulingService(InMemoryCommitmentStore(), clock=clock)

        with pytest.raises(InvalidArgumentError):
            service.build_request("alice", "alice", ["Monday"], ["14:00-16:00"])

    def test_validate_preferences(self, clock):
        """Test that validation reports every bad entry."""
        service = SessionSchedulingService(InMemoryCommitmentStore(), clock=clock)

        result = service.validate_preferences(["Blorp"], ["9-10"])

        assert not result.is_valid
        assert len(result.errors) == 2


class TestProposeSessions:
    """Tests for proposing sessions."""

    def test_monday_wednesday_afternoons(self, clock):
        """Test the proposals for two free calendars."""
        service = SessionSchedulingService(InMemoryCommitmentStore(), clock=clock)
        request = service.build_request(
            "alice", "bob", ["Monday", "Wednesday"], ["14:00-16:00"], sessions_needed=2
        ).value

        proposals = asyncio.run(service.propose_sessions(request))

        assert [p.scheduled_at for p in proposals] == [at("2024-11-25 14:00"), at("2024-11-27 14:00")]
        assert [p.confidence_score for p in proposals] == [1.0, 1.0]
        assert [p.conflict_level for p in proposals] == [ConflictSeverity.NONE] * 2

    def test_distribution_probes_for_more_slots(self, clock):
        """Test that even distribution can skip over too close slots."""
        service = SessionSchedulingService(InMemoryCommitmentStore(), clock=clock)
        request = service.build_request(
            "alice", "bob", ["Monday", "Tuesday"], ["14:00-16:00"],
            sessions_needed=2, distribute_evenly=True, min_days_between=5,
        ).value

        proposals = asyncio.run(service.propose_sessions(request))

        assert [p.scheduled_at for p in proposals] == [at("2024-11-25 14:00"), at("2024-12-02 14:00")]

    def test_no_slots(self, clock, make_commitment):
        """Test that a fully booked calendar yields no proposals."""
        first = at("2024-11-25 14:00")
        store = InMemoryCommitmentStore([make_commitment("bob", first.add(weeks=w)) for w in range(4)])
        service = SessionSchedulingService(store, clock=clock)
        request = service.build_request("alice", "bob", ["Monday"], ["14:00-16:00"]).value

        assert asyncio.run(service.propose_sessions(request)) == []


class TestPlan:
    """Tests for the full planning call."""

    def test_complete_plan(self, clock):
        """Test that a satisfiable request gets no diagnostics."""
        service = SessionSchedulingService(InMemoryCommitmentStore(), clock=clock)
        parsed = service.build_request(
            "alice", "bob", ["Monday", "Wednesday"], ["14:00-16:00"], sessions_needed=2
        )

        plan = asyncio.run(service.plan(parsed.value, warnings=parsed.warnings))

        assert plan.is_complete
        assert plan.feasibility is None
        assert plan.alternatives == []

    def test_incomplete_plan_explains_and_offers_alternatives(self, clock, make_commitment):
        """Test that an under-supplied request carries feasibility and alternatives."""
        first = at("2024-11-25 14:00")
        store = InMemoryCommitmentStore([
            make_commitment("bob", first.add(weeks=w)) for w in range(3, 20)
        ])
        service = SessionSchedulingService(store, clock=clock)
        parsed = service.build_request(
            "alice", "bob", ["Monday", "Blorp"], ["14:00-15:00"], sessions_needed=4
        )

        plan = asyncio.run(service.plan(parsed.value, warnings=parsed.warnings))

        assert not plan.is_complete
        assert len(plan.proposals) == 3
        assert plan.warnings == parsed.warnings
        assert not plan.feasibility.is_feasible
        assert plan.feasibility.warnings[0] == parsed.warnings[0]
        assert "Only 3 of 4 requested slots are available" in plan.feasibility.warnings
        assert [o.description for o in plan.alternatives] == [
            "Add Tuesday to available days",
            "Expand time windows by 1 hour",
            "Include weekends (Saturday, Sunday)",
        ]

    def test_one_instant_per_call(self, monday_morning, make_commitment):
        """Test that the clock is read once, even when diagnostics are added."""

        class CountingClock:
            def __init__(self):
                self.reads = 0

            def now(self):
                self.reads += 1
                return monday_morning

        first = at("2024-11-25 14:00")
        store = InMemoryCommitmentStore([make_commitment("bob", first.add(weeks=w)) for w in range(30)])
        clock = CountingClock()
        service = SessionSchedulingService(store, clock=clock)
        request = service.build_request("alice", "bob", ["Monday"], ["14:00-15:00"], sessions_needed=2).value

        plan = asyncio.run(service.plan(request))

        assert plan.feasibility is not None
        assert clock.reads == 1


class TestFromConfig:
    """Tests for building the service from configuration."""

    def test_engine_settings_are_applied(self, clock):
        """Test that the configured lead time pushes the first slot to Wednesday."""
        config = AppConfig(engine={"lead_time_hours": 8})
        service = SessionSchedulingService.from_config(config, InMemoryCommitmentStore(), clock=clock)
        request = service.build_request("alice", "bob", ["Monday", "Wednesday"], ["14:00-16:00"]).value

        proposals = asyncio.run(service.propose_sessions(request))

        assert proposals[0].scheduled_at == at("2024-11-27 14:00")

    def test_reschedule_horizon(self, clock):
        """Test that the reschedule search honours the configured horizon."""
        config = AppConfig(engine={"reschedule_search_weeks": 2})
        service = SessionSchedulingService.from_config(config, InMemoryCommitmentStore(), clock=clock)

        result = asyncio.run(service.find_reschedule_slots(
            "alice", "bob", [1], ["10:00-11:00"], 60, 10
        ))

        assert result.value == [at("2024-12-02 10:00"), at("2024-12-09 10:00")]

    def test_conflict_buffer_is_applied(self, clock, make_commitment):
        """Test that a zero buffer allows back to back sessions."""
        store = InMemoryCommitmentStore([make_commitment("bob", "2024-12-02 09:00")])
        config = AppConfig(engine={"conflict_buffer_minutes": 0})
        service = SessionSchedulingService.from_config(config, store, clock=clock)

        assert asyncio.run(service.is_slot_available("alice", "bob", at("2024-12-02 10:00"), 60))


class TestListConflicts:
    """Tests for listing a party's booked sessions."""

    def test_lists_active_sessions(self, clock, make_commitment):
        """Test that only the owner's active sessions in range are listed."""
        store = CountingStore([
            make_commitment("bob", "2024-11-26 10:00", commitment_id="a"),
            make_commitment("bob", "2024-11-27 10:00", commitment_id="b",
                            status=CommitmentStatus.CANCELLED),
            make_commitment("alice", "2024-11-27 10:00", commitment_id="c"),
        ])
        service = SessionSchedulingService(store, clock=clock)

        records = asyncio.run(service.list_conflicts(
            "bob", at("2024-11-25 00:00"), at("2024-12-01 23:59")
        ))

        assert [r.commitment_id for r in records] == ["a"]
        assert store.fetches == 1
