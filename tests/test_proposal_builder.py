"""
Tests for turning slots into proposed sessions.
"""

import pendulum
from datetime import time

from sessionplanner.domain.models import (
    CandidateSlot,
    ConflictRecord,
    ConflictSeverity,
    SchedulingRequest,
    TimeWindow,
    Weekday,
)
from sessionplanner.domain.proposal_builder import (
    OFF_PEAK_NOTE,
    ProposalBuilder,
    confidence_score,
)

AFTERNOON = TimeWindow(start=time(14, 0), end=time(16, 0))


def slot(value, duration=60, conflict=None):
    return CandidateSlot(
        start=pendulum.parse(value, tz="Europe/Berlin"),
        duration_minutes=duration,
        conflict=conflict,
    )


def request(**overrides):
    values = dict(
        party_a_id="alice",
        party_b_id="bob",
        weekdays={Weekday.MONDAY, Weekday.WEDNESDAY},
        time_windows=[AFTERNOON],
        sessions_needed=3,
    )
    values.update(overrides)
    return SchedulingRequest(**values)


class TestConfidenceScore:
    """Tests for the preference match score."""

    def test_full_match(self):
        """Test a slot on a preferred day inside a preferred window."""
        score = confidence_score(slot("2024-11-25 14:00"), {Weekday.MONDAY}, [AFTERNOON])

        assert score == 1.0

    def test_wrong_day(self):
        """Test the day penalty."""
        score = confidence_score(slot("2024-11-26 14:00"), {Weekday.MONDAY}, [AFTERNOON])

        assert score == 0.7

    def test_wrong_day_and_time(self):
        """Test that both penalties add up."""
        score = confidence_score(slot("2024-11-26 18:00"), {Weekday.MONDAY}, [AFTERNOON])

        assert score == 0.4

    def test_window_end_is_outside(self):
        """Test that a start at the window end counts as outside."""
        score = confidence_score(slot("2024-11-25 16:00"), {Weekday.MONDAY}, [AFTERNOON])

        assert score == 0.7


class TestBuildProposals:
    """Tests for ProposalBuilder.build_proposals."""

    def test_takes_earliest_slots_in_order(self):
        """Test truncation to the requested count."""
        slots = [slot("2024-11-25 14:00"), slot("2024-11-27 14:00"),
                 slot("2024-12-02 14:00"), slot("2024-12-04 14:00")]

        proposals = ProposalBuilder().build_proposals(slots, request())

        assert [p.sequence_number for p in proposals] == [1, 2, 3]
        assert [p.scheduled_at for p in proposals] == [s.start for s in slots[:3]]
        assert all(p.confidence_score == 1.0 and p.note is None for p in proposals)

    def test_fixed_roles(self):
        """Test that party A organizes every session by default."""
        slots = [slot("2024-11-25 14:00"), slot("2024-11-27 14:00"), slot("2024-12-02 14:00")]

        proposals = ProposalBuilder().build_proposals(slots, request())

        assert {(p.organizer_id, p.participant_id) for p in proposals} == {("alice", "bob")}

    def test_alternating_roles(self):
        """Test that roles swap on every second session."""
        slots = [slot("2024-11-25 14:00"), slot("2024-11-27 14:00"), slot("2024-12-02 14:00")]

        proposals = ProposalBuilder().build_proposals(slots, request(is_alternating_roles=True))

        assert [p.organizer_id for p in proposals] == ["alice", "bob", "alice"]
        assert [p.participant_id for p in proposals] == ["bob", "alice", "bob"]

    def test_off_peak_note(self):
        """Test that low scoring slots carry a note."""
        proposals = ProposalBuilder().build_proposals(
            [slot("2024-11-26 18:00")], request(sessions_needed=1)
        )

        assert proposals[0].confidence_score == 0.4
        assert proposals[0].note == OFF_PEAK_NOTE

    def test_conflict_level_from_tolerated_conflict(self):
        """Test that a tolerated conflict's severity is kept."""
        conflict = ConflictRecord(
            commitment_id="apt-1",
            title="Pending session",
            start=pendulum.parse("2024-11-25 14:30", tz="Europe/Berlin"),
            end=pendulum.parse("2024-11-25 15:30", tz="Europe/Berlin"),
            duration_minutes=60,
            status_label="Pending",
            other_party_id="carol",
            severity=ConflictSeverity.MINOR,
        )

        proposals = ProposalBuilder().build_proposals(
            [slot("2024-11-25 14:00", conflict=conflict)], request(sessions_needed=1)
        )

        assert proposals[0].conflict_level == ConflictSeverity.MINOR

    def test_distribute_evenly_spaces_sessions(self):
        """Test that daily slots are thinned out to the minimum spacing."""
        slots = [slot(f"2024-11-{day} 14:00") for day in range(25, 31)]
        slots += [slot("2024-12-01 14:00")]

        proposals = ProposalBuilder().build_proposals(
            slots, request(distribute_evenly=True, min_days_between=2)
        )

        assert [p.scheduled_at.day for p in proposals] == [25, 27, 29]


class TestDistributeEvenly:
    """Tests for the greedy spacing walk."""

    def test_falls_back_to_earliest_when_walk_underfills(self):
        """Test that too dense slots fall back to the earliest ones."""
        slots = [slot("2024-11-25 09:00"), slot("2024-11-25 11:00"),
                 slot("2024-11-25 13:00"), slot("2024-11-25 15:00")]

        selected = ProposalBuilder.distribute_evenly(slots, 2, 1)

        assert selected == slots[:2]

    def test_returns_all_when_not_enough_slots(self):
        """Test that fewer slots than needed are returned unchanged."""
        slots = [slot("2024-11-25 09:00")]

        assert ProposalBuilder.distribute_evenly(slots, 3, 1) == slots

    def test_exact_spacing_is_accepted(self):
        """Test that slots exactly min_days_between apart qualify."""
        slots = [slot("2024-11-25 14:00"), slot("2024-11-26 14:00"), slot("2024-11-27 14:00")]

        selected = ProposalBuilder.distribute_evenly(slots, 2, 2)

        assert selected == [slots[0], slots[2]]
