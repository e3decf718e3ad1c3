"""
Domain models for session scheduling.
"""

from dataclasses import dataclass, field
from datetime import time
from enum import Enum, IntEnum
from typing import FrozenSet, Generic, List, TypeVar

from pendulum import DateTime

from .exceptions import InvalidArgumentError

T = TypeVar("T")


class Weekday(IntEnum):
    """Day of week, numbered like ``datetime.weekday()`` (0=Monday)."""
    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @classmethod
    def of(cls, dt: DateTime) -> "Weekday":
        """Return the weekday a datetime falls on."""
        return cls(dt.weekday())

    def previous(self) -> "Weekday":
        return Weekday((self.value - 1) % 7)

    def next(self) -> "Weekday":
        return Weekday((self.value + 1) % 7)


WeekdaySet = FrozenSet[Weekday]

DEFAULT_WEEKDAYS: WeekdaySet = frozenset({
    Weekday.MONDAY,
    Weekday.TUESDAY,
    Weekday.WEDNESDAY,
    Weekday.THURSDAY,
    Weekday.FRIDAY,
})

WEEKEND: WeekdaySet = frozenset({Weekday.SATURDAY, Weekday.SUNDAY})


def format_weekdays(weekdays: WeekdaySet) -> str:
    """Render a weekday set in calendar order."""
    return ", ".join(day.label for day in sorted(weekdays))


@dataclass(frozen=True)
class TimeWindow:
    """
    A time-of-day window, e.g. 09:00 - 17:00.

    Invariant: start must be before end. Containment is half-open.
    """
    start: time
    end: time

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Window start {self.start} must be before end {self.end}")

    @property
    def start_minutes(self) -> int:
        return self.start.hour * 60 + self.start.minute

    @property
    def end_minutes(self) -> int:
        return self.end.hour * 60 + self.end.minute

    @classmethod
    def from_minutes(cls, start_minutes: int, end_minutes: int) -> "TimeWindow":
        """Build a window from minutes since midnight."""
        return cls(
            start=time(hour=start_minutes // 60, minute=start_minutes % 60),
            end=time(hour=end_minutes // 60, minute=end_minutes % 60),
        )

    def contains(self, moment: time) -> bool:
        """Check whether a time of day falls inside the window."""
        return self.start <= moment < self.end

    def __str__(self) -> str:
        return f"{self.start.strftime('%H:%M')}-{self.end.strftime('%H:%M')}"


DEFAULT_TIME_WINDOW = TimeWindow(start=time(9, 0), end=time(17, 0))
BUSINESS_HOURS_WINDOW = TimeWindow(start=time(8, 0), end=time(20, 0))


class CommitmentStatus(Enum):
    """Lifecycle status of an existing booked session."""
    PENDING = "Pending"
    RESCHEDULE_REQUESTED = "RescheduleRequested"
    CONFIRMED = "Confirmed"
    WAITING_FOR_PAYMENT = "WaitingForPayment"
    PAYMENT_COMPLETED = "PaymentCompleted"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    NO_SHOW = "NoShow"

    @property
    def is_active(self) -> bool:
        """Cancelled and no-show sessions are not part of anyone's calendar."""
        return self not in (CommitmentStatus.CANCELLED, CommitmentStatus.NO_SHOW)

    @classmethod
    def parse(cls, label: str) -> "CommitmentStatus":
        """
        Parse a status label case-insensitively.

        Accepts both ``"PaymentCompleted"`` and ``"payment_completed"``.

        Raises:
            ValueError: If the label is unknown
        """
        key = label.strip().replace("_", "").replace("-", "").lower()
        for status in cls:
            if status.value.lower() == key:
                return status
        raise ValueError(f"Unknown commitment status: '{label}'")


class ConflictSeverity(IntEnum):
    """How disruptive a conflicting commitment is, ordered low to high."""
    NONE = 0
    MINOR = 1
    MODERATE = 2
    MAJOR = 3


_SEVERITY_BY_STATUS = {
    CommitmentStatus.PENDING: ConflictSeverity.MINOR,
    CommitmentStatus.RESCHEDULE_REQUESTED: ConflictSeverity.MINOR,
    CommitmentStatus.CONFIRMED: ConflictSeverity.MODERATE,
    CommitmentStatus.WAITING_FOR_PAYMENT: ConflictSeverity.MODERATE,
    CommitmentStatus.PAYMENT_COMPLETED: ConflictSeverity.MAJOR,
    CommitmentStatus.IN_PROGRESS: ConflictSeverity.MAJOR,
    CommitmentStatus.COMPLETED: ConflictSeverity.NONE,
    CommitmentStatus.CANCELLED: ConflictSeverity.NONE,
    CommitmentStatus.NO_SHOW: ConflictSeverity.NONE,
}


def severity_for_status(status: CommitmentStatus) -> ConflictSeverity:
    """Map a commitment status to the severity of conflicting with it."""
    return _SEVERITY_BY_STATUS[status]


@dataclass(frozen=True)
class ExistingCommitment:
    """
    An already booked session of one party.

    Snapshot supplied by the commitment store; never mutated here.
    """
    id: str
    owner_id: str
    start: DateTime
    duration_minutes: int
    status: CommitmentStatus
    title: str = ""
    other_party_id: str | None = None

    @property
    def end(self) -> DateTime:
        return self.start.add(minutes=self.duration_minutes)


@dataclass(frozen=True)
class ConflictRecord:
    """Describes a commitment that blocks a proposed interval."""
    commitment_id: str
    title: str
    start: DateTime
    end: DateTime
    duration_minutes: int
    status_label: str
    other_party_id: str | None
    severity: ConflictSeverity


@dataclass(frozen=True)
class CandidateSlot:
    """A start time that satisfies the preference constraints."""
    start: DateTime
    duration_minutes: int
    conflict: ConflictRecord | None = None

    @property
    def end(self) -> DateTime:
        return self.start.add(minutes=self.duration_minutes)

    def __str__(self) -> str:
        return f"{self.start.format('DD.MM.YYYY HH:mm')} - {self.end.format('HH:mm')}"


@dataclass
class SchedulingRequest:
    """
    Everything needed to schedule a series of sessions between two parties.
    """
    party_a_id: str
    party_b_id: str
    weekdays: WeekdaySet
    time_windows: List[TimeWindow]
    session_duration_minutes: int = 60
    sessions_needed: int = 1
    distribute_evenly: bool = False
    min_days_between: int = 1
    max_days_between: int = 14
    is_alternating_roles: bool = False

    def __post_init__(self):
        if not self.party_a_id or not self.party_b_id:
            raise InvalidArgumentError("Both party ids are required")
        if self.party_a_id == self.party_b_id:
            raise InvalidArgumentError("A session needs two different parties")
        if not self.weekdays:
            raise InvalidArgumentError("At least one weekday is required")
        if not self.time_windows:
            raise InvalidArgumentError("At least one time window is required")
        if self.session_duration_minutes <= 0:
            raise InvalidArgumentError("session_duration_minutes must be greater than zero")
        if self.sessions_needed <= 0:
            raise InvalidArgumentError("sessions_needed must be greater than zero")
        if self.min_days_between < 0 or self.max_days_between < self.min_days_between:
            raise InvalidArgumentError(
                f"Invalid spacing: min_days_between={self.min_days_between}, "
                f"max_days_between={self.max_days_between}"
            )
        self.weekdays = frozenset(self.weekdays)


@dataclass(frozen=True)
class ProposedSession:
    """A concrete session suggested to both parties."""
    scheduled_at: DateTime
    duration_minutes: int
    sequence_number: int
    organizer_id: str
    participant_id: str
    conflict_level: ConflictSeverity = ConflictSeverity.NONE
    confidence_score: float = 1.0
    note: str | None = None

    @property
    def ends_at(self) -> DateTime:
        return self.scheduled_at.add(minutes=self.duration_minutes)

    def format_display(self) -> str:
        """
        Format the session for display.
        Format: #N Weekday, DD.MM.YYYY | HH:MM - HH:MM
        """
        weekday = Weekday.of(self.scheduled_at).label
        return (
            f"#{self.sequence_number} {weekday}, "
            f"{self.scheduled_at.format('DD.MM.YYYY')} | "
            f"{self.scheduled_at.format('HH:mm')} - {self.ends_at.format('HH:mm')}"
        )


@dataclass
class FeasibilityResult:
    """Outcome of checking whether a request can be fulfilled."""
    is_feasible: bool
    available_count: int
    requested_count: int
    warnings: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)


@dataclass
class AlternativeOption:
    """A relaxed preference set that unlocks enough slots."""
    description: str
    relaxed_weekdays: WeekdaySet
    relaxed_time_windows: List[TimeWindow]
    available_count: int
    confidence_score: float
    deviation_score: float


@dataclass
class ParseResult(Generic[T]):
    """A parsed value together with the warnings produced on the way."""
    value: T
    warnings: List[str] = field(default_factory=list)


@dataclass
class ValidationResult:
    """Collected violations of a non-destructive validation pass."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)


@dataclass
class SchedulingPlan:
    """Full outcome of one planning call."""
    request: SchedulingRequest
    proposals: List[ProposedSession]
    feasibility: FeasibilityResult | None = None
    alternatives: List[AlternativeOption] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return len(self.proposals) >= self.request.sessions_needed
