"""
Domain layer - Pure scheduling logic without external dependencies.
"""

from .conflict_detector import ConflictDetector
from .models import (
    AlternativeOption,
    CandidateSlot,
    CommitmentStatus,
    ConflictRecord,
    ConflictSeverity,
    ExistingCommitment,
    FeasibilityResult,
    ParseResult,
    ProposedSession,
    SchedulingPlan,
    SchedulingRequest,
    TimeWindow,
    ValidationResult,
    Weekday,
)
from .preference_parser import PreferenceParser
from .proposal_builder import ProposalBuilder
from .slot_generator import SlotGenerator

__all__ = [
    "AlternativeOption",
    "CandidateSlot",
    "CommitmentStatus",
    "ConflictDetector",
    "ConflictRecord",
    "ConflictSeverity",
    "ExistingCommitment",
    "FeasibilityResult",
    "ParseResult",
    "PreferenceParser",
    "ProposalBuilder",
    "ProposedSession",
    "SchedulingPlan",
    "SchedulingRequest",
    "SlotGenerator",
    "TimeWindow",
    "ValidationResult",
    "Weekday",
]
