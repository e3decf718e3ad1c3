"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .alternatives import AlternativeOptionGenerator
from .feasibility import FeasibilityValidator
from .mutual_availability import CommitmentStoreProtocol, MutualAvailabilityFinder
from .session_scheduler import SessionSchedulingService
from .slot_finder import AvailableSlotFinder

__all__ = [
    "AlternativeOptionGenerator",
    "AvailableSlotFinder",
    "CommitmentStoreProtocol",
    "FeasibilityValidator",
    "MutualAvailabilityFinder",
    "SessionSchedulingService",
]
