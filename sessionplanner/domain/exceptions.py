"""
Domain-specific exception hierarchy for the session planner.
"""


class SchedulingError(Exception):
    """Base class for all application-level errors."""


class InvalidArgumentError(SchedulingError, ValueError):
    """Raised when a caller passes structurally invalid arguments."""


class CommitmentStoreError(SchedulingError):
    """Raised when commitment data cannot be fetched or parsed."""


class ConfigurationError(SchedulingError):
    """Raised when the configuration file cannot be loaded."""
