"""
Clock abstraction so that every request works against one captured instant.
"""

from typing import Protocol

import pendulum
from pendulum import DateTime


class Clock(Protocol):
    """Provides the current instant."""

    def now(self) -> DateTime:
        """Return the current instant."""


class SystemClock:
    """Wall clock in a fixed timezone."""

    def __init__(self, timezone: str = "Europe/Berlin"):
        self.timezone = timezone

    def now(self) -> DateTime:
        return pendulum.now(self.timezone)


class FixedClock:
    """Clock frozen at a given instant, for tests and reproducible runs."""

    def __init__(self, instant: DateTime):
        self.instant = instant

    def now(self) -> DateTime:
        return self.instant
