"""
Candidate slot generation.

Two modes are supported: the preference-driven mode used for new session
series (delegating to ``PreferenceParser``) and a simpler single-party mode
for reschedule flows that works on plain day numbers and time strings.
"""

import logging
from datetime import time
from typing import List, Sequence

from pendulum import DateTime

from .exceptions import InvalidArgumentError
from .models import BUSINESS_HOURS_WINDOW, ParseResult, TimeWindow, Weekday, WeekdaySet
from .preference_parser import PreferenceParser

logger = logging.getLogger(__name__)


class SlotGenerator:
    """
    Enumerates candidate start times.

    Algorithm (reschedule mode):
    1. Parse the time strings, falling back to business hours
    2. Walk the dates from tomorrow across the search horizon
    3. On every selected weekday step through each window
    4. Drop starts that are not in the future
    """

    def __init__(
        self,
        parser: PreferenceParser | None = None,
        max_weeks: int = 12,
        default_window: TimeWindow = BUSINESS_HOURS_WINDOW,
    ):
        self.parser = parser or PreferenceParser()
        self.max_weeks = max_weeks
        self.default_window = default_window

    def generate(
        self,
        weekdays: WeekdaySet,
        windows: Sequence[TimeWindow],
        duration_minutes: int,
        earliest_start: DateTime,
        weeks_ahead: int,
        *,
        now: DateTime,
    ) -> List[DateTime]:
        """Generate preference-driven candidate starts."""
        return self.parser.generate_candidate_starts(
            weekdays,
            windows,
            duration_minutes,
            earliest_start,
            weeks_ahead,
            now=now,
        )

    def parse_time_ranges(self, time_ranges: Sequence[str] | None) -> ParseResult[List[TimeWindow]]:
        """
        Parse ``"HH:MM-HH:MM"`` strings, sorted by start time.

        Falls back to the business-hours window when nothing valid is given.
        """
        warnings: List[str] = []
        windows: List[TimeWindow] = []

        for raw in time_ranges or []:
            window = self._parse_time_range(raw)
            if window is None:
                warnings.append(f"Invalid time slot format '{raw}' skipped")
                continue
            windows.append(window)

        for warning in warnings:
            logger.warning(warning)

        windows.sort(key=lambda w: (w.start, w.end))

        if not windows:
            logger.info("No valid time slots provided, using default business hours")
            windows = [self.default_window]

        return ParseResult(value=windows, warnings=warnings)

    @staticmethod
    def _parse_time_range(raw: str | None) -> TimeWindow | None:
        if not raw:
            return None

        parts = raw.split("-")
        if len(parts) != 2:
            return None

        bounds: List[time] = []
        for part in parts:
            pieces = part.strip().split(":")
            if len(pieces) != 2 or not all(p.isdigit() for p in pieces):
                return None
            hour, minute = int(pieces[0]), int(pieces[1])
            if not (0 <= hour <= 23 and 0 <= minute <= 59):
                return None
            bounds.append(time(hour, minute))

        if bounds[0] >= bounds[1]:
            return None
        return TimeWindow(start=bounds[0], end=bounds[1])

    def generate_for_days(
        self,
        days_of_week: Sequence[int],
        time_ranges: Sequence[str] | None,
        duration_minutes: int,
        *,
        now: DateTime,
        max_weeks: int | None = None,
    ) -> ParseResult[List[DateTime]]:
        """
        Generate candidate starts for explicit day numbers (0=Sunday .. 6=Saturday).

        Slots are spaced every hour, or every session length if shorter,
        starting tomorrow and covering up to ``max_weeks`` weeks.

        Raises:
            InvalidArgumentError: If the duration or horizon is not positive
        """
        if duration_minutes <= 0:
            raise InvalidArgumentError("Duration must be positive")

        weeks = max_weeks if max_weeks is not None else self.max_weeks
        if weeks <= 0:
            raise InvalidArgumentError("Weeks to search must be positive")

        warnings: List[str] = []
        weekdays: set[Weekday] = set()
        for number in days_of_week:
            if number not in range(7):
                warnings.append(f"Invalid day of week {number} skipped")
                continue
            weekdays.add(Weekday((number - 1) % 7))

        parsed = self.parse_time_ranges(time_ranges)
        warnings.extend(parsed.warnings)

        increment = min(60, duration_minutes)
        current = now.start_of("day").add(days=1)
        end_date = current.add(days=weeks * 7)
        starts: List[DateTime] = []

        while current < end_date:
            if Weekday.of(current) in weekdays:
                for window in parsed.value:
                    offset = window.start_minutes
                    while offset + duration_minutes <= window.end_minutes:
                        candidate = current.set(hour=offset // 60, minute=offset % 60)
                        if candidate > now:
                            starts.append(candidate)
                        offset += increment
            current = current.add(days=1)

        ordered: List[DateTime] = []
        for candidate in sorted(starts):
            # Overlapping windows can yield the same start twice
            if not ordered or ordered[-1] != candidate:
                ordered.append(candidate)

        logger.debug("Generated %d reschedule candidates over %d weeks", len(ordered), weeks)
        return ParseResult(value=ordered, warnings=warnings)
