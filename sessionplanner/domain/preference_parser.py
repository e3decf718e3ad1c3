"""
Parsing of raw day-name and time-range preferences.

Preferences arrive as free-form strings from users. Bad entries are never
fatal: they are skipped and reported back as warnings next to the parsed
value, so callers can surface partial diagnostics.
"""

import logging
import re
from datetime import time
from typing import Dict, Iterable, List, Sequence

from pendulum import DateTime

from .exceptions import InvalidArgumentError
from .models import (
    DEFAULT_TIME_WINDOW,
    DEFAULT_WEEKDAYS,
    ParseResult,
    TimeWindow,
    ValidationResult,
    Weekday,
    WeekdaySet,
    format_weekdays,
)

logger = logging.getLogger(__name__)

TIME_RANGE_PATTERN = re.compile(
    r"^([0-1]?[0-9]|2[0-3]):([0-5][0-9])-([0-1]?[0-9]|2[0-3]):([0-5][0-9])$"
)

DAY_NAMES: Dict[str, Weekday] = {
    "monday": Weekday.MONDAY,
    "tuesday": Weekday.TUESDAY,
    "wednesday": Weekday.WEDNESDAY,
    "thursday": Weekday.THURSDAY,
    "friday": Weekday.FRIDAY,
    "saturday": Weekday.SATURDAY,
    "sunday": Weekday.SUNDAY,
    # German names
    "montag": Weekday.MONDAY,
    "dienstag": Weekday.TUESDAY,
    "mittwoch": Weekday.WEDNESDAY,
    "donnerstag": Weekday.THURSDAY,
    "freitag": Weekday.FRIDAY,
    "samstag": Weekday.SATURDAY,
    "sonntag": Weekday.SUNDAY,
}


def _match_time_range(value: str) -> tuple[time, time] | None:
    match = TIME_RANGE_PATTERN.match(value)
    if not match:
        return None
    start_hour, start_minute, end_hour, end_minute = (int(g) for g in match.groups())
    return time(start_hour, start_minute), time(end_hour, end_minute)


class PreferenceParser:
    """
    Normalizes weekday names and ``HH:MM-HH:MM`` ranges into typed values
    and enumerates candidate start times from them.
    """

    def __init__(self, slot_spacing_minutes: int = 30):
        self.slot_spacing_minutes = slot_spacing_minutes

    def parse_weekdays(self, names: Iterable[str] | None) -> ParseResult[WeekdaySet]:
        """
        Parse English or German day names, case-insensitively.

        Unknown or blank entries are skipped with one warning each. When
        nothing valid remains, Monday to Friday is returned.
        """
        warnings: List[str] = []
        parsed: set[Weekday] = set()

        for name in names or []:
            if name is None or not name.strip():
                warnings.append("Empty day name skipped")
                continue

            weekday = DAY_NAMES.get(name.strip().lower())
            if weekday is None:
                warnings.append(f"Unknown day name '{name.strip()}' skipped")
                continue

            parsed.add(weekday)

        for warning in warnings:
            logger.warning(warning)

        if not parsed:
            logger.warning("No valid days parsed, using Monday to Friday")
            return ParseResult(value=DEFAULT_WEEKDAYS, warnings=warnings)

        logger.debug("Parsed preferred days: %s", format_weekdays(frozenset(parsed)))
        return ParseResult(value=frozenset(parsed), warnings=warnings)

    def parse_time_windows(self, ranges: Iterable[str] | None) -> ParseResult[List[TimeWindow]]:
        """
        Parse ``HH:MM-HH:MM`` ranges.

        Entries with a bad format or a start that is not before the end are
        skipped with one warning each. When nothing valid remains, the
        default 09:00-17:00 window is returned.
        """
        warnings: List[str] = []
        windows: List[TimeWindow] = []

        for raw in ranges or []:
            if raw is None or not raw.strip():
                warnings.append("Empty time range skipped")
                continue

            value = raw.strip()
            bounds = _match_time_range(value)
            if bounds is None:
                warnings.append(
                    f"Invalid time range format '{value}', expected 'HH:MM-HH:MM'; skipped"
                )
                continue

            start, end = bounds
            if start >= end:
                warnings.append(
                    f"Invalid time range '{value}': start time must be before end time; skipped"
                )
                continue

            window = TimeWindow(start=start, end=end)
            if window not in windows:
                windows.append(window)

        for warning in warnings:
            logger.warning(warning)

        if not windows:
            logger.warning("No valid time ranges parsed, using %s", DEFAULT_TIME_WINDOW)
            return ParseResult(value=[DEFAULT_TIME_WINDOW], warnings=warnings)

        logger.debug("Parsed %d time windows", len(windows))
        return ParseResult(value=windows, warnings=warnings)

    def validate(
        self,
        names: Sequence[str] | None,
        ranges: Sequence[str] | None,
    ) -> ValidationResult:
        """
        Check preferences without dropping anything.

        Every violation is collected, which makes this suitable for
        pre-flight input validation before a search is started.
        """
        errors: List[str] = []

        for name in names or []:
            if name is None or not name.strip():
                errors.append("Day name cannot be empty")
                continue
            if name.strip().lower() not in DAY_NAMES:
                errors.append(
                    f"Invalid day name: '{name}'. "
                    "Valid values are: Monday-Sunday or Montag-Sonntag"
                )

        for raw in ranges or []:
            if raw is None or not raw.strip():
                errors.append("Time range cannot be empty")
                continue
            bounds = _match_time_range(raw.strip())
            if bounds is None:
                errors.append(
                    f"Invalid time range format: '{raw}'. "
                    "Expected format: 'HH:MM-HH:MM' (e.g., '09:00-17:00')"
                )
                continue
            start, end = bounds
            if start >= end:
                errors.append(f"Invalid time range '{raw}': start time must be before end time")

        return ValidationResult(is_valid=not errors, errors=errors)

    def generate_candidate_starts(
        self,
        weekdays: WeekdaySet,
        windows: Sequence[TimeWindow],
        duration_minutes: int,
        earliest_start: DateTime,
        weeks_ahead: int,
        *,
        now: DateTime,
    ) -> List[DateTime]:
        """
        Enumerate start times matching weekday and window preferences.

        Args:
            weekdays: Days of the week to consider
            windows: Time-of-day windows on each of those days
            duration_minutes: Length of one session
            earliest_start: No start before this instant; its date opens the horizon
            weeks_ahead: Horizon length in weeks
            now: The instant captured for this request

        Returns:
            Sorted, de-duplicated start times strictly after ``now``

        Raises:
            InvalidArgumentError: On empty sets or non-positive sizes
        """
        if not weekdays:
            raise InvalidArgumentError("Weekday set cannot be empty")
        if not windows:
            raise InvalidArgumentError("Time window list cannot be empty")
        if duration_minutes <= 0:
            raise InvalidArgumentError("Duration must be positive")
        if weeks_ahead <= 0:
            raise InvalidArgumentError("Weeks ahead must be positive")

        step = duration_minutes + self.slot_spacing_minutes
        current = earliest_start.start_of("day")
        end_date = current.add(days=weeks_ahead * 7)

        logger.debug(
            "Generating candidates from %s to %s for %d days and %d windows",
            current, end_date, len(weekdays), len(windows),
        )

        starts: List[DateTime] = []
        while current < end_date:
            if Weekday.of(current) in weekdays:
                for window in windows:
                    offset = window.start_minutes
                    while offset + duration_minutes <= window.end_minutes:
                        candidate = current.set(hour=offset // 60, minute=offset % 60)
                        if candidate > now and candidate >= earliest_start:
                            starts.append(candidate)
                        offset += step
            current = current.add(days=1)

        ordered: List[DateTime] = []
        for candidate in sorted(starts):
            # Overlapping windows can yield the same start twice
            if not ordered or ordered[-1] != candidate:
                ordered.append(candidate)

        logger.info("Generated %d candidate start times", len(ordered))
        return ordered
