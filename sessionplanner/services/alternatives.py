"""
Relaxed preference sets offered when a request cannot be fulfilled.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from pendulum import DateTime

from ..domain.models import (
    WEEKEND,
    AlternativeOption,
    SchedulingRequest,
    TimeWindow,
    WeekdaySet,
    format_weekdays,
)
from .mutual_availability import MutualAvailabilityFinder

logger = logging.getLogger(__name__)

EARLIEST_EXPANDED_MINUTES = 6 * 60
LATEST_EXPANDED_MINUTES = 23 * 60


def expand_with_adjacent_days(weekdays: WeekdaySet) -> WeekdaySet:
    """
    Add the day before and after each weekday.

    Weekend days are only kept when they were part of the original set.
    """
    expanded = set(weekdays)
    for day in weekdays:
        expanded.add(day.previous())
        expanded.add(day.next())

    for day in WEEKEND:
        if day not in weekdays:
            expanded.discard(day)

    return frozenset(expanded)


def expand_time_windows(windows: Sequence[TimeWindow], hours: int = 1) -> List[TimeWindow]:
    """
    Widen every window on both sides, clamped to 06:00 - 23:00.

    A window already reaching past the clamp bounds keeps its original edge.
    """
    delta = hours * 60
    expanded: List[TimeWindow] = []

    for window in windows:
        start = min(window.start_minutes, max(EARLIEST_EXPANDED_MINUTES, window.start_minutes - delta))
        end = max(window.end_minutes, min(LATEST_EXPANDED_MINUTES, window.end_minutes + delta))
        widened = TimeWindow.from_minutes(start, end)
        if widened not in expanded:
            expanded.append(widened)

    return expanded


class AlternativeOptionGenerator:
    """
    Tests up to three relaxed variants of a request.

    A variant is only offered when it unlocks at least the requested number
    of sessions. Options come back ordered by descending confidence.
    """

    def __init__(self, finder: MutualAvailabilityFinder) -> None:
        self._finder = finder

    async def generate(
        self,
        request: SchedulingRequest,
        *,
        now: DateTime | None = None,
    ) -> List[AlternativeOption]:
        logger.info("Generating alternative scheduling options")

        alternatives: List[AlternativeOption] = []
        original_days = request.weekdays
        original_windows = list(request.time_windows)

        # 1. Adjacent days
        expanded_days = expand_with_adjacent_days(original_days)
        if len(expanded_days) > len(original_days):
            option = await self._try_variant(
                request,
                expanded_days,
                original_windows,
                description=f"Add {format_weekdays(expanded_days - original_days)} to available days",
                confidence=0.8,
                deviation=0.2,
                now=now,
            )
            if option:
                alternatives.append(option)

        # 2. Wider time windows
        expanded_windows = expand_time_windows(original_windows, hours=1)
        if expanded_windows != original_windows:
            option = await self._try_variant(
                request,
                original_days,
                expanded_windows,
                description="Expand time windows by 1 hour",
                confidence=0.7,
                deviation=0.3,
                now=now,
            )
            if option:
                alternatives.append(option)

        # 3. Weekends
        if not original_days & WEEKEND:
            option = await self._try_variant(
                request,
                original_days | WEEKEND,
                original_windows,
                description="Include weekends (Saturday, Sunday)",
                confidence=0.6,
                deviation=0.4,
                now=now,
            )
            if option:
                alternatives.append(option)

        logger.info("Generated %d alternative options", len(alternatives))
        return sorted(alternatives, key=lambda a: a.confidence_score, reverse=True)

    async def _try_variant(
        self,
        request: SchedulingRequest,
        weekdays: WeekdaySet,
        windows: List[TimeWindow],
        *,
        description: str,
        confidence: float,
        deviation: float,
        now: DateTime | None,
    ) -> AlternativeOption | None:
        slots = await self._finder.find_mutual_slots(
            request.party_a_id,
            request.party_b_id,
            weekdays,
            windows,
            request.sessions_needed,
            request.session_duration_minutes,
            now=now,
        )

        if len(slots) < request.sessions_needed:
            logger.debug("Variant '%s' unlocks only %d slots", description, len(slots))
            return None

        return AlternativeOption(
            description=description,
            relaxed_weekdays=weekdays,
            relaxed_time_windows=windows,
            available_count=len(slots),
            confidence_score=confidence,
            deviation_score=deviation,
        )
