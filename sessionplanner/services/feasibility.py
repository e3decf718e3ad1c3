"""
Feasibility checks for scheduling requests.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from pendulum import DateTime

from ..domain.models import CandidateSlot, FeasibilityResult, SchedulingRequest
from .mutual_availability import MutualAvailabilityFinder

logger = logging.getLogger(__name__)

HEADROOM_FACTOR = 2
FLEXIBILITY_FACTOR = 1.5


def average_gap_days(slots: Sequence[CandidateSlot]) -> float:
    """Mean distance in days between consecutive slots."""
    if len(slots) < 2:
        return 0.0

    total = sum(
        (later.start - earlier.start).total_seconds() / 86400
        for earlier, later in zip(slots, slots[1:])
    )
    return total / (len(slots) - 1)


class FeasibilityValidator:
    """
    Decides whether a request can be scheduled and explains why not.

    The finder is probed for twice the requested count so that the result
    also says something about how much room is left.
    """

    def __init__(self, finder: MutualAvailabilityFinder) -> None:
        self._finder = finder

    async def validate(
        self,
        request: SchedulingRequest,
        *,
        now: DateTime | None = None,
        preference_errors: Sequence[str] = (),
    ) -> FeasibilityResult:
        """Probe availability and build warnings and recommendations."""
        logger.info("Validating feasibility for %d sessions", request.sessions_needed)

        warnings: List[str] = list(preference_errors)
        recommendations: List[str] = []

        slots = await self._finder.find_mutual_slots(
            request.party_a_id,
            request.party_b_id,
            request.weekdays,
            request.time_windows,
            request.sessions_needed * HEADROOM_FACTOR,
            request.session_duration_minutes,
            now=now,
        )

        available = len(slots)
        requested = request.sessions_needed
        is_feasible = available >= requested

        if available == 0:
            warnings.append("No available time slots found with current preferences")
            recommendations.append("Try expanding preferred days or time ranges")
        elif available < requested:
            warnings.append(f"Only {available} of {requested} requested slots are available")
            recommendations.append(
                f"Consider reducing session count to {available} or expanding time preferences"
            )
        elif available < requested * FLEXIBILITY_FACTOR:
            warnings.append("Limited scheduling flexibility - very few alternative slots available")
            recommendations.append("Consider expanding time preferences for more flexibility")

        if available >= 2:
            gap = average_gap_days(slots)
            if gap < request.min_days_between:
                warnings.append(
                    f"Sessions may be scheduled closer than {request.min_days_between} days apart"
                )
            elif gap > request.max_days_between:
                warnings.append(
                    f"Sessions may be scheduled further than {request.max_days_between} days apart"
                )
                recommendations.append(
                    "Consider adding more preferred days to allow more frequent sessions"
                )

        result = FeasibilityResult(
            is_feasible=is_feasible,
            available_count=available,
            requested_count=requested,
            warnings=warnings,
            recommendations=recommendations,
        )

        logger.info(
            "Feasibility check complete: %s, %d/%d slots available",
            result.is_feasible, result.available_count, result.requested_count,
        )
        return result
