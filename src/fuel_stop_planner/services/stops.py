from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

from fuel_stop_planner.services.facility_selection import (
    facility_address,
    facility_name,
    select_nearest,
)
from fuel_stop_planner.services.types import (
    FacilityCandidate,
    FacilityMatch,
    FacilityNotFound,
    FoundFacility,
    GeoPoint,
    StopPoint,
    StopResult,
)

logger = logging.getLogger(__name__)

FacilitySearch = Callable[[GeoPoint, float], Awaitable[Sequence[FacilityCandidate]]]


async def plan_stops(
    stop_points: Sequence[StopPoint],
    search_radius_miles: float,
    facility_search: FacilitySearch,
) -> list[StopResult]:
    """Look up the nearest facility for every stop point concurrently.

    A lookup that fails or finds nothing only affects its own stop. Results
    keep the order of ``stop_points``.
    """
    outcomes = await asyncio.gather(
        *(facility_search(stop.location, search_radius_miles) for stop in stop_points),
        return_exceptions=True,
    )

    return [
        StopResult(index=index, stop=stop, match=_match_facility(index, stop, outcome))
        for index, (stop, outcome) in enumerate(zip(stop_points, outcomes), start=1)
    ]


def _match_facility(
    index: int,
    stop: StopPoint,
    outcome: Sequence[FacilityCandidate] | BaseException,
) -> FacilityMatch:
    if isinstance(outcome, BaseException):
        if not isinstance(outcome, Exception):
            raise outcome
        logger.warning(
            "Facility lookup failed for stop %d near %.5f,%.5f: %s",
            index,
            stop.location.latitude,
            stop.location.longitude,
            outcome,
        )
        return FacilityNotFound()

    if not outcome:
        logger.info("No facility found near stop %d", index)
        return FacilityNotFound()

    candidate, offset_miles = select_nearest(stop.location, outcome)
    return FoundFacility(
        candidate=candidate,
        offset_miles=offset_miles,
        name=facility_name(candidate),
        address=facility_address(candidate),
    )
