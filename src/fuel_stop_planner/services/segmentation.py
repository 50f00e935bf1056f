from __future__ import annotations

from collections.abc import Sequence

from fuel_stop_planner.services.geo import distance_between
from fuel_stop_planner.services.types import GeoPoint, StopPoint

EPSILON = 1e-6


def compute_stop_points(
    points: Sequence[GeoPoint], usable_range_miles: float
) -> list[StopPoint]:
    """Walk the route and place a stop each time the usable range is used up.

    Stops always land on a route vertex, so a single segment longer than the
    usable range still produces one stop at its far end.
    """
    stops: list[StopPoint] = []
    if len(points) < 2:
        return stops

    distance_since_last_stop = 0.0
    cumulative_distance = 0.0

    for index in range(1, len(points)):
        segment_miles = distance_between(points[index - 1], points[index])
        distance_since_last_stop += segment_miles
        cumulative_distance += segment_miles

        if distance_since_last_stop + EPSILON >= usable_range_miles:
            stops.append(
                StopPoint(
                    location=points[index],
                    distance_from_start_miles=cumulative_distance,
                )
            )
            distance_since_last_stop = 0.0

    return stops
