from __future__ import annotations

import asyncio
import logging
import math

from asgiref.sync import async_to_sync
from django.conf import settings

from fuel_stop_planner.exceptions import TripValidationError
from fuel_stop_planner.schemas import (
    Coordinate,
    EndpointResponse,
    StopResponse,
    TripPlanRequest,
    TripPlanResponse,
)
from fuel_stop_planner.services.geocoding import GeocodingClient
from fuel_stop_planner.services.osrm import OsrmClient
from fuel_stop_planner.services.overpass import OverpassClient
from fuel_stop_planner.services.segmentation import compute_stop_points
from fuel_stop_planner.services.stops import plan_stops
from fuel_stop_planner.services.types import (
    FoundFacility,
    GeocodeResult,
    TripPlan,
    TripRequest,
)

logger = logging.getLogger(__name__)


def validate_trip_request(
    origin_text: str,
    destination_text: str,
    range_miles: float,
    reserve_miles: float = 0.0,
) -> TripRequest:
    """Check trip inputs before any network call is made."""
    origin_text = (origin_text or "").strip()
    destination_text = (destination_text or "").strip()

    if (
        not origin_text
        or not destination_text
        or not math.isfinite(range_miles)
        or range_miles <= 0
    ):
        raise TripValidationError("Please fill in origin, destination, and a valid range.")

    if not math.isfinite(reserve_miles) or reserve_miles < 0:
        raise TripValidationError("Reserve buffer cannot be negative.")

    if reserve_miles >= range_miles:
        raise TripValidationError("Reserve buffer must be less than the range per tank.")

    usable_range_miles = range_miles - reserve_miles
    if usable_range_miles < float(settings.MIN_USABLE_RANGE_MILES):
        raise TripValidationError(
            "Usable range is too small. Increase range or decrease reserve."
        )

    return TripRequest(
        origin_text=origin_text,
        destination_text=destination_text,
        range_miles=range_miles,
        reserve_miles=reserve_miles,
        usable_range_miles=usable_range_miles,
    )


class TripPlannerService:
    def __init__(
        self,
        geocoding_client: GeocodingClient | None = None,
        osrm_client: OsrmClient | None = None,
        overpass_client: OverpassClient | None = None,
    ) -> None:
        self.geocoding_client = geocoding_client or GeocodingClient()
        self.osrm_client = osrm_client or OsrmClient()
        self.overpass_client = overpass_client or OverpassClient()

    async def plan_trip(
        self,
        origin_text: str,
        destination_text: str,
        range_miles: float,
        reserve_miles: float = 0.0,
        search_radius_miles: float | None = None,
    ) -> TripPlan:
        trip = validate_trip_request(origin_text, destination_text, range_miles, reserve_miles)
        search_radius_miles = search_radius_miles or float(settings.FACILITY_SEARCH_RADIUS_MILES)

        logger.info(
            "Planning trip from %r to %r with usable range %.1f mi",
            trip.origin_text,
            trip.destination_text,
            trip.usable_range_miles,
        )

        origin, destination = await asyncio.gather(
            self.geocoding_client.geocode(trip.origin_text),
            self.geocoding_client.geocode(trip.destination_text),
        )

        route = await self.osrm_client.route(origin.point, destination.point)
        stop_points = compute_stop_points(route.points, trip.usable_range_miles)

        stops = []
        if stop_points:
            stops = await plan_stops(
                stop_points, search_radius_miles, self.overpass_client.search_nearby
            )

        logger.info(
            "Planned %.1f mi trip with %d fuel stop(s)", route.distance_miles, len(stops)
        )
        return TripPlan(
            origin=origin,
            destination=destination,
            route=route,
            range_miles=trip.range_miles,
            usable_range_miles=trip.usable_range_miles,
            stops=stops,
        )

    def plan(self, request: TripPlanRequest) -> TripPlanResponse:
        trip_plan = async_to_sync(self.plan_trip)(
            request.origin,
            request.destination,
            request.range_miles,
            request.reserve_miles,
            request.search_radius_miles,
        )

        stops = [
            StopResponse(
                index=stop.index,
                name=stop.name,
                address=stop.address,
                latitude=round(stop.location.latitude, 6),
                longitude=round(stop.location.longitude, 6),
                distance_from_start_miles=round(stop.distance_from_start_miles, 1),
                distance_offset_miles=(
                    None
                    if stop.distance_offset_miles is None
                    else round(stop.distance_offset_miles, 1)
                ),
                found=isinstance(stop.match, FoundFacility),
            )
            for stop in trip_plan.stops
        ]

        return TripPlanResponse(
            origin=_endpoint_response(trip_plan.origin),
            destination=_endpoint_response(trip_plan.destination),
            total_distance_miles=round(trip_plan.total_distance_miles, 1),
            duration_minutes=round(trip_plan.route.duration_seconds / 60.0, 2),
            range_miles=trip_plan.range_miles,
            usable_range_miles=trip_plan.usable_range_miles,
            needs_stops=bool(stops),
            route_geojson=trip_plan.route.geometry,
            stops=stops,
        )


def _endpoint_response(result: GeocodeResult) -> EndpointResponse:
    return EndpointResponse(
        label=result.label,
        location=Coordinate(
            latitude=round(result.point.latitude, 6),
            longitude=round(result.point.longitude, 6),
        ),
    )
