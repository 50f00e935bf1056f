from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

NOT_FOUND_NAME = "Gas station not found nearby"
NOT_FOUND_ADDRESS = "Try stopping a bit earlier or later along the route."


@dataclass(slots=True, frozen=True)
class GeoPoint:
    latitude: float
    longitude: float


@dataclass(slots=True, frozen=True)
class GeocodeResult:
    point: GeoPoint
    label: str
    country_code: str = ""


@dataclass(slots=True, frozen=True)
class RouteData:
    points: list[GeoPoint]
    distance_miles: float
    duration_seconds: float
    geometry: dict[str, Any]


@dataclass(slots=True, frozen=True)
class StopPoint:
    location: GeoPoint
    distance_from_start_miles: float


@dataclass(slots=True, frozen=True)
class FacilityCandidate:
    location: GeoPoint
    name: str | None = None
    brand: str | None = None
    address_fields: Mapping[str, str] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class FoundFacility:
    candidate: FacilityCandidate
    offset_miles: float
    name: str
    address: str


@dataclass(slots=True, frozen=True)
class FacilityNotFound:
    name: str = NOT_FOUND_NAME
    address: str = NOT_FOUND_ADDRESS


FacilityMatch = FoundFacility | FacilityNotFound


@dataclass(slots=True, frozen=True)
class StopResult:
    index: int
    stop: StopPoint
    match: FacilityMatch

    @property
    def name(self) -> str:
        return self.match.name

    @property
    def address(self) -> str:
        return self.match.address

    @property
    def location(self) -> GeoPoint:
        if isinstance(self.match, FoundFacility):
            return self.match.candidate.location
        return self.stop.location

    @property
    def distance_from_start_miles(self) -> float:
        return self.stop.distance_from_start_miles

    @property
    def distance_offset_miles(self) -> float | None:
        if isinstance(self.match, FoundFacility):
            return self.match.offset_miles
        return None


@dataclass(slots=True, frozen=True)
class TripRequest:
    origin_text: str
    destination_text: str
    range_miles: float
    reserve_miles: float
    usable_range_miles: float


@dataclass(slots=True, frozen=True)
class TripPlan:
    origin: GeocodeResult
    destination: GeocodeResult
    route: RouteData
    range_miles: float
    usable_range_miles: float
    stops: list[StopResult]

    @property
    def total_distance_miles(self) -> float:
        return self.route.distance_miles
