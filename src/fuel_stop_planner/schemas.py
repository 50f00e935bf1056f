from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class TripPlanRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    origin: str = Field(max_length=300)
    destination: str = Field(max_length=300)
    range_miles: float
    reserve_miles: float = 0.0
    search_radius_miles: float | None = Field(default=None, gt=0.0, le=25.0)


class Coordinate(BaseModel):
    latitude: float
    longitude: float


class EndpointResponse(BaseModel):
    label: str
    location: Coordinate


class StopResponse(BaseModel):
    index: int
    name: str
    address: str
    latitude: float
    longitude: float
    distance_from_start_miles: float
    distance_offset_miles: float | None
    found: bool


class TripPlanResponse(BaseModel):
    origin: EndpointResponse
    destination: EndpointResponse
    total_distance_miles: float
    duration_minutes: float
    range_miles: float
    usable_range_miles: float
    needs_stops: bool
    route_geojson: dict
    stops: list[StopResponse]
