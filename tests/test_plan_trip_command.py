from __future__ import annotations

from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from fuel_stop_planner.exceptions import LocationNotFoundError
from fuel_stop_planner.schemas import (
    Coordinate,
    EndpointResponse,
    StopResponse,
    TripPlanResponse,
)


def _response(stops: list[StopResponse]) -> TripPlanResponse:
    return TripPlanResponse(
        origin=EndpointResponse(label="Austin", location=Coordinate(latitude=30.3, longitude=-97.7)),
        destination=EndpointResponse(
            label="Denver", location=Coordinate(latitude=39.7, longitude=-105.0)
        ),
        total_distance_miles=920.4,
        duration_minutes=800.0,
        range_miles=300.0,
        usable_range_miles=300.0,
        needs_stops=bool(stops),
        route_geojson={"type": "LineString", "coordinates": []},
        stops=stops,
    )


@pytest.fixture
def planner(mocker):
    planner = mocker.Mock()
    mocker.patch(
        "fuel_stop_planner.management.commands.plan_trip.TripPlannerService",
        return_value=planner,
    )
    return planner


def test_plan_trip_command_prints_stops(planner) -> None:
    planner.plan.return_value = _response(
        [
            StopResponse(
                index=1,
                name="Allsup's",
                address="100 Main St, Amarillo, TX",
                latitude=35.2,
                longitude=-101.8,
                distance_from_start_miles=300.1,
                distance_offset_miles=1.3,
                found=True,
            ),
            StopResponse(
                index=2,
                name="Gas station not found nearby",
                address="Try stopping a bit earlier or later along the route.",
                latitude=37.0,
                longitude=-103.5,
                distance_from_start_miles=600.4,
                distance_offset_miles=None,
                found=False,
            ),
        ]
    )
    out = StringIO()

    call_command("plan_trip", "Austin, TX", "Denver, CO", range_miles=300.0, stdout=out)

    output = out.getvalue()
    assert "Total trip distance: 920.4 miles" in output
    assert "Estimated fuel stops needed: 2" in output
    assert "Stop #1: Allsup's" in output
    assert "(~1.3 mi from ideal stop)" in output
    assert "Stop #2: Gas station not found nearby" in output
    request = planner.plan.call_args.args[0]
    assert request.origin == "Austin, TX"
    assert request.reserve_miles == 0.0


def test_plan_trip_command_reports_when_no_stops_needed(planner) -> None:
    planner.plan.return_value = _response([])
    out = StringIO()

    call_command("plan_trip", "Austin, TX", "Houston, TX", range_miles=300.0, stdout=out)

    assert "don't need any fuel stops" in out.getvalue()


def test_plan_trip_command_surfaces_planner_errors(planner) -> None:
    planner.plan.side_effect = LocationNotFoundError("Location not found: Atlantis")

    with pytest.raises(CommandError, match="Location not found: Atlantis"):
        call_command("plan_trip", "Atlantis", "Denver, CO", range_miles=300.0, stdout=StringIO())
