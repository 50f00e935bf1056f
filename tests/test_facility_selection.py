from __future__ import annotations

import pytest

from fuel_stop_planner.services.facility_selection import (
    facility_address,
    facility_name,
    select_nearest,
)
from fuel_stop_planner.services.types import FacilityCandidate, GeoPoint

ORIGIN = GeoPoint(latitude=0.0, longitude=0.0)


def test_select_nearest_returns_closest_candidate(equator_point) -> None:
    candidates = [
        FacilityCandidate(location=equator_point(5.0), name="Five"),
        FacilityCandidate(location=equator_point(2.0), name="Two"),
        FacilityCandidate(location=equator_point(8.0), name="Eight"),
    ]

    candidate, distance = select_nearest(ORIGIN, candidates)

    assert candidate.name == "Two"
    assert distance == pytest.approx(2.0)


def test_select_nearest_breaks_ties_by_input_order(equator_point) -> None:
    east = equator_point(3.0)
    west = GeoPoint(latitude=0.0, longitude=-east.longitude)
    candidates = [
        FacilityCandidate(location=west, name="West"),
        FacilityCandidate(location=east, name="East"),
    ]

    candidate, _ = select_nearest(ORIGIN, candidates)

    assert candidate.name == "West"


def test_select_nearest_requires_candidates() -> None:
    with pytest.raises(ValueError):
        select_nearest(ORIGIN, [])


@pytest.mark.parametrize(
    ("name", "brand", "expected"),
    [
        ("Joe's Fuel", "Shell", "Joe's Fuel"),
        (None, "Shell", "Shell"),
        (None, None, "Gas station"),
    ],
)
def test_facility_name_falls_back_to_brand_then_generic_label(
    name: str | None, brand: str | None, expected: str
) -> None:
    candidate = FacilityCandidate(location=ORIGIN, name=name, brand=brand)

    assert facility_name(candidate) == expected


@pytest.mark.parametrize(
    ("fields", "expected"),
    [
        (
            {"housenumber": "1200", "street": "Main St", "city": "Amarillo", "state": "TX"},
            "1200 Main St, Amarillo, TX",
        ),
        ({"street": "Route 66", "state": "NM"}, "Route 66, NM"),
        ({"housenumber": "42"}, "42"),
        ({"city": "Tucumcari"}, "Tucumcari"),
        ({}, "Address not available"),
    ],
)
def test_facility_address_joins_available_parts(fields: dict[str, str], expected: str) -> None:
    candidate = FacilityCandidate(location=ORIGIN, address_fields=fields)

    assert facility_address(candidate) == expected
