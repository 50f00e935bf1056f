from __future__ import annotations

import math
from collections.abc import Callable

import pytest
from django.core.cache import cache
from django.test import Client

from fuel_stop_planner.services.geo import EARTH_RADIUS_MILES
from fuel_stop_planner.services.types import GeoPoint

MILES_PER_DEGREE_AT_EQUATOR = EARTH_RADIUS_MILES * math.pi / 180.0


@pytest.fixture(autouse=True)
def clear_cache() -> None:
    cache.clear()


@pytest.fixture
def api_client() -> Client:
    return Client()


@pytest.fixture
def equator_point() -> Callable[[float], GeoPoint]:
    """Build a point on the equator the given number of miles east of 0,0."""

    def build(miles: float) -> GeoPoint:
        return GeoPoint(latitude=0.0, longitude=miles / MILES_PER_DEGREE_AT_EQUATOR)

    return build
