from __future__ import annotations

import asyncio
import hashlib
import logging
from typing import Any

import httpx
from django.conf import settings
from django.core.cache import cache

from fuel_stop_planner.exceptions import ExternalServiceError, NoRouteFoundError
from fuel_stop_planner.services.geo import METERS_PER_MILE
from fuel_stop_planner.services.types import GeoPoint, RouteData

logger = logging.getLogger(__name__)

ROUTING_FAILED_MESSAGE = "Routing failed. Check locations and try again."
NO_ROUTE_MESSAGE = "No route found. Check locations and try again."


class OsrmClient:
    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.base_url = settings.OSRM_BASE_URL.rstrip("/")
        self.timeout = settings.OSRM_TIMEOUT_SECONDS
        self.retry_count = settings.OSRM_RETRY_COUNT
        self.transport = transport

    async def route(self, start: GeoPoint, finish: GeoPoint) -> RouteData:
        cache_key = self._cache_key(start, finish)
        cached = await cache.aget(cache_key)
        if cached:
            return self._build_route_data(
                cached["coordinates"], cached["distance_miles"], cached["duration_seconds"]
            )

        coordinates = ";".join(
            f"{point.longitude:.6f},{point.latitude:.6f}" for point in (start, finish)
        )
        endpoint = f"{self.base_url}/route/v1/driving/{coordinates}"
        params = {
            "overview": "full",
            "geometries": "geojson",
            "steps": "false",
            "annotations": "false",
        }

        for attempt in range(self.retry_count + 1):
            try:
                async with httpx.AsyncClient(
                    timeout=self.timeout, transport=self.transport
                ) as client:
                    response = await client.get(endpoint, params=params)
                    if response.is_client_error:
                        self._raise_for_route_code(response)
                    response.raise_for_status()
                    route_data = self._parse_response(self._decode_json(response))
                await cache.aset(
                    cache_key,
                    {
                        "coordinates": route_data.geometry["coordinates"],
                        "distance_miles": route_data.distance_miles,
                        "duration_seconds": route_data.duration_seconds,
                    },
                    timeout=settings.ROUTE_CACHE_TTL_SECONDS,
                )
                return route_data
            except NoRouteFoundError:
                raise
            except httpx.HTTPError as exc:
                if attempt >= self.retry_count:
                    raise ExternalServiceError(ROUTING_FAILED_MESSAGE) from exc
                logger.debug("OSRM attempt %d failed: %s", attempt + 1, exc)
                await asyncio.sleep(0.3 * (attempt + 1))

        raise ExternalServiceError(ROUTING_FAILED_MESSAGE)

    @staticmethod
    def _cache_key(start: GeoPoint, finish: GeoPoint) -> str:
        encoded = "|".join(
            f"{point.latitude:.5f}:{point.longitude:.5f}" for point in (start, finish)
        ).encode()
        digest = hashlib.sha256(encoded).hexdigest()
        return f"route:{digest}"

    @staticmethod
    def _raise_for_route_code(response: httpx.Response) -> None:
        # OSRM answers unroutable requests with a 4xx and a non-"Ok" code
        try:
            payload = response.json()
        except ValueError:
            return
        if isinstance(payload, dict) and payload.get("code") not in (None, "Ok"):
            raise NoRouteFoundError(NO_ROUTE_MESSAGE)

    @staticmethod
    def _decode_json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise ExternalServiceError(ROUTING_FAILED_MESSAGE) from exc

    @classmethod
    def _parse_response(cls, payload: Any) -> RouteData:
        if not isinstance(payload, dict) or payload.get("code") != "Ok":
            raise NoRouteFoundError(NO_ROUTE_MESSAGE)

        routes = payload.get("routes") or []
        if not routes:
            raise NoRouteFoundError(NO_ROUTE_MESSAGE)

        first = routes[0]
        coordinates = [
            [float(lon), float(lat)]
            for lon, lat, *_ in (first.get("geometry") or {}).get("coordinates") or []
        ]
        if len(coordinates) < 2:
            raise NoRouteFoundError(NO_ROUTE_MESSAGE)

        distance_miles = float(first.get("distance", 0.0)) / METERS_PER_MILE
        duration_seconds = float(first.get("duration", 0.0))
        return cls._build_route_data(coordinates, distance_miles, duration_seconds)

    @staticmethod
    def _build_route_data(
        coordinates: list[list[float]], distance_miles: float, duration_seconds: float
    ) -> RouteData:
        return RouteData(
            points=[GeoPoint(latitude=lat, longitude=lon) for lon, lat in coordinates],
            distance_miles=distance_miles,
            duration_seconds=duration_seconds,
            geometry={"type": "LineString", "coordinates": coordinates},
        )
