from __future__ import annotations

import asyncio
import hashlib
import logging
from typing import Any

import httpx
from django.conf import settings
from django.core.cache import cache

from fuel_stop_planner.exceptions import FacilityLookupError
from fuel_stop_planner.services.geo import METERS_PER_MILE
from fuel_stop_planner.services.types import FacilityCandidate, GeoPoint

logger = logging.getLogger(__name__)

ADDRESS_TAG_PREFIX = "addr:"
ADDRESS_FIELDS = ("housenumber", "street", "city", "state")


class OverpassClient:
    """Finds fuel stations around a point using the Overpass API."""

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.base_url = settings.OVERPASS_BASE_URL.rstrip("/")
        self.timeout = settings.OVERPASS_TIMEOUT_SECONDS
        self.retry_count = settings.OVERPASS_RETRY_COUNT
        self.amenity = settings.FACILITY_AMENITY
        self.transport = transport

    async def search_nearby(self, point: GeoPoint, radius_miles: float) -> list[FacilityCandidate]:
        radius_meters = round(radius_miles * METERS_PER_MILE)
        cache_key = self._cache_key(point, radius_meters, self.amenity)
        cached = await cache.aget(cache_key)
        if cached is not None:
            return self._parse_elements(cached)

        query = self._build_query(point, radius_meters)

        for attempt in range(self.retry_count + 1):
            try:
                async with httpx.AsyncClient(
                    timeout=self.timeout, transport=self.transport
                ) as client:
                    response = await client.post(
                        f"{self.base_url}/interpreter",
                        data={"data": query},
                        headers={"Accept": "application/json"},
                    )
                    response.raise_for_status()
                    try:
                        payload = response.json()
                    except ValueError as exc:
                        raise FacilityLookupError("Facility search returned invalid JSON") from exc
                if not isinstance(payload, dict):
                    payload = {}
                elements = payload.get("elements") or []
                # a remark means the query failed server side, e.g. a timeout
                if payload.get("remark"):
                    logger.warning("Overpass returned a remark: %s", payload["remark"])
                else:
                    await cache.aset(
                        cache_key, elements, timeout=settings.FACILITY_CACHE_TTL_SECONDS
                    )
                return self._parse_elements(elements)
            except httpx.HTTPError as exc:
                if attempt >= self.retry_count:
                    raise FacilityLookupError("Facility search request failed") from exc
                logger.debug("Overpass attempt %d failed: %s", attempt + 1, exc)
                await asyncio.sleep(0.5 * (attempt + 1))

        raise FacilityLookupError("Facility search request failed")

    def _build_query(self, point: GeoPoint, radius_meters: int) -> str:
        around = f"(around:{radius_meters},{point.latitude:.6f},{point.longitude:.6f})"
        selector = f'["amenity"="{self.amenity}"]'
        return (
            f"[out:json][timeout:{int(self.timeout)}];\n"
            "(\n"
            f"  node{selector}{around};\n"
            f"  way{selector}{around};\n"
            ");\n"
            "out center;"
        )

    @staticmethod
    def _cache_key(point: GeoPoint, radius_meters: int, amenity: str) -> str:
        encoded = f"{point.latitude:.5f}:{point.longitude:.5f}|{radius_meters}|{amenity}".encode()
        digest = hashlib.sha256(encoded).hexdigest()
        return f"facilities:{digest}"

    @staticmethod
    def _parse_elements(elements: list[dict[str, Any]]) -> list[FacilityCandidate]:
        candidates: list[FacilityCandidate] = []
        for element in elements:
            # ways only carry a computed center
            position = element if "lat" in element else element.get("center") or {}
            try:
                latitude = float(position["lat"])
                longitude = float(position["lon"])
            except (KeyError, TypeError, ValueError):
                continue

            tags = element.get("tags") or {}
            candidates.append(
                FacilityCandidate(
                    location=GeoPoint(latitude=latitude, longitude=longitude),
                    name=tags.get("name") or None,
                    brand=tags.get("brand") or None,
                    address_fields={
                        field: str(tags[ADDRESS_TAG_PREFIX + field])
                        for field in ADDRESS_FIELDS
                        if tags.get(ADDRESS_TAG_PREFIX + field)
                    },
                )
            )
        return candidates
