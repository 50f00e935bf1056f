from __future__ import annotations

import asyncio
import hashlib
import logging
from typing import Any

import httpx
from django.conf import settings
from django.core.cache import cache

from fuel_stop_planner.exceptions import ExternalServiceError, LocationNotFoundError
from fuel_stop_planner.services.types import GeocodeResult, GeoPoint

logger = logging.getLogger(__name__)


class GeocodingClient:
    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.base_url = settings.GEOCODING_BASE_URL.rstrip("/")
        self.timeout = settings.GEOCODING_TIMEOUT_SECONDS
        self.retry_count = settings.GEOCODING_RETRY_COUNT
        self.user_agent = settings.GEOCODING_USER_AGENT
        self.country_code = settings.GEOCODING_COUNTRY_CODE
        self.transport = transport

    async def geocode(self, query: str, *, country_code: str | None = None) -> GeocodeResult:
        if country_code is None:
            country_code = self.country_code

        cache_key = self._cache_key(query, country_code)
        cached = await cache.aget(cache_key)
        if cached:
            return GeocodeResult(
                point=GeoPoint(latitude=cached["latitude"], longitude=cached["longitude"]),
                label=cached["label"],
                country_code=cached["country_code"],
            )

        params = {
            "q": query,
            "format": "jsonv2",
            "limit": 1,
            "addressdetails": 1,
        }
        if country_code:
            params["countrycodes"] = country_code

        for attempt in range(self.retry_count + 1):
            try:
                async with httpx.AsyncClient(
                    timeout=self.timeout, transport=self.transport
                ) as client:
                    response = await client.get(
                        f"{self.base_url}/search",
                        params=params,
                        headers={
                            "Accept": "application/json",
                            "User-Agent": self.user_agent,
                        },
                    )
                    response.raise_for_status()
                    try:
                        payload = response.json()
                    except ValueError as exc:
                        raise ExternalServiceError(
                            f"Geocoding failed for: {query}. Try again."
                        ) from exc
                result = self._parse_result(payload, query, country_code)
                await cache.aset(
                    cache_key,
                    {
                        "latitude": result.point.latitude,
                        "longitude": result.point.longitude,
                        "label": result.label,
                        "country_code": result.country_code,
                    },
                    timeout=settings.GEOCODE_CACHE_TTL_SECONDS,
                )
                return result
            except LocationNotFoundError:
                raise
            except httpx.HTTPError as exc:
                if attempt >= self.retry_count:
                    raise ExternalServiceError(
                        f"Geocoding failed for: {query}. Try again."
                    ) from exc
                logger.debug("Geocoding attempt %d for %r failed: %s", attempt + 1, query, exc)
                await asyncio.sleep(0.3 * (attempt + 1))

        raise ExternalServiceError(f"Geocoding failed for: {query}. Try again.")

    @staticmethod
    def _cache_key(query: str, country_code: str) -> str:
        digest = hashlib.sha256(f"{query.lower()}|{country_code}".encode()).hexdigest()
        return f"geocode:{digest}"

    @staticmethod
    def _parse_result(payload: Any, query: str, expected_country: str) -> GeocodeResult:
        if not isinstance(payload, list) or not payload:
            raise LocationNotFoundError(f"Location not found: {query}")

        first = payload[0]
        try:
            latitude = float(first["lat"])
            longitude = float(first["lon"])
        except (KeyError, TypeError, ValueError) as exc:
            raise LocationNotFoundError(f"Location not found: {query}") from exc

        country_code = str(first.get("address", {}).get("country_code", "")).lower()
        if expected_country and country_code and country_code != expected_country.lower():
            raise LocationNotFoundError(f"Location not found: {query}")

        return GeocodeResult(
            point=GeoPoint(latitude=latitude, longitude=longitude),
            label=str(first.get("display_name") or query),
            country_code=country_code,
        )
