from __future__ import annotations

from collections.abc import Sequence

from fuel_stop_planner.services.geo import distance_between
from fuel_stop_planner.services.types import FacilityCandidate, GeoPoint

DEFAULT_FACILITY_NAME = "Gas station"
ADDRESS_NOT_AVAILABLE = "Address not available"


def select_nearest(
    origin: GeoPoint, candidates: Sequence[FacilityCandidate]
) -> tuple[FacilityCandidate, float]:
    if not candidates:
        raise ValueError("At least one facility candidate is required")

    best = candidates[0]
    best_distance = distance_between(origin, best.location)

    for candidate in candidates[1:]:
        distance = distance_between(origin, candidate.location)
        if distance < best_distance:
            best = candidate
            best_distance = distance

    return best, best_distance


def facility_name(candidate: FacilityCandidate) -> str:
    return candidate.name or candidate.brand or DEFAULT_FACILITY_NAME


def facility_address(candidate: FacilityCandidate) -> str:
    fields = candidate.address_fields
    parts: list[str] = []

    housenumber = fields.get("housenumber", "")
    street = fields.get("street", "")
    if housenumber or street:
        parts.append(f"{housenumber} {street}".strip())
    if fields.get("city"):
        parts.append(fields["city"])
    if fields.get("state"):
        parts.append(fields["state"])

    return ", ".join(parts) or ADDRESS_NOT_AVAILABLE
