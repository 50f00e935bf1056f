class RoutePlannerError(Exception):
    """Base exception for trip planning errors."""


class TripValidationError(RoutePlannerError):
    """Raised when trip inputs are missing or out of range."""


class ExternalServiceError(RoutePlannerError):
    """Raised when an upstream API call fails."""


class LocationNotFoundError(RoutePlannerError):
    """Raised when a place cannot be resolved to coordinates."""


class NoRouteFoundError(RoutePlannerError):
    """Raised when a drivable route cannot be generated."""


class FacilityLookupError(ExternalServiceError):
    """Raised when a nearby facility search fails for a single stop."""
