"""
Domain exceptions raised by the services.
ParkingError subclasses carry the HTTP status and machine code the API
exception handler renders; the two provider/connectivity failures are
recovered where they happen and never reach an API caller.
"""


class ParkingError(Exception):
    """Base class for errors surfaced to API callers."""
    status_code = 500
    code = "internal_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ParkingError):
    """Malformed input, rejected before any mutation."""
    status_code = 400
    code = "validation_error"


class NotFound(ParkingError):
    status_code = 404
    code = "not_found"


class RateLimited(ParkingError):
    status_code = 429
    code = "rate_limited"


class CapacityExceeded(ParkingError):
    status_code = 422
    code = "capacity_exceeded"


class NoAvailability(ParkingError):
    """No zone can take the requested vehicle type right now. An expected outcome."""
    status_code = 404
    code = "no_availability"


class ExternalProviderFailure(Exception):
    """Traffic fetch failed. Always recovered with synthetic data."""


class ProviderNotConfigured(ExternalProviderFailure):
    """No traffic API key configured for this deployment."""


class ConnectivityFailure(Exception):
    """Backend unreachable from a client-side consumer (geofence dispatch)."""
