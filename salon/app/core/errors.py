"""
Error taxonomy for the salon API.

Every domain error carries a short user-facing ``error`` string, an optional
``details`` string derived from the underlying failure, and the HTTP status
the transport layer should answer with. Handlers in ``salon.app.api.envelope``
turn them into the uniform JSON envelope.
"""

from typing import Optional


class SalonError(Exception):
    """Base class for all errors surfaced through the API envelope."""

    status_code: int = 500
    default_error: str = "Internal error"

    def __init__(self, error: Optional[str] = None, details: Optional[str] = None):
        self.error = error or self.default_error
        self.details = details
        super().__init__(self.error if details is None else f"{self.error}: {details}")


class DataUnavailable(SalonError):
    """Backing store is unreachable."""

    status_code = 503
    default_error = "Database unavailable"


class ConfigurationError(DataUnavailable):
    """
    Backing store is not configured at all.

    Answered with 200 and ``success: false`` so pages render an empty state
    instead of an error screen.
    """

    status_code = 200
    default_error = "Database not configured"


class NotFoundError(SalonError):
    status_code = 404
    default_error = "Not found"


class ValidationError(SalonError):
    status_code = 400
    default_error = "Invalid request"


class ConflictError(SalonError):
    status_code = 409
    default_error = "Conflict"


class QueryFailed(SalonError):
    """A read or write against the store returned an error."""

    status_code = 500
    default_error = "Database query failed"


class AuthError(SalonError):
    """Missing, invalid or expired session, or bad credentials."""

    status_code = 401
    default_error = "Not authenticated"
