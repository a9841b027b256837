"""API error definitions.

Every error a route or service raises on purpose is an ``AppError`` subclass.
The exception handlers in ``lectio.api.responses`` turn them into the
``{success: false, error, details?}`` envelope with the matching status code.
"""

from typing import Any


class AppError(Exception):
    """Base exception for API errors.

    Attributes:
        status_code: HTTP status code returned to the client
        message: Human-readable error message
        details: Optional structured detail (e.g. per-field validation messages)
    """

    status_code: int = 500
    default_message: str = "Internal Server Error"

    def __init__(self, message: str | None = None, *, details: Any = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ValidationError(AppError):
    """Malformed or missing request fields."""

    status_code = 400
    default_message = "Invalid request data"


class AuthError(AppError):
    """Missing or invalid credential."""

    status_code = 401
    default_message = "Invalid or expired token"


class NotFoundError(AppError):
    """Resource absent or not owned by the caller."""

    status_code = 404
    default_message = "Resource not found"


class RateLimitedError(AppError):
    """Too many requests in the current window."""

    status_code = 429
    default_message = "Too many requests. Please wait before making another request."


class UpstreamError(AppError):
    """A database or model-gateway call failed."""

    status_code = 500
    default_message = "An upstream service failed."


class ModelUnavailableError(AppError):
    """The model gateway kept failing after every retry."""

    status_code = 503
    default_message = "AI temporarily unavailable. Please try again shortly."
