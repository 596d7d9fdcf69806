"""Domain errors surfaced to API callers.

Each error carries the HTTP status it maps to. The handler registered in
``app.main`` renders them as ``{success: false, message, error, debug?}``.
"""

from typing import Any


class AppError(Exception):
    """Base class for errors that are reported to the caller."""

    status_code: int = 500
    error: str = "InternalError"

    def __init__(self, message: str, debug: Any = None):
        super().__init__(message)
        self.message = message
        self.debug = debug

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"success": False, "message": self.message, "error": self.error}
        if self.debug is not None:
            payload["debug"] = self.debug
        return payload


class NotFoundError(AppError):
    """Workspace, task or user absent."""

    status_code = 404
    error = "NotFound"


class ForbiddenError(AppError):
    """Access-control denial."""

    status_code = 403
    error = "Forbidden"


class AuthenticationError(AppError):
    """Caller could not be identified, or credentials were rejected."""

    status_code = 401
    error = "Unauthenticated"


class ValidationError(AppError):
    """Missing or malformed required field."""

    status_code = 400
    error = "ValidationError"


class ConflictError(AppError):
    """Uniqueness violation, e.g. duplicate signup email."""

    status_code = 409
    error = "Conflict"


class PayloadTooLargeError(AppError):
    """Attachment exceeds the configured size cap."""

    status_code = 413
    error = "PayloadTooLarge"


class UpstreamUnavailableError(AppError):
    """Mail transport or OAuth provider not configured or unreachable."""

    status_code = 503
    error = "UpstreamUnavailable"
