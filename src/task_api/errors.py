"""
Error taxonomy shared by services, the auth dependency and the HTTP layer.

Every ApiError knows its HTTP status code and renders itself into the JSON
envelope ``{"status": false, "message": ..., "errors": {...}}``; the
exception handlers registered in ``main`` do nothing more than call
``to_envelope()``.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

FieldErrors = Dict[str, List[str]]


class ApiError(Exception):
    """Base class for errors that are rendered to clients."""

    status_code: int = 500
    default_message: str = "Server Error"

    def __init__(self, message: Optional[str] = None, errors: Optional[FieldErrors] = None) -> None:
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)

    def to_envelope(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"status": False, "message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationError(ApiError):
    """One or more request fields violated their rules."""

    status_code = 422
    default_message = "Request Failed"

    def __init__(self, errors: FieldErrors, message: Optional[str] = None) -> None:
        super().__init__(message, errors)


class AuthenticationError(ApiError):
    """Missing, malformed, expired or revoked bearer token."""

    status_code = 401
    default_message = "Unauthenticated."


class InvalidCredentialsError(ApiError):
    # Same message for unknown email and wrong password.
    status_code = 401
    default_message = "Unauthorized"


class AuthorizationError(ApiError):
    """Authenticated, but not the owner of the resource."""

    status_code = 403
    default_message = "Unauthorized Action"


class NotFoundError(ApiError):
    status_code = 404
    default_message = "Not Found"


class ConflictError(Exception):
    """
    Raised by storage backends when a uniqueness constraint is violated.

    Not an ApiError: services translate it into a ValidationError on the
    offending field.
    """

    def __init__(self, field: str, value: Any) -> None:
        self.field = field
        self.value = value
        super().__init__(f"duplicate value for {field}")
