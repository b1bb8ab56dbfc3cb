"""
Application exception taxonomy.

Every exception carries the HTTP status it maps to and a stable error code.
Extra keyword context is rendered into the error body by the API handlers.
"""

from typing import Any


class AppException(Exception):
    """Base application exception."""

    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(self, message: str = "Internal server error", **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context


class ValidationError(AppException):
    """Malformed input."""

    status_code = 400
    error_code = "validation_error"


class InvalidAliasError(ValidationError):
    """Custom alias does not match the alias pattern."""

    error_code = "invalid_alias"


class UnauthorizedError(AppException):
    """Missing or invalid credentials."""

    status_code = 401
    error_code = "unauthorized"


class ForbiddenError(AppException):
    """Business rule violation."""

    status_code = 403
    error_code = "forbidden"


class QuotaExceededError(ForbiddenError):
    """Creation denied by quota. Carries the usage snapshot."""

    def __init__(self, reason: str, message: str, usage: Any = None):
        super().__init__(message, usage=usage)
        self.error_code = reason
        self.usage = usage


class NotFoundError(AppException):
    """Resource not found exception."""

    status_code = 404
    error_code = "not_found"


class ConflictError(AppException):
    """Duplicate or state conflict."""

    status_code = 409
    error_code = "conflict"


class InvalidTransitionError(ConflictError):
    """Illegal state machine transition."""

    error_code = "invalid_transition"


class GoneError(AppException):
    """Resource existed but has expired."""

    status_code = 410
    error_code = "gone"


class InternalError(AppException):
    """Unexpected internal failure."""

    pass


class StorageError(InternalError):
    """Storage operation error exception."""

    error_code = "storage_error"
