"""
Custom Exceptions.

Every error the service raises on purpose is an ApplicationError. The
class decides the error code (and, in exception_handlers, the HTTP
status); the message is for humans and may be overridden per raise.
"""

from typing import Any


class ApplicationError(Exception):
    """Base class. Unmapped subclasses surface as 500."""

    code = "SYS_INTERNAL_ERROR"
    default_message = "Internal error"

    def __init__(self, message: str | None = None, code: str | None = None) -> None:
        self.message = message or self.default_message
        if code is not None:
            self.code = code
        super().__init__(self.message)


class NotFoundError(ApplicationError):
    code = "RES_NOT_FOUND"
    default_message = "Resource not found"


class ValidationError(ApplicationError):
    """Domain-level validation failure; ``details`` are returned to the caller."""

    code = "VAL_VALIDATION_ERROR"
    default_message = "Validation failed"

    def __init__(self, message: str | None = None, details: dict[str, Any] | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class AuthenticationError(ApplicationError):
    code = "AUTH_UNAUTHORIZED"
    default_message = "Authentication required"


class ConflictError(ApplicationError):
    code = "RES_CONFLICT"
    default_message = "Resource conflict"


class ExternalServiceError(ApplicationError):
    code = "SYS_EXTERNAL_SERVICE_ERROR"
    default_message = "External service error"


class DatabaseError(ApplicationError):
    code = "SYS_DATABASE_ERROR"
    default_message = "Database error"


class ConfigurationError(ApplicationError):
    """Required server configuration (admin credentials, secrets) is missing."""

    code = "SYS_CONFIG_ERROR"
    default_message = "Server configuration error"


class ReorderFailedError(ApplicationError):
    """
    A reorder batch could not be applied.

    By the time this reaches the caller the speculative order has been
    discarded and the authoritative snapshot re-fetched.
    """

    code = "LIST_REORDER_FAILED"
    default_message = "Failed to reorder opportunities"
