"""
Exception Handlers.

Turns exceptions into ErrorResponse bodies. ApplicationError subclasses
map to a status by class (the nearest mapped base class wins), request
validation failures become 422 with per-field details, and anything else
is a 500 whose internals stay hidden unless api_detailed_errors is on.

Usage:
    from modules.backend.core.exception_handlers import register_exception_handlers

    app = FastAPI()
    register_exception_handlers(app)
"""

from collections.abc import Sequence
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from modules.backend.core.exceptions import (
    ApplicationError,
    AuthenticationError,
    ConfigurationError,
    ConflictError,
    DatabaseError,
    ExternalServiceError,
    NotFoundError,
    ReorderFailedError,
    ValidationError,
)
from modules.backend.core.logging import get_logger
from modules.backend.schemas.base import ErrorResponse

logger = get_logger(__name__)

EXCEPTION_STATUS_MAP: dict[type[ApplicationError], int] = {
    NotFoundError: 404,
    ValidationError: 400,
    AuthenticationError: 401,
    ConflictError: 409,
    ConfigurationError: 500,
    ExternalServiceError: 502,
    ReorderFailedError: 502,
    DatabaseError: 503,
}

REQUEST_INVALID_CODE = "VAL_REQUEST_INVALID"
INTERNAL_ERROR_CODE = "SYS_INTERNAL_ERROR"


def status_for(exc: ApplicationError) -> int:
    """HTTP status for an application error; unmapped classes are 500."""
    for cls in type(exc).__mro__:
        if cls in EXCEPTION_STATUS_MAP:
            return EXCEPTION_STATUS_MAP[cls]
    return 500


def _request_id(request: Request) -> str | None:
    """Request ID set by RequestContextMiddleware, else the raw header."""
    return getattr(request.state, "request_id", None) or request.headers.get("x-request-id")


def _detailed_errors_enabled() -> bool:
    from modules.backend.core.config import get_app_config

    return get_app_config().features.api_detailed_errors


def _field_errors(errors: Sequence[dict[str, Any]]) -> list[dict[str, str]]:
    return [
        {
            "field": ".".join(str(part) for part in error.get("loc", ())),
            "message": error.get("msg", "Validation error"),
            "type": error.get("type", "unknown"),
        }
        for error in errors
    ]


def _respond(status_code: int, body: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


async def application_error_handler(request: Request, exc: ApplicationError) -> JSONResponse:
    status_code = status_for(exc)
    context = {
        "code": exc.code,
        "error_message": exc.message,
        "status": status_code,
        "path": request.url.path,
        "method": request.method,
    }
    if status_code >= 500:
        logger.error("Request failed", extra=context)
    else:
        logger.warning("Request rejected", extra=context)

    details = exc.details if isinstance(exc, ValidationError) and exc.details else None
    return _respond(
        status_code,
        ErrorResponse.build(exc.code, exc.message, details=details, request_id=_request_id(request)),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    field_errors = _field_errors(exc.errors())
    logger.warning(
        "Request validation failed",
        extra={
            "path": request.url.path,
            "method": request.method,
            "fields": [error["field"] for error in field_errors],
        },
    )
    return _respond(
        422,
        ErrorResponse.build(
            REQUEST_INVALID_CODE,
            "Request validation failed",
            details={"validation_errors": field_errors},
            request_id=_request_id(request),
        ),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled exception",
        extra={
            "path": request.url.path,
            "method": request.method,
            "exception_type": type(exc).__name__,
        },
    )
    details = None
    if _detailed_errors_enabled():
        details = {"exception_type": type(exc).__name__, "exception": str(exc)}
    return _respond(
        500,
        ErrorResponse.build(
            INTERNAL_ERROR_CODE,
            "An unexpected error occurred",
            details=details,
            request_id=_request_id(request),
        ),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the handlers on ``app``."""
    app.add_exception_handler(ApplicationError, application_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
