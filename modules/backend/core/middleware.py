"""
Request Context Middleware.

Gives every request an ID, identifies which frontend sent it, and binds
both to the structlog context so that every log line written while the
request is handled carries them.
"""

import uuid
from datetime import datetime

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from modules.backend.core.logging import get_logger
from modules.backend.core.utils import utc_now

logger = get_logger(__name__)

# Values accepted in X-Frontend-ID; anything else is logged as "unknown"
KNOWN_FRONTENDS = frozenset({"web", "cli", "api", "internal"})


def resolve_frontend(header_value: str | None) -> str:
    """Normalize the X-Frontend-ID header to a known frontend name."""
    frontend = (header_value or "").strip().lower()
    return frontend if frontend in KNOWN_FRONTENDS else "unknown"


def _elapsed_ms(start: datetime) -> int:
    return int((utc_now() - start).total_seconds() * 1000)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Binds request context and stamps tracing headers on the response.

    Request state set for handlers:
        request.state.request_id  X-Request-ID from the caller, or a new UUID
        request.state.frontend    web, cli, api, internal or unknown
        request.state.start_time  naive UTC start time

    Response headers added: X-Request-ID, X-Response-Time.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        frontend = resolve_frontend(request.headers.get("X-Frontend-ID"))
        started = utc_now()

        request.state.request_id = request_id
        request.state.frontend = frontend
        request.state.start_time = started

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            frontend=frontend,
            method=request.method,
            path=request.url.path,
        )
        logger.debug(
            "Request started",
            extra={"client_host": request.client.host if request.client else None},
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "Request failed with exception",
                extra={"duration_ms": _elapsed_ms(started), "error_type": type(exc).__name__},
            )
            raise
        else:
            duration_ms = _elapsed_ms(started)
            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{duration_ms}ms"
            logger.debug(
                "Request completed",
                extra={"status_code": response.status_code, "duration_ms": duration_ms},
            )
            return response
        finally:
            structlog.contextvars.clear_contextvars()
