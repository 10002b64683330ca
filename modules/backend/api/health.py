"""
Health Check Endpoints.

    GET /health           liveness, no dependency checks
    GET /health/ready     503 unless every enabled dependency answers
    GET /health/detailed  per-dependency results with app identity and flags

The event bus Redis is probed only when events are enabled; otherwise it
reports "disabled", which never blocks readiness.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import APIRouter, HTTPException
from sqlalchemy import text

from modules.backend.core.config import get_app_config
from modules.backend.core.logging import get_logger
from modules.backend.core.utils import utc_now

router = APIRouter()
logger = get_logger(__name__)

FAILING_STATUSES = frozenset({"unhealthy", "error"})


async def _timed(component: str, probe: Callable[[], Awaitable[None]]) -> dict[str, Any]:
    """Run ``probe``; report healthy with latency, or unhealthy with the error."""
    started = utc_now()
    try:
        await probe()
    except Exception as e:
        logger.warning("Dependency check failed", extra={"component": component, "error": str(e)})
        return {"status": "unhealthy", "error": str(e)}
    elapsed = utc_now() - started
    return {"status": "healthy", "latency_ms": int(elapsed.total_seconds() * 1000)}


async def check_database() -> dict[str, Any]:
    """Round-trip ``SELECT 1`` on a fresh session."""
    from modules.backend.core.database import get_session_factory

    async def probe() -> None:
        async with get_session_factory()() as session:
            await session.execute(text("SELECT 1"))

    return await _timed("database", probe)


async def check_redis() -> dict[str, Any]:
    """PING the event bus Redis."""
    if not get_app_config().features.events_enabled:
        return {"status": "disabled"}

    import redis.asyncio as redis

    from modules.backend.core.config import get_redis_url

    async def probe() -> None:
        client = redis.from_url(get_redis_url())
        try:
            await client.ping()
        finally:
            await client.aclose()

    return await _timed("redis", probe)


async def _run_checks(timeout: float | None = None) -> dict[str, dict[str, Any]]:
    """Both checks concurrently; a check that times out or crashes reads as "error"."""
    results: dict[str, dict[str, Any]] = {
        "database": {"status": "error", "error": "check did not run"},
        "redis": {"status": "error", "error": "check did not run"},
    }
    try:
        async with asyncio.timeout(timeout):
            async with asyncio.TaskGroup() as tg:
                tasks = {
                    "database": tg.create_task(check_database()),
                    "redis": tg.create_task(check_redis()),
                }
            results.update({name: task.result() for name, task in tasks.items()})
    except* Exception as eg:
        for exc in eg.exceptions:
            logger.warning("Health check task failed", extra={"error": repr(exc)})
    return results


def _failing(checks: dict[str, dict[str, Any]]) -> list[str]:
    return [name for name, check in checks.items() if check.get("status") in FAILING_STATUSES]


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Liveness: the process is up."""
    return {"status": "healthy"}


@router.get("/health/ready")
async def readiness_check() -> dict[str, Any]:
    """Readiness, bounded by the database timeout in application.yaml."""
    checks = await _run_checks(get_app_config().application.timeouts.database)
    body = {"checks": checks, "timestamp": utc_now().isoformat()}

    failing = _failing(checks)
    if failing:
        logger.warning("Readiness check failed", extra={"unhealthy": failing})
        raise HTTPException(status_code=503, detail={"status": "unhealthy", **body})
    return {"status": "healthy", **body}


@router.get("/health/detailed")
async def detailed_health_check() -> dict[str, Any]:
    checks = await _run_checks()
    app_config = get_app_config()
    application = app_config.application

    return {
        "status": "unhealthy" if _failing(checks) else "healthy",
        "application": {
            "name": application.name,
            "env": application.environment,
            "debug": application.debug,
            "version": application.version,
        },
        "features": app_config.features.model_dump(),
        "checks": checks,
        "timestamp": utc_now().isoformat(),
    }
