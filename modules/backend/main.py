"""
FastAPI Application Entry Point.

Serves the public listing, the submission intake and the admin API.
Run with ``python cli.py --service server`` or
``uvicorn modules.backend.main:app``.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from modules.backend.api import health
from modules.backend.api.v1 import router as api_v1_router
from modules.backend.core.config import get_app_config
from modules.backend.core.config_schema import ApplicationSchema
from modules.backend.core.database import dispose_engine
from modules.backend.core.exception_handlers import register_exception_handlers
from modules.backend.core.logging import get_logger, setup_logging
from modules.backend.core.middleware import RequestContextMiddleware

logger = get_logger(__name__)

_app: FastAPI | None = None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Logging first, then the event broker when enabled; torn down in reverse."""
    app_config = get_app_config()
    setup_logging(level=app_config.logging.level)
    events_enabled = app_config.features.events_enabled

    if events_enabled:
        from modules.backend.events.broker import start_event_broker

        await start_event_broker()

    logger.info(
        "Application starting",
        extra={
            "app_name": app_config.application.name,
            "env": app_config.application.environment,
            "events_enabled": events_enabled,
        },
    )
    try:
        yield
    finally:
        logger.info("Application shutting down")
        if events_enabled:
            from modules.backend.events.broker import close_event_broker

            await close_event_broker()
        await dispose_engine()


def _install_middleware(app: FastAPI, settings: ApplicationSchema) -> None:
    app.add_middleware(RequestContextMiddleware)
    if settings.cors.origins:
        # Credentials are allowed so the admin cookie reaches the API
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors.origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )


def create_app() -> FastAPI:
    """Build the application from application.yaml."""
    settings = get_app_config().application
    docs_enabled = settings.debug

    app = FastAPI(
        title=settings.name,
        description=settings.description,
        version=settings.version,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        lifespan=lifespan,
    )
    _install_middleware(app, settings)
    register_exception_handlers(app)

    app.include_router(health.router, tags=["health"])
    app.include_router(api_v1_router, prefix=settings.api_prefix)
    return app


def get_app() -> FastAPI:
    """Cached application; importing this module never reads configuration."""
    global _app
    if _app is None:
        _app = create_app()
    return _app


def __getattr__(name: str) -> FastAPI:
    # Lazy ``app`` attribute for uvicorn
    if name == "app":
        return get_app()
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
