"""
Configuration Management.

Secrets come from config/.env; everything else from the YAML files in
config/settings/. Code never hardcodes a setting.

Secrets (.env):
    DB_PASSWORD, REDIS_PASSWORD, JWT_SECRET, ADMIN_USERNAME, ADMIN_PASSWORD

Settings (YAML), each validated by a schema in config_schema.py:
    application.yaml   App identity, server, cors, pagination, timeouts
    database.yaml      Database and Redis connection
    logging.yaml       Level, format, handlers
    features.yaml      Feature flags
    security.yaml      JWT and admin cookie
    listing.yaml       Listing defaults, duplicate/unarchive defaults, favicon chain
    events.yaml        Event bus broker and streams
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from modules.backend.core.config_schema import (
    ApplicationSchema,
    DatabaseSchema,
    EventsSchema,
    FeaturesSchema,
    ListingSchema,
    LoggingSchema,
    SecuritySchema,
)

PROJECT_MARKER = ".project_root"


def find_project_root() -> Path:
    """Walk up from the working directory to the directory holding .project_root."""
    for directory in (Path.cwd(), *Path.cwd().parents):
        if (directory / PROJECT_MARKER).exists():
            return directory
    raise RuntimeError("Project root not found. Ensure .project_root file exists.")


def validate_project_root() -> Path:
    """
    find_project_root for entry scripts.

    Raises:
        SystemExit: With a readable message when no marker is found
    """
    try:
        return find_project_root()
    except RuntimeError as e:
        raise SystemExit(f"Error: {e}") from e


def load_yaml_config(filename: str) -> dict[str, Any]:
    """Raw contents of config/settings/<filename>."""
    path = find_project_root() / "config" / "settings" / filename
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")
    with path.open(encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


class Settings(BaseSettings):
    """Secrets from config/.env. Passwords, tokens and keys only."""

    db_password: str
    redis_password: str = ""
    jwt_secret: str
    admin_username: str = ""
    admin_password: str = ""

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


def _load_validated(schema_cls: type[BaseModel], filename: str) -> Any:
    raw = load_yaml_config(filename)
    try:
        return schema_cls(**raw)
    except ValidationError as e:
        raise ValueError(f"Invalid configuration in {filename}:\n{e}") from e


class AppConfig:
    """
    Validated YAML configuration.

    All files are loaded and checked in the constructor, so a bad key fails
    at startup. Sections are typed schema instances with attribute access.
    """

    application: ApplicationSchema
    database: DatabaseSchema
    logging: LoggingSchema
    features: FeaturesSchema
    security: SecuritySchema
    listing: ListingSchema
    events: EventsSchema

    _FILES: dict[str, tuple[type[BaseModel], str]] = {
        "application": (ApplicationSchema, "application.yaml"),
        "database": (DatabaseSchema, "database.yaml"),
        "logging": (LoggingSchema, "logging.yaml"),
        "features": (FeaturesSchema, "features.yaml"),
        "security": (SecuritySchema, "security.yaml"),
        "listing": (ListingSchema, "listing.yaml"),
        "events": (EventsSchema, "events.yaml"),
    }

    def __init__(self) -> None:
        for section, (schema_cls, filename) in self._FILES.items():
            setattr(self, section, _load_validated(schema_cls, filename))


@lru_cache
def get_settings() -> Settings:
    """Cached secrets, read from <project root>/config/.env."""
    return Settings(_env_file=str(find_project_root() / "config" / ".env"))


@lru_cache
def get_app_config() -> AppConfig:
    """Cached YAML configuration."""
    return AppConfig()


def get_database_url(async_driver: bool = True) -> str:
    """PostgreSQL URL from database.yaml and DB_PASSWORD (asyncpg unless async_driver is False)."""
    db = get_app_config().database
    driver = "postgresql+asyncpg" if async_driver else "postgresql"
    return f"{driver}://{db.user}:{get_settings().db_password}@{db.host}:{db.port}/{db.name}"


def get_redis_url() -> str:
    """Redis URL from database.yaml and REDIS_PASSWORD."""
    redis = get_app_config().database.redis
    password = get_settings().redis_password
    auth = f":{password}@" if password else ""
    return f"redis://{auth}{redis.host}:{redis.port}/{redis.db}"


def get_server_base_url() -> tuple[str, float]:
    """(base URL, timeout in seconds) for clients of this backend."""
    application = get_app_config().application
    return (
        f"http://{application.server.host}:{application.server.port}",
        float(application.timeouts.external_api),
    )
