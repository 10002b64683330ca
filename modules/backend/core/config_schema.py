"""
Configuration Schemas.

One strict Pydantic model per YAML file in config/settings/. Unknown keys,
missing keys and out-of-range values fail when AppConfig loads, so a typo
in a YAML file stops the process at startup.

    ApplicationSchema  application.yaml
    DatabaseSchema     database.yaml
    LoggingSchema      logging.yaml
    FeaturesSchema     features.yaml
    SecuritySchema     security.yaml
    ListingSchema      listing.yaml
    EventsSchema       events.yaml
"""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

Port = Annotated[int, Field(ge=1, le=65535)]
PositiveInt = Annotated[int, Field(gt=0)]


class _StrictBase(BaseModel):
    model_config = ConfigDict(extra="forbid")


# application.yaml


class ServerSchema(_StrictBase):
    host: str
    port: Port


class CorsSchema(_StrictBase):
    origins: list[str]


class PaginationSchema(_StrictBase):
    default_limit: PositiveInt
    max_limit: PositiveInt

    @model_validator(mode="after")
    def _default_within_max(self) -> "PaginationSchema":
        if self.default_limit > self.max_limit:
            raise ValueError("default_limit must not exceed max_limit")
        return self


class TimeoutsSchema(_StrictBase):
    database: PositiveInt
    external_api: PositiveInt


class ApplicationSchema(_StrictBase):
    name: str
    version: str
    description: str
    environment: Literal["development", "staging", "production", "test"]
    debug: bool
    api_prefix: str = Field(pattern=r"^/")
    server: ServerSchema
    cors: CorsSchema
    pagination: PaginationSchema
    timeouts: TimeoutsSchema


# database.yaml


class RedisSchema(_StrictBase):
    host: str
    port: Port
    db: int = Field(ge=0)


class DatabaseSchema(_StrictBase):
    host: str
    port: Port
    name: str
    user: str
    pool_size: PositiveInt
    max_overflow: int = Field(ge=0)
    pool_timeout: PositiveInt
    pool_recycle: int
    echo: bool
    redis: RedisSchema


# logging.yaml


class ConsoleHandlerSchema(_StrictBase):
    enabled: bool


class FileHandlerSchema(_StrictBase):
    enabled: bool
    path: str
    max_bytes: PositiveInt
    backup_count: int = Field(ge=0)


class HandlersSchema(_StrictBase):
    console: ConsoleHandlerSchema
    file: FileHandlerSchema


class LoggingSchema(_StrictBase):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    format: Literal["json", "console"]
    handlers: HandlersSchema


# features.yaml


class FeaturesSchema(_StrictBase):
    auth_require_admin: bool
    api_detailed_errors: bool
    submissions_enabled: bool
    favicon_probe_enabled: bool
    events_enabled: bool
    events_publish_enabled: bool

    @model_validator(mode="after")
    def _publish_needs_events(self) -> "FeaturesSchema":
        if self.events_publish_enabled and not self.events_enabled:
            raise ValueError("events_publish_enabled requires events_enabled")
        return self


# security.yaml


class JwtSchema(_StrictBase):
    algorithm: Literal["HS256", "HS384", "HS512"]
    access_token_expire_minutes: PositiveInt
    audience: str


class AdminCookieSchema(_StrictBase):
    name: str = Field(min_length=1)
    max_age_seconds: PositiveInt
    secure: bool
    same_site: Literal["lax", "strict", "none"]


class SecuritySchema(_StrictBase):
    jwt: JwtSchema
    admin_cookie: AdminCookieSchema


# listing.yaml


class FaviconSchema(_StrictBase):
    """Favicon provider and probe settings."""

    provider_url: str
    size: PositiveInt
    probe_timeout_seconds: float = Field(gt=0)
    breaker_fail_max: PositiveInt
    breaker_timeout_seconds: PositiveInt


class ListingSchema(_StrictBase):
    """Listing defaults, admin mutation defaults and favicon settings."""

    default_sort: Literal["recent", "updated", "ongoing", "deadline", "default"]
    public_status: Literal["active", "inactive"]
    poll_interval_seconds: float = Field(gt=0)
    duplicate_title_suffix: str
    unarchive_status: Literal["active", "inactive"]
    approved_deadline_days: PositiveInt
    favicon: FaviconSchema


# events.yaml


class EventStreamsSchema(_StrictBase):
    default_maxlen: PositiveInt


class EventsSchema(_StrictBase):
    streams: EventStreamsSchema
