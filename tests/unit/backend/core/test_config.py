"""
Unit Tests for Configuration Management.

Tests run against the real YAML files; secrets come from the environment
set up in tests/conftest.py. Failure scenarios build a controlled tree
under tmp_path.
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from modules.backend.core.config import (
    AppConfig,
    Settings,
    find_project_root,
    get_app_config,
    get_database_url,
    get_redis_url,
    get_server_base_url,
    get_settings,
    load_yaml_config,
    validate_project_root,
)
from modules.backend.core.config_schema import (
    ApplicationSchema,
    FeaturesSchema,
    ListingSchema,
    SecuritySchema,
)

CONFIG_FILES = (
    "application.yaml",
    "database.yaml",
    "logging.yaml",
    "features.yaml",
    "security.yaml",
    "listing.yaml",
    "events.yaml",
)


@pytest.fixture(autouse=True)
def _clear_config_cache():
    """Each test gets a fresh load."""
    get_settings.cache_clear()
    get_app_config.cache_clear()
    yield
    get_settings.cache_clear()
    get_app_config.cache_clear()


class TestProjectRoot:
    """Tests for .project_root marker discovery."""

    def test_finds_root(self):
        root = find_project_root()
        assert (root / ".project_root").exists()
        assert (root / "config" / "settings").is_dir()

    def test_raises_without_marker(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(RuntimeError, match="Project root not found"):
            find_project_root()

    def test_validate_exits_without_marker(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(SystemExit):
            validate_project_root()


class TestLoadYamlConfig:
    """Tests for YAML file loading from config/settings/."""

    @pytest.mark.parametrize("filename", CONFIG_FILES)
    def test_every_file_loads(self, filename):
        data = load_yaml_config(filename)
        assert isinstance(data, dict)
        assert data

    def test_missing_file(self):
        with pytest.raises(FileNotFoundError, match="Configuration file not found"):
            load_yaml_config("does_not_exist.yaml")

    def test_empty_file_is_empty_dict(self, tmp_path, monkeypatch):
        (tmp_path / ".project_root").touch()
        settings_dir = tmp_path / "config" / "settings"
        settings_dir.mkdir(parents=True)
        (settings_dir / "empty.yaml").write_text("")
        monkeypatch.chdir(tmp_path)

        assert load_yaml_config("empty.yaml") == {}


class TestSettings:
    """Tests for secrets (environment first, then config/.env)."""

    def test_loads_secrets(self):
        settings = get_settings()
        assert isinstance(settings, Settings)
        assert settings.jwt_secret
        assert settings.admin_username == "admin"

    def test_cached(self):
        assert get_settings() is get_settings()


class TestAppConfig:
    """Tests for validated YAML configuration."""

    def test_sections_are_typed(self):
        config = AppConfig()
        assert isinstance(config.application, ApplicationSchema)
        assert isinstance(config.features, FeaturesSchema)
        assert isinstance(config.security, SecuritySchema)
        assert isinstance(config.listing, ListingSchema)

    def test_listing_defaults(self):
        listing = get_app_config().listing
        assert listing.default_sort == "default"
        assert listing.public_status == "active"
        assert listing.unarchive_status == "inactive"
        assert listing.duplicate_title_suffix == " (Copy)"
        assert listing.favicon.size > 0

    def test_admin_cookie(self):
        cookie = get_app_config().security.admin_cookie
        assert cookie.name == "admin_token"
        assert cookie.max_age_seconds == 604800

    def test_cached(self):
        assert get_app_config() is get_app_config()

    def test_rejects_incomplete_yaml(self, tmp_path, monkeypatch):
        (tmp_path / ".project_root").touch()
        settings_dir = tmp_path / "config" / "settings"
        settings_dir.mkdir(parents=True)
        for filename in CONFIG_FILES:
            (settings_dir / filename).write_text("name: 'Incomplete'")
        monkeypatch.chdir(tmp_path)

        with pytest.raises(ValueError, match="Invalid configuration"):
            AppConfig()

    def test_rejects_unknown_keys(self):
        data = load_yaml_config("listing.yaml")
        data["unknown_field"] = "oops"
        with pytest.raises(PydanticValidationError, match="Extra inputs are not permitted"):
            ListingSchema(**data)

    def test_rejects_unknown_sort_mode(self):
        data = load_yaml_config("listing.yaml")
        data["default_sort"] = "alphabetical"
        with pytest.raises(PydanticValidationError, match="default_sort"):
            ListingSchema(**data)

    def test_rejects_publish_without_events(self):
        data = load_yaml_config("features.yaml")
        data.update(events_enabled=False, events_publish_enabled=True)
        with pytest.raises(PydanticValidationError, match="requires events_enabled"):
            FeaturesSchema(**data)

    def test_rejects_default_page_above_max(self):
        data = load_yaml_config("application.yaml")
        data["pagination"] = {"default_limit": 200, "max_limit": 100}
        with pytest.raises(PydanticValidationError, match="must not exceed max_limit"):
            ApplicationSchema(**data)


class TestUrlBuilders:
    """Tests for database, Redis and server URLs."""

    def test_database_url_drivers(self):
        assert get_database_url().startswith("postgresql+asyncpg://")
        assert get_database_url(async_driver=False).startswith("postgresql://")

    def test_database_url_contents(self):
        db = get_app_config().database
        url = get_database_url()
        assert f"@{db.host}:{db.port}/{db.name}" in url
        assert f":{get_settings().db_password}@" in url

    def test_redis_url(self):
        redis = get_app_config().database.redis
        url = get_redis_url()
        assert url.startswith("redis://")
        assert url.endswith(f"{redis.host}:{redis.port}/{redis.db}")

    def test_server_base_url(self):
        base_url, timeout = get_server_base_url()
        server = get_app_config().application.server
        assert base_url == f"http://{server.host}:{server.port}"
        assert timeout > 0
