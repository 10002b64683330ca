"""
Alembic Migration Environment.

Migrations run on the async engine. DATABASE_URL wins when set; otherwise
the URL is assembled from config/settings/database.yaml and DB_PASSWORD.

    alembic -c modules/backend/migrations/alembic.ini upgrade head
    alembic -c modules/backend/migrations/alembic.ini upgrade head --sql
"""

import asyncio
import os
from logging.config import fileConfig
from typing import Any

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from modules.backend.models.base import Base

# Autogenerate only sees tables whose models are imported
from modules.backend.models.audit_log import AuditLog  # noqa: F401
from modules.backend.models.opportunity import Opportunity  # noqa: F401
from modules.backend.models.submission import Submission  # noqa: F401

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

_ASYNC_SCHEMES = {"postgres://": "postgresql+asyncpg://", "postgresql://": "postgresql+asyncpg://"}
_CONFIGURE_OPTIONS: dict[str, Any] = {"target_metadata": Base.metadata, "compare_type": True}


def resolve_database_url() -> str:
    url = os.environ.get("DATABASE_URL")
    if not url:
        from modules.backend.core.config import get_database_url

        return get_database_url()
    for scheme, async_scheme in _ASYNC_SCHEMES.items():
        if url.startswith(scheme):
            return async_scheme + url[len(scheme):]
    return url


def _migrate() -> None:
    with context.begin_transaction():
        context.run_migrations()


def _migrate_on(connection: Connection) -> None:
    context.configure(connection=connection, **_CONFIGURE_OPTIONS)
    _migrate()


async def _migrate_online() -> None:
    section = config.get_section(config.config_ini_section, {})
    section["sqlalchemy.url"] = resolve_database_url()
    engine = async_engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate_on)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    context.configure(
        url=resolve_database_url(),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_CONFIGURE_OPTIONS,
    )
    _migrate()
else:
    asyncio.run(_migrate_online())
