"""Helpers for preparing the database before serving requests."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy.engine import Connection, make_url

from vendorhub.settings import Settings, get_settings
from .engine import (
    ensure_sqlite_database_directory,
    get_engine,
    is_sqlite_memory_url,
    render_sync_url,
)

logger = logging.getLogger(__name__)

MIGRATIONS_PATH = Path(__file__).resolve().parent.parent / "alembic"

_BOOTSTRAP_LOCK = asyncio.Lock()
_BOOTSTRAPPED_URLS: set[str] = set()


def build_alembic_config(database_url: str) -> Config:
    """Return an Alembic config pointing at the packaged migration scripts."""

    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_PATH))
    config.set_main_option("sqlalchemy.url", render_sync_url(database_url).replace("%", "%%"))
    return config


def _upgrade_database(settings: Settings, connection: Connection | None = None) -> None:
    config = build_alembic_config(settings.database_url)
    if connection is not None:
        config.attributes["connection"] = connection
    command.upgrade(config, "head")


def apply_migrations(settings: Settings | None = None) -> None:
    """Upgrade the configured database to the latest schema revision."""

    resolved = settings or get_settings()
    url = make_url(resolved.database_url)
    if url.get_backend_name() == "sqlite":
        ensure_sqlite_database_directory(url)
    _upgrade_database(resolved)


async def ensure_database_ready(settings: Settings | None = None) -> None:
    """Create the database and apply migrations if needed."""

    resolved = settings or get_settings()
    database_url = resolved.database_url

    async with _BOOTSTRAP_LOCK:
        if database_url in _BOOTSTRAPPED_URLS:
            return

        url = make_url(database_url)

        if url.get_backend_name() == "sqlite" and is_sqlite_memory_url(url):
            # The in-memory database only exists on the engine's shared connection.
            engine = get_engine(resolved)
            async with engine.begin() as connection:
                await connection.run_sync(
                    lambda sync_connection: _upgrade_database(
                        resolved, connection=sync_connection
                    )
                )
        else:
            await asyncio.to_thread(apply_migrations, resolved)
        logger.info("Database schema is at head")
        _BOOTSTRAPPED_URLS.add(database_url)


def reset_bootstrap_state() -> None:
    """Clear cached bootstrap results (useful for tests)."""

    _BOOTSTRAPPED_URLS.clear()


__all__ = [
    "MIGRATIONS_PATH",
    "apply_migrations",
    "build_alembic_config",
    "ensure_database_ready",
    "reset_bootstrap_state",
]
