"""Runtime helpers shared by CLI commands."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession

from vendorhub.db.bootstrap import ensure_database_ready
from vendorhub.db.session import get_sessionmaker
from vendorhub.settings import Settings, get_settings

__all__ = ["open_session"]


@asynccontextmanager
async def open_session(
    settings: Settings | None = None,
) -> AsyncIterator[AsyncSession]:
    """Yield a migrated ``AsyncSession`` that commits on success."""

    resolved = settings or get_settings()
    if resolved.database_auto_migrate:
        await ensure_database_ready(resolved)
    session = get_sessionmaker(settings=resolved)()
    try:
        yield session
        if session.in_transaction():
            await session.commit()
    except Exception:
        if session.in_transaction():
            await session.rollback()
        raise
    finally:
        await session.close()
