"""Seed the code-declared resource catalog into the database."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from vendorhub.db.session import get_sessionmaker
from vendorhub.db.sql import insert_ignore

from .models import ProtectableResource
from .registry import ALL_PROTECTABLE_RESOURCES, ResourceDefinition, ResourceType

logger = logging.getLogger(__name__)

_SYNCED = False


@dataclass(frozen=True)
class SyncResult:
    """Counts reported by a catalog sync."""

    added: int
    skipped: int
    total: int


def reset_sync_state() -> None:
    """Allow the next :func:`sync_resources` call to hit the database again."""

    global _SYNCED
    _SYNCED = False


def is_synced() -> bool:
    return _SYNCED


def _row(definition: ResourceDefinition) -> dict[str, object]:
    return {
        "resource_key": definition.resource_key,
        "type": ResourceType(definition.type),
        "name": definition.name,
        "description": definition.description,
        "parent_key": definition.parent_key,
        "path": definition.path,
        "sort_order": definition.sort_order,
        "is_active": True,
        "required_level": definition.required_level,
    }


async def _count_resources(session: AsyncSession) -> int:
    result = await session.execute(select(func.count()).select_from(ProtectableResource))
    return int(result.scalar_one())


async def sync_resources(
    *,
    session: AsyncSession,
    catalog: Sequence[ResourceDefinition] = ALL_PROTECTABLE_RESOURCES,
) -> SyncResult:
    """Insert catalog entries missing from the store and commit.

    Existing rows are left untouched so administrator edits survive
    redeploys. The work runs once per process; later calls report zero
    added and skipped without querying.
    """

    global _SYNCED
    total = len(catalog)
    if _SYNCED:
        return SyncResult(added=0, skipped=0, total=total)

    before = await _count_resources(session)
    await insert_ignore(
        session,
        ProtectableResource,
        (_row(definition) for definition in catalog),
        conflict_columns=("resource_key",),
    )
    after = await _count_resources(session)
    await session.commit()

    added = after - before
    _SYNCED = True
    if added > 0:
        logger.info("Seeded %d protectable resources (%d already present)", added, total - added)
    return SyncResult(added=added, skipped=total - added, total=total)


async def sync_resources_safe(
    *,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    catalog: Sequence[ResourceDefinition] = ALL_PROTECTABLE_RESOURCES,
) -> SyncResult | None:
    """Run :func:`sync_resources` in its own session, logging any failure."""

    factory = session_factory or get_sessionmaker()
    try:
        async with factory() as session:
            return await sync_resources(session=session, catalog=catalog)
    except Exception:
        logger.exception("Protectable resource sync failed")
        return None


__all__ = [
    "SyncResult",
    "is_synced",
    "reset_sync_state",
    "sync_resources",
    "sync_resources_safe",
]
