"""Startup initialization for access control."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from vendorhub.db.session import get_sessionmaker
from vendorhub.db.sql import insert_ignore

from .models import PermissionGroup, ProtectableResource, ResourcePermission
from .registry import (
    ACCESS_CONTROL_RESOURCE_KEY,
    ADMINISTRATORS_GROUP_DESCRIPTION,
    ADMINISTRATORS_GROUP_NAME,
    ALL_PROTECTABLE_RESOURCES,
    ResourceDefinition,
)
from .sync import SyncResult, sync_resources

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InitializationResult:
    sync: SyncResult
    admin_group_id: str


async def initialize_access_control(
    *,
    session: AsyncSession,
    catalog: Sequence[ResourceDefinition] = ALL_PROTECTABLE_RESOURCES,
) -> InitializationResult:
    """Seed resources, the Administrators group and its access-control grant.

    Every step only inserts missing rows, so an administrator's renamed
    description or extra grants survive restarts.
    """

    sync_result = await sync_resources(session=session, catalog=catalog)

    await insert_ignore(
        session,
        PermissionGroup,
        [
            {
                "name": ADMINISTRATORS_GROUP_NAME,
                "description": ADMINISTRATORS_GROUP_DESCRIPTION,
                "is_system": True,
            }
        ],
        conflict_columns=("name",),
    )
    admin_group_id = (
        await session.execute(
            select(PermissionGroup.id).where(PermissionGroup.name == ADMINISTRATORS_GROUP_NAME)
        )
    ).scalar_one()

    resource_id = (
        await session.execute(
            select(ProtectableResource.id).where(
                ProtectableResource.resource_key == ACCESS_CONTROL_RESOURCE_KEY
            )
        )
    ).scalar_one_or_none()
    if resource_id is not None:
        await insert_ignore(
            session,
            ResourcePermission,
            [{"resource_id": resource_id, "group_id": admin_group_id}],
            conflict_columns=("resource_id", "group_id"),
        )
    await session.commit()

    return InitializationResult(sync=sync_result, admin_group_id=admin_group_id)


async def initialize_access_control_safe(
    *,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    catalog: Sequence[ResourceDefinition] = ALL_PROTECTABLE_RESOURCES,
) -> InitializationResult | None:
    """Run :func:`initialize_access_control`, logging instead of raising."""

    factory = session_factory or get_sessionmaker()
    try:
        async with factory() as session:
            return await initialize_access_control(session=session, catalog=catalog)
    except Exception:
        logger.exception("Access control initialization failed")
        return None


__all__ = [
    "InitializationResult",
    "initialize_access_control",
    "initialize_access_control_safe",
]
