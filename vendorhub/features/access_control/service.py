"""Group lifecycle, grant and membership management."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from vendorhub.db.session import atomic
from vendorhub.db.sql import insert_ignore
from vendorhub.features.users.models import User

from .exceptions import (
    GroupConflictError,
    GroupNotFoundError,
    GroupValidationError,
    ResourceNotFoundError,
    ResourceValidationError,
    SystemGroupError,
    UserNotFoundError,
)
from .models import (
    RESOURCE_TYPE_ORDER,
    PermissionGroup,
    ProtectableResource,
    ResourcePermission,
    UserGroup,
)
from .registry import PermissionLevel, ResourceType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GroupSummary:
    group: PermissionGroup
    member_count: int
    permission_count: int


@dataclass(frozen=True)
class GroupPage:
    items: list[GroupSummary]
    total: int
    limit: int
    offset: int


def _clean_name(name: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise GroupValidationError("Group name is required")
    if len(cleaned) > 150:
        raise GroupValidationError("Group name must be 150 characters or fewer")
    return cleaned


def _clean_description(description: str | None) -> str | None:
    if description is None:
        return None
    cleaned = description.strip()
    return cleaned or None


def _unique(values: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(values))


async def _get_group(session: AsyncSession, group_id: str) -> PermissionGroup:
    group = await session.get(PermissionGroup, group_id)
    if group is None:
        raise GroupNotFoundError(f"Group '{group_id}' not found")
    return group


async def _get_resource(session: AsyncSession, resource_id: str) -> ProtectableResource:
    resource = await session.get(ProtectableResource, resource_id)
    if resource is None:
        raise ResourceNotFoundError(f"Resource '{resource_id}' not found")
    return resource


async def _get_user(session: AsyncSession, user_id: str) -> User:
    user = await session.get(User, user_id)
    if user is None:
        raise UserNotFoundError(f"User '{user_id}' not found")
    return user


async def _ensure_groups_exist(session: AsyncSession, group_ids: Sequence[str]) -> None:
    if not group_ids:
        return
    found = set(
        (
            await session.execute(
                select(PermissionGroup.id).where(PermissionGroup.id.in_(group_ids))
            )
        ).scalars()
    )
    missing = [group_id for group_id in group_ids if group_id not in found]
    if missing:
        raise GroupNotFoundError(f"Group(s) not found: {', '.join(missing)}")


async def _name_taken(
    session: AsyncSession,
    name: str,
    *,
    exclude_id: str | None = None,
) -> bool:
    stmt = select(PermissionGroup.id).where(PermissionGroup.name == name)
    if exclude_id is not None:
        stmt = stmt.where(PermissionGroup.id != exclude_id)
    return (await session.execute(stmt.limit(1))).scalar_one_or_none() is not None


async def _flush_group(session: AsyncSession, group: PermissionGroup) -> None:
    try:
        async with session.begin_nested():
            session.add(group)
            await session.flush([group])
    except IntegrityError as exc:
        raise GroupConflictError(f"A group named '{group.name}' already exists") from exc


# Groups -------------------------------------------------------------------


async def create_group(
    *,
    session: AsyncSession,
    name: str,
    description: str | None = None,
) -> PermissionGroup:
    """Create a non-system group with a unique, trimmed name."""

    cleaned = _clean_name(name)
    if await _name_taken(session, cleaned):
        raise GroupConflictError(f"A group named '{cleaned}' already exists")

    group = PermissionGroup(
        name=cleaned,
        description=_clean_description(description),
        is_system=False,
    )
    await _flush_group(session, group)
    logger.info("permission group %s created (%s)", group.id, group.name)
    return group


async def update_group(
    *,
    session: AsyncSession,
    group_id: str,
    name: str,
    description: str | None = None,
) -> PermissionGroup:
    group = await _get_group(session, group_id)
    cleaned = _clean_name(name)
    if await _name_taken(session, cleaned, exclude_id=group.id):
        raise GroupConflictError(f"A group named '{cleaned}' already exists")

    group.name = cleaned
    group.description = _clean_description(description)
    await _flush_group(session, group)
    return group


async def delete_group(*, session: AsyncSession, group_id: str) -> None:
    """Delete a group together with its grants and memberships.

    System groups are refused before anything is written.
    """

    group = await _get_group(session, group_id)
    if group.is_system:
        raise SystemGroupError("Cannot delete system groups")

    async with atomic(session):
        await session.execute(delete(ResourcePermission).where(ResourcePermission.group_id == group.id))
        await session.execute(delete(UserGroup).where(UserGroup.group_id == group.id))
        await session.delete(group)
        await session.flush()
    logger.info("permission group %s deleted", group_id)


async def get_group(*, session: AsyncSession, group_id: str) -> PermissionGroup:
    """Return a group with its members and granted resources loaded."""

    stmt = (
        select(PermissionGroup)
        .where(PermissionGroup.id == group_id)
        .options(
            selectinload(PermissionGroup.memberships).selectinload(UserGroup.user),
            selectinload(PermissionGroup.permissions).selectinload(ResourcePermission.resource),
        )
        .execution_options(populate_existing=True)
    )
    group = (await session.execute(stmt)).scalar_one_or_none()
    if group is None:
        raise GroupNotFoundError(f"Group '{group_id}' not found")
    return group


async def list_all_groups(*, session: AsyncSession) -> list[PermissionGroup]:
    stmt = select(PermissionGroup).order_by(PermissionGroup.is_system.desc(), PermissionGroup.name)
    return list((await session.execute(stmt)).scalars().all())


async def list_groups(
    *,
    session: AsyncSession,
    search: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> GroupPage:
    """Return groups with member and grant counts, system groups first."""

    member_counts = (
        select(UserGroup.group_id, func.count(UserGroup.id).label("member_count"))
        .group_by(UserGroup.group_id)
        .subquery()
    )
    permission_counts = (
        select(ResourcePermission.group_id, func.count(ResourcePermission.id).label("permission_count"))
        .group_by(ResourcePermission.group_id)
        .subquery()
    )

    filters = []
    term = (search or "").strip()
    if term:
        pattern = f"%{term.lower()}%"
        filters.append(
            or_(
                func.lower(PermissionGroup.name).like(pattern),
                func.lower(func.coalesce(PermissionGroup.description, "")).like(pattern),
            )
        )

    stmt = (
        select(
            PermissionGroup,
            func.coalesce(member_counts.c.member_count, 0),
            func.coalesce(permission_counts.c.permission_count, 0),
        )
        .outerjoin(member_counts, member_counts.c.group_id == PermissionGroup.id)
        .outerjoin(permission_counts, permission_counts.c.group_id == PermissionGroup.id)
        .where(*filters)
        .order_by(PermissionGroup.is_system.desc(), PermissionGroup.name)
        .limit(limit)
        .offset(offset)
    )
    rows = (await session.execute(stmt)).all()
    total = (
        await session.execute(select(func.count()).select_from(PermissionGroup).where(*filters))
    ).scalar_one()

    items = [
        GroupSummary(group=group, member_count=int(members), permission_count=int(grants))
        for group, members, grants in rows
    ]
    return GroupPage(items=items, total=int(total), limit=limit, offset=offset)


# Resource grants ------------------------------------------------------------


async def _load_resource(session: AsyncSession, resource_id: str) -> ProtectableResource:
    stmt = (
        select(ProtectableResource)
        .where(ProtectableResource.id == resource_id)
        .options(selectinload(ProtectableResource.permissions).selectinload(ResourcePermission.group))
        .execution_options(populate_existing=True)
    )
    return (await session.execute(stmt)).scalar_one()


async def assign_groups_to_resource(
    *,
    session: AsyncSession,
    resource_id: str,
    group_ids: Sequence[str],
) -> ProtectableResource:
    """Replace the groups granted on a resource.

    An empty ``group_ids`` opens the resource to every active user. The old
    grants are removed and the new ones written in one transaction.
    """

    await _get_resource(session, resource_id)
    wanted = _unique(group_ids)
    await _ensure_groups_exist(session, wanted)

    async with atomic(session):
        await session.execute(
            delete(ResourcePermission).where(ResourcePermission.resource_id == resource_id)
        )
        await insert_ignore(
            session,
            ResourcePermission,
            ({"resource_id": resource_id, "group_id": group_id} for group_id in wanted),
            conflict_columns=("resource_id", "group_id"),
        )
    logger.info("resource %s now granted to %d group(s)", resource_id, len(wanted))
    return await _load_resource(session, resource_id)


async def apply_resource_assignments(
    *,
    session: AsyncSession,
    assignments: Mapping[str, Sequence[str]],
) -> list[ProtectableResource]:
    """Apply several grant replacements; all of them land or none do."""

    updated: list[ProtectableResource] = []
    async with atomic(session):
        for resource_id, group_ids in assignments.items():
            updated.append(
                await assign_groups_to_resource(
                    session=session,
                    resource_id=resource_id,
                    group_ids=group_ids,
                )
            )
    return updated


async def add_group_to_resource(
    *,
    session: AsyncSession,
    resource_id: str,
    group_id: str,
) -> None:
    await _get_resource(session, resource_id)
    await _get_group(session, group_id)
    await insert_ignore(
        session,
        ResourcePermission,
        [{"resource_id": resource_id, "group_id": group_id}],
        conflict_columns=("resource_id", "group_id"),
    )


async def remove_group_from_resource(
    *,
    session: AsyncSession,
    resource_id: str,
    group_id: str,
) -> None:
    await session.execute(
        delete(ResourcePermission).where(
            ResourcePermission.resource_id == resource_id,
            ResourcePermission.group_id == group_id,
        )
    )


# Memberships ----------------------------------------------------------------


async def set_user_groups(
    *,
    session: AsyncSession,
    user_id: str,
    group_ids: Sequence[str],
) -> list[str]:
    """Replace a user's group memberships and return the resulting group ids."""

    await _get_user(session, user_id)
    wanted = _unique(group_ids)
    await _ensure_groups_exist(session, wanted)

    async with atomic(session):
        await session.execute(delete(UserGroup).where(UserGroup.user_id == user_id))
        await insert_ignore(
            session,
            UserGroup,
            ({"user_id": user_id, "group_id": group_id} for group_id in wanted),
            conflict_columns=("user_id", "group_id"),
        )
    logger.info("user %s now member of %d group(s)", user_id, len(wanted))
    return wanted


async def add_user_to_group(*, session: AsyncSession, user_id: str, group_id: str) -> None:
    await _get_user(session, user_id)
    await _get_group(session, group_id)
    await insert_ignore(
        session,
        UserGroup,
        [{"user_id": user_id, "group_id": group_id}],
        conflict_columns=("user_id", "group_id"),
    )


async def remove_user_from_group(*, session: AsyncSession, user_id: str, group_id: str) -> None:
    await session.execute(
        delete(UserGroup).where(UserGroup.user_id == user_id, UserGroup.group_id == group_id)
    )


# Resources ----------------------------------------------------------------


async def list_resources(
    *,
    session: AsyncSession,
    resource_type: ResourceType | str | None = None,
    search: str | None = None,
) -> list[ProtectableResource]:
    """Return active resources with their granted groups, pages before components."""

    stmt = (
        select(ProtectableResource)
        .where(ProtectableResource.is_active.is_(True))
        .options(selectinload(ProtectableResource.permissions).selectinload(ResourcePermission.group))
        .order_by(
            RESOURCE_TYPE_ORDER,
            ProtectableResource.sort_order,
            ProtectableResource.resource_key,
        )
    )
    if resource_type is not None:
        stmt = stmt.where(ProtectableResource.type == ResourceType(resource_type))
    term = (search or "").strip()
    if term:
        pattern = f"%{term.lower()}%"
        stmt = stmt.where(
            or_(
                func.lower(ProtectableResource.name).like(pattern),
                func.lower(ProtectableResource.resource_key).like(pattern),
            )
        )
    return list((await session.execute(stmt)).scalars().all())


async def update_resource(
    *,
    session: AsyncSession,
    resource_id: str,
    name: str | None = None,
    description: str | None = None,
    sort_order: int | None = None,
    required_level: PermissionLevel | str | None = None,
    is_active: bool | None = None,
) -> ProtectableResource:
    """Apply administrator edits. ``None`` leaves a field unchanged.

    The resource key and type are fixed for the lifetime of the row.
    """

    resource = await _get_resource(session, resource_id)
    if name is not None:
        cleaned = name.strip()
        if not cleaned:
            raise ResourceValidationError("Resource name is required")
        resource.name = cleaned
    if description is not None:
        resource.description = _clean_description(description)
    if sort_order is not None:
        resource.sort_order = sort_order
    if required_level is not None:
        resource.required_level = PermissionLevel(required_level)
    if is_active is not None:
        resource.is_active = is_active
    await session.flush([resource])
    return await _load_resource(session, resource_id)


__all__ = [
    "GroupPage",
    "GroupSummary",
    "add_group_to_resource",
    "add_user_to_group",
    "apply_resource_assignments",
    "assign_groups_to_resource",
    "create_group",
    "delete_group",
    "get_group",
    "list_all_groups",
    "list_groups",
    "list_resources",
    "remove_group_from_resource",
    "remove_user_from_group",
    "set_user_groups",
    "update_group",
    "update_resource",
]
