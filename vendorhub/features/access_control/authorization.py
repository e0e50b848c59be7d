"""Resolve whether a user may see a page or component.

Resolution order for a single resource:

1. Unknown or inactive users are denied.
2. Super-users are allowed everything.
3. Resources missing from the store are allowed. A deactivated resource keeps
   enforcing its grants.
4. Resources with no granted groups are allowed to every active user.
5. Otherwise the user must belong to at least one granted group.

Denials are returned as :class:`PermissionCheck` values and never raised.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vendorhub.features.users.models import User

from .models import RESOURCE_TYPE_ORDER, ProtectableResource, ResourcePermission, UserGroup
from .registry import ResourceType, page_key, resource_key_for_path, resource_type_for_key

USER_NOT_FOUND_REASON = "User not found or inactive"
NOT_IN_ALLOWED_GROUPS_REASON = "User is not in any of the allowed groups"


@dataclass(frozen=True)
class PermissionCheck:
    """Outcome of a single permission check."""

    allowed: bool
    resource_key: str
    resource_type: ResourceType
    reason: str | None = None


@dataclass(frozen=True)
class EffectivePermissions:
    """Every resource key a user can currently access."""

    user_id: str
    is_super_user: bool
    group_ids: list[str] = field(default_factory=list)
    accessible_resources: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class _Subject:
    user_id: str
    is_active: bool
    is_super_user: bool
    group_ids: frozenset[str]


@dataclass(frozen=True)
class _ResourceGrants:
    resource_key: str
    resource_type: ResourceType
    group_ids: frozenset[str]


async def _load_subject(session: AsyncSession, user_id: str) -> _Subject | None:
    row = (
        await session.execute(
            select(User.id, User.is_active, User.is_super_user).where(User.id == user_id)
        )
    ).one_or_none()
    if row is None:
        return None

    group_ids = (
        await session.execute(select(UserGroup.group_id).where(UserGroup.user_id == user_id))
    ).scalars()
    return _Subject(
        user_id=row.id,
        is_active=bool(row.is_active),
        is_super_user=bool(row.is_super_user),
        group_ids=frozenset(group_ids),
    )


async def _load_grants(
    session: AsyncSession,
    resource_keys: Iterable[str],
) -> dict[str, _ResourceGrants]:
    keys = list(dict.fromkeys(resource_keys))
    if not keys:
        return {}

    stmt = (
        select(
            ProtectableResource.resource_key,
            ProtectableResource.type,
            ResourcePermission.group_id,
        )
        .outerjoin(ResourcePermission, ResourcePermission.resource_id == ProtectableResource.id)
        .where(ProtectableResource.resource_key.in_(keys))
    )
    types: dict[str, ResourceType] = {}
    groups: dict[str, set[str]] = defaultdict(set)
    for key, resource_type, group_id in (await session.execute(stmt)).all():
        types[key] = ResourceType(resource_type)
        if group_id is not None:
            groups[key].add(group_id)

    return {
        key: _ResourceGrants(
            resource_key=key,
            resource_type=resource_type,
            group_ids=frozenset(groups.get(key, ())),
        )
        for key, resource_type in types.items()
    }


def _decide(
    subject: _Subject | None,
    resource_key: str,
    grants: _ResourceGrants | None,
) -> PermissionCheck:
    resource_type = grants.resource_type if grants is not None else resource_type_for_key(resource_key)

    if subject is None or not subject.is_active:
        return PermissionCheck(
            allowed=False,
            resource_key=resource_key,
            resource_type=resource_type,
            reason=USER_NOT_FOUND_REASON,
        )
    if subject.is_super_user:
        return PermissionCheck(allowed=True, resource_key=resource_key, resource_type=resource_type)
    if grants is None or not grants.group_ids:
        # Unregistered and open resources are visible to every active user.
        return PermissionCheck(allowed=True, resource_key=resource_key, resource_type=resource_type)
    if grants.group_ids & subject.group_ids:
        return PermissionCheck(allowed=True, resource_key=resource_key, resource_type=resource_type)
    return PermissionCheck(
        allowed=False,
        resource_key=resource_key,
        resource_type=resource_type,
        reason=NOT_IN_ALLOWED_GROUPS_REASON,
    )


async def check_resource_permission(
    *,
    session: AsyncSession,
    user_id: str,
    resource_key: str,
) -> PermissionCheck:
    """Decide whether ``user_id`` may access ``resource_key``."""

    subject = await _load_subject(session, user_id)
    if subject is None or not subject.is_active or subject.is_super_user:
        return _decide(subject, resource_key, None)

    grants = await _load_grants(session, [resource_key])
    return _decide(subject, resource_key, grants.get(resource_key))


async def check_resource_permissions(
    *,
    session: AsyncSession,
    user_id: str,
    resource_keys: Iterable[str],
) -> dict[str, PermissionCheck]:
    """Batch variant of :func:`check_resource_permission` keyed by resource key."""

    keys = list(dict.fromkeys(resource_keys))
    subject = await _load_subject(session, user_id)
    grants: Mapping[str, _ResourceGrants] = {}
    if subject is not None and subject.is_active and not subject.is_super_user:
        grants = await _load_grants(session, keys)
    return {key: _decide(subject, key, grants.get(key)) for key in keys}


def _fallback_page_key(path: str) -> str:
    try:
        return resource_key_for_path(path)
    except ValueError:
        return page_key(path.strip() or "/")


async def check_page_permission_by_path(
    *,
    session: AsyncSession,
    user_id: str,
    path: str,
) -> PermissionCheck:
    """Decide access to the page registered under route ``path``.

    An active page wins over a deactivated one sharing the path. Unregistered
    paths resolve like unregistered keys, reported under the key derived from
    the path (``page:/`` for the root route).
    """

    subject = await _load_subject(session, user_id)
    if subject is None or not subject.is_active or subject.is_super_user:
        return _decide(subject, _fallback_page_key(path), None)

    resource_key = (
        await session.execute(
            select(ProtectableResource.resource_key)
            .where(
                ProtectableResource.path == path,
                ProtectableResource.type == ResourceType.PAGE,
            )
            .order_by(ProtectableResource.is_active.desc(), ProtectableResource.resource_key)
            .limit(1)
        )
    ).scalar_one_or_none()
    if resource_key is None:
        return _decide(subject, _fallback_page_key(path), None)

    grants = await _load_grants(session, [resource_key])
    return _decide(subject, resource_key, grants.get(resource_key))


async def _accessible_resources(
    session: AsyncSession,
    subject: _Subject,
) -> list[tuple[str, ResourceType, str | None]]:
    if not subject.is_active:
        return []

    stmt = (
        select(
            ProtectableResource.id,
            ProtectableResource.resource_key,
            ProtectableResource.type,
            ProtectableResource.path,
        )
        .where(ProtectableResource.is_active.is_(True))
        .order_by(
            RESOURCE_TYPE_ORDER,
            ProtectableResource.sort_order,
            ProtectableResource.resource_key,
        )
    )
    resources = (await session.execute(stmt)).all()
    if subject.is_super_user:
        return [(row.resource_key, ResourceType(row.type), row.path) for row in resources]

    grants: dict[str, set[str]] = defaultdict(set)
    grant_rows = await session.execute(
        select(ResourcePermission.resource_id, ResourcePermission.group_id)
    )
    for resource_id, group_id in grant_rows.all():
        grants[resource_id].add(group_id)

    accessible: list[tuple[str, ResourceType, str | None]] = []
    for row in resources:
        allowed_groups = grants.get(row.id)
        if not allowed_groups or allowed_groups & subject.group_ids:
            accessible.append((row.resource_key, ResourceType(row.type), row.path))
    return accessible


async def get_user_effective_permissions(
    *,
    session: AsyncSession,
    user_id: str,
) -> EffectivePermissions | None:
    """Return the user's group ids and accessible keys, or ``None`` if unknown."""

    subject = await _load_subject(session, user_id)
    if subject is None:
        return None

    accessible = await _accessible_resources(session, subject)
    return EffectivePermissions(
        user_id=subject.user_id,
        is_super_user=subject.is_super_user,
        group_ids=sorted(subject.group_ids),
        accessible_resources=[key for key, _, _ in accessible],
    )


async def get_accessible_page_paths(*, session: AsyncSession, user_id: str) -> list[str]:
    """Return the route paths of pages the user may open, in navigation order."""

    subject = await _load_subject(session, user_id)
    if subject is None:
        return []

    accessible = await _accessible_resources(session, subject)
    return [
        path
        for _, resource_type, path in accessible
        if resource_type is ResourceType.PAGE and path is not None
    ]


__all__ = [
    "EffectivePermissions",
    "NOT_IN_ALLOWED_GROUPS_REASON",
    "PermissionCheck",
    "USER_NOT_FOUND_REASON",
    "check_page_permission_by_path",
    "check_resource_permission",
    "check_resource_permissions",
    "get_accessible_page_paths",
    "get_user_effective_permissions",
]
