"""HTTP endpoints for permission checks and access-control administration."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from vendorhub.db.session import get_session
from vendorhub.features.users.service import get_user_group_ids, update_user_access

from .authorization import (
    check_page_permission_by_path,
    check_resource_permissions,
    get_accessible_page_paths,
    get_user_effective_permissions,
)
from .dependencies import get_current_user_id, require_resource
from .exceptions import UserNotFoundError
from .models import PermissionGroup, ProtectableResource
from .registry import ACCESS_CONTROL_RESOURCE_KEY, ResourceType
from .schemas import (
    AccessiblePagesRead,
    CheckListType,
    EffectivePermissionsRead,
    GroupCreate,
    GroupDetailRead,
    GroupListRead,
    GroupMemberRead,
    GroupRead,
    GroupRef,
    GroupResourceRead,
    GroupSummaryRead,
    GroupUpdate,
    PermissionCheckBatchRead,
    PermissionCheckRead,
    PermissionCheckRequest,
    PermissionsOverviewRead,
    ResourceAssignmentsUpdate,
    ResourceRead,
    ResourceUpdate,
    UserAccessRead,
    UserAccessUpdate,
)
from .service import (
    apply_resource_assignments,
    create_group,
    delete_group,
    get_group,
    list_all_groups,
    list_groups,
    list_resources,
    update_group,
    update_resource,
)

router = APIRouter(prefix="/access-control", tags=["access-control"])

SessionDep = Annotated[AsyncSession, Depends(get_session)]
CurrentUserId = Annotated[str, Depends(get_current_user_id)]
AdminUserId = Annotated[str, Depends(require_resource(ACCESS_CONTROL_RESOURCE_KEY))]


def _group_ref(group: PermissionGroup) -> GroupRef:
    return GroupRef(id=group.id, name=group.name, is_system=group.is_system)


def _resource_read(resource: ProtectableResource) -> ResourceRead:
    return ResourceRead(
        id=resource.id,
        resource_key=resource.resource_key,
        type=resource.type,
        name=resource.name,
        description=resource.description,
        parent_key=resource.parent_key,
        path=resource.path,
        sort_order=resource.sort_order,
        is_active=resource.is_active,
        required_level=resource.required_level,
        groups=[_group_ref(permission.group) for permission in resource.permissions],
    )


# Checks -------------------------------------------------------------------


@router.post(
    "/check",
    response_model=PermissionCheckBatchRead | PermissionCheckRead,
    summary="Check the caller's access to resources or a page path",
)
async def check_access(
    payload: PermissionCheckRequest,
    session: SessionDep,
    user_id: CurrentUserId,
) -> PermissionCheckBatchRead | PermissionCheckRead:
    if payload.path is not None:
        decision = await check_page_permission_by_path(
            session=session,
            user_id=user_id,
            path=payload.path,
        )
        return PermissionCheckRead.model_validate(decision)

    checks = await check_resource_permissions(
        session=session,
        user_id=user_id,
        resource_keys=payload.resource_keys or [],
    )
    return PermissionCheckBatchRead(
        checks={key: PermissionCheckRead.model_validate(check) for key, check in checks.items()}
    )


@router.get(
    "/check",
    response_model=AccessiblePagesRead | EffectivePermissionsRead,
    summary="List the caller's accessible pages or effective permissions",
)
async def read_access(
    session: SessionDep,
    user_id: CurrentUserId,
    list_type: CheckListType = Query(default="all", alias="type"),
) -> AccessiblePagesRead | EffectivePermissionsRead:
    if list_type == "pages":
        paths = await get_accessible_page_paths(session=session, user_id=user_id)
        return AccessiblePagesRead(paths=paths)

    effective = await get_user_effective_permissions(session=session, user_id=user_id)
    if effective is None:
        raise UserNotFoundError(f"User '{user_id}' not found")
    return EffectivePermissionsRead.model_validate(effective)


# Groups -------------------------------------------------------------------


@router.get("/groups", response_model=GroupListRead, summary="List permission groups")
async def read_groups(
    session: SessionDep,
    _admin: AdminUserId,
    search: str | None = Query(default=None, max_length=150),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> GroupListRead:
    page = await list_groups(session=session, search=search, limit=limit, offset=offset)
    items = [
        GroupSummaryRead(
            **GroupRead.model_validate(summary.group).model_dump(),
            member_count=summary.member_count,
            permission_count=summary.permission_count,
        )
        for summary in page.items
    ]
    return GroupListRead(items=items, total=page.total, limit=page.limit, offset=page.offset)


@router.post(
    "/groups",
    response_model=GroupRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a permission group",
)
async def create_group_endpoint(
    payload: GroupCreate,
    session: SessionDep,
    _admin: AdminUserId,
) -> GroupRead:
    group = await create_group(session=session, name=payload.name, description=payload.description)
    return GroupRead.model_validate(group)


@router.get("/groups/{group_id}", response_model=GroupDetailRead, summary="Read a permission group")
async def read_group(
    group_id: str,
    session: SessionDep,
    _admin: AdminUserId,
) -> GroupDetailRead:
    group = await get_group(session=session, group_id=group_id)
    return GroupDetailRead(
        **GroupRead.model_validate(group).model_dump(),
        members=[
            GroupMemberRead(
                user_id=membership.user.id,
                email=membership.user.email,
                display_name=membership.user.display_name,
            )
            for membership in group.memberships
        ],
        resources=[
            GroupResourceRead(
                resource_id=permission.resource.id,
                resource_key=permission.resource.resource_key,
                name=permission.resource.name,
            )
            for permission in group.permissions
        ],
    )


@router.put("/groups/{group_id}", response_model=GroupRead, summary="Rename or describe a group")
async def update_group_endpoint(
    group_id: str,
    payload: GroupUpdate,
    session: SessionDep,
    _admin: AdminUserId,
) -> GroupRead:
    group = await update_group(
        session=session,
        group_id=group_id,
        name=payload.name,
        description=payload.description,
    )
    return GroupRead.model_validate(group)


@router.delete(
    "/groups/{group_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete a non-system group",
)
async def delete_group_endpoint(
    group_id: str,
    session: SessionDep,
    _admin: AdminUserId,
) -> Response:
    await delete_group(session=session, group_id=group_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Resources ------------------------------------------------------------------


@router.get(
    "/permissions",
    response_model=PermissionsOverviewRead,
    summary="List protectable resources with their granted groups",
)
async def read_permissions(
    session: SessionDep,
    _admin: AdminUserId,
    resource_type: ResourceType | None = Query(default=None, alias="type"),
    search: str | None = Query(default=None, max_length=150),
) -> PermissionsOverviewRead:
    resources = await list_resources(session=session, resource_type=resource_type, search=search)
    groups = await list_all_groups(session=session)
    return PermissionsOverviewRead(
        resources=[_resource_read(resource) for resource in resources],
        groups=[_group_ref(group) for group in groups],
    )


@router.put(
    "/permissions",
    response_model=list[ResourceRead],
    summary="Replace the groups granted on one or more resources",
)
async def replace_permissions(
    payload: ResourceAssignmentsUpdate,
    session: SessionDep,
    _admin: AdminUserId,
) -> list[ResourceRead]:
    assignments = {item.resource_id: item.group_ids for item in payload.assignments}
    resources = await apply_resource_assignments(session=session, assignments=assignments)
    return [_resource_read(resource) for resource in resources]


@router.patch(
    "/resources/{resource_id}",
    response_model=ResourceRead,
    summary="Edit resource metadata",
)
async def update_resource_endpoint(
    resource_id: str,
    payload: ResourceUpdate,
    session: SessionDep,
    _admin: AdminUserId,
) -> ResourceRead:
    resource = await update_resource(
        session=session,
        resource_id=resource_id,
        **payload.model_dump(exclude_unset=True),
    )
    return _resource_read(resource)


# Users --------------------------------------------------------------------


@router.patch(
    "/users/{user_id}",
    response_model=UserAccessRead,
    summary="Change a user's activity, super-user flag or groups",
)
async def update_user_endpoint(
    user_id: str,
    payload: UserAccessUpdate,
    session: SessionDep,
    _admin: AdminUserId,
) -> UserAccessRead:
    user = await update_user_access(
        session=session,
        user_id=user_id,
        is_active=payload.is_active,
        is_super_user=payload.is_super_user,
        group_ids=payload.group_ids,
    )
    group_ids = await get_user_group_ids(session=session, user_id=user.id)
    return UserAccessRead(
        id=user.id,
        email=user.email,
        display_name=user.display_name,
        is_active=user.is_active,
        is_super_user=user.is_super_user,
        group_ids=group_ids,
    )


__all__ = ["router"]
