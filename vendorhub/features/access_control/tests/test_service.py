from __future__ import annotations

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from vendorhub.features.access_control.authorization import check_resource_permission
from vendorhub.features.access_control.exceptions import (
    GroupConflictError,
    GroupNotFoundError,
    GroupValidationError,
    ResourceNotFoundError,
    ResourceValidationError,
    SystemGroupError,
    UserNotFoundError,
)
from vendorhub.features.access_control.models import (
    PermissionGroup,
    ProtectableResource,
    ResourcePermission,
    UserGroup,
)
from vendorhub.features.access_control.registry import PermissionLevel, ResourceType
from vendorhub.features.access_control.service import (
    add_group_to_resource,
    add_user_to_group,
    apply_resource_assignments,
    assign_groups_to_resource,
    create_group,
    delete_group,
    get_group,
    list_groups,
    list_resources,
    remove_group_from_resource,
    remove_user_from_group,
    set_user_groups,
    update_group,
    update_resource,
)
from vendorhub.features.access_control.sync import sync_resources


async def _resource_id(session: AsyncSession, resource_key: str) -> str:
    stmt = select(ProtectableResource.id).where(ProtectableResource.resource_key == resource_key)
    return (await session.execute(stmt)).scalar_one()


async def _granted_group_ids(session: AsyncSession, resource_id: str) -> set[str]:
    stmt = select(ResourcePermission.group_id).where(ResourcePermission.resource_id == resource_id)
    return set((await session.execute(stmt)).scalars())


async def _count(session: AsyncSession, model: type, *criteria: object) -> int:
    stmt = select(func.count()).select_from(model).where(*criteria)
    return int((await session.execute(stmt)).scalar_one())


async def _can_open_invoices(session: AsyncSession, user_id: str) -> bool:
    decision = await check_resource_permission(
        session=session,
        user_id=user_id,
        resource_key="page:invoices",
    )
    return decision.allowed


async def _system_group(session: AsyncSession, name: str = "Administrators") -> PermissionGroup:
    group = PermissionGroup(name=name, description="Built in", is_system=True)
    session.add(group)
    await session.commit()
    return group


# Groups -------------------------------------------------------------------


@pytest.mark.asyncio
async def test_create_group_trims_input(session: AsyncSession) -> None:
    group = await create_group(session=session, name="  Finance  ", description="  ")
    await session.commit()

    assert group.id
    assert group.name == "Finance"
    assert group.description is None
    assert group.is_system is False


@pytest.mark.asyncio
async def test_create_group_rejects_blank_and_duplicate_names(session: AsyncSession) -> None:
    await create_group(session=session, name="Finance")
    await session.commit()

    with pytest.raises(GroupValidationError):
        await create_group(session=session, name="   ")
    with pytest.raises(GroupConflictError):
        await create_group(session=session, name=" Finance ")


@pytest.mark.asyncio
async def test_update_group_renames_and_detects_conflicts(session: AsyncSession) -> None:
    finance = await create_group(session=session, name="Finance")
    await create_group(session=session, name="Legal")
    await session.commit()

    updated = await update_group(
        session=session,
        group_id=finance.id,
        name="Finance Team",
        description="Approves invoices",
    )
    await session.commit()

    assert updated.name == "Finance Team"
    assert updated.description == "Approves invoices"
    with pytest.raises(GroupConflictError):
        await update_group(session=session, group_id=finance.id, name="Legal")
    with pytest.raises(GroupNotFoundError):
        await update_group(session=session, group_id="missing", name="Anything")


@pytest.mark.asyncio
async def test_system_group_can_be_renamed_but_not_deleted(session: AsyncSession, make_user) -> None:
    member = await make_user()
    await sync_resources(session=session)
    admins = await _system_group(session)
    admins_id = admins.id
    await add_user_to_group(session=session, user_id=member.id, group_id=admins.id)
    await add_group_to_resource(
        session=session,
        resource_id=await _resource_id(session, "page:settings-access-control"),
        group_id=admins.id,
    )
    await session.commit()

    renamed = await update_group(session=session, group_id=admins.id, name="Admins")
    await session.commit()
    assert renamed.name == "Admins"
    assert renamed.is_system is True

    with pytest.raises(SystemGroupError, match="Cannot delete system groups"):
        await delete_group(session=session, group_id=admins.id)

    # Counted before rolling back so pending deletes would show up.
    assert await _count(session, UserGroup, UserGroup.group_id == admins_id) == 1
    assert await _count(session, ResourcePermission, ResourcePermission.group_id == admins_id) == 1
    await session.rollback()
    assert await _count(session, PermissionGroup, PermissionGroup.id == admins_id) == 1
    assert await _count(session, UserGroup, UserGroup.group_id == admins_id) == 1
    assert await _count(session, ResourcePermission, ResourcePermission.group_id == admins_id) == 1


@pytest.mark.asyncio
async def test_delete_group_removes_grants_and_memberships(session: AsyncSession, make_user) -> None:
    await sync_resources(session=session)
    group = await create_group(session=session, name="Finance")
    await session.commit()
    user = await make_user()
    invoices_id = await _resource_id(session, "page:invoices")
    await assign_groups_to_resource(session=session, resource_id=invoices_id, group_ids=[group.id])
    await add_user_to_group(session=session, user_id=user.id, group_id=group.id)
    await session.commit()

    await delete_group(session=session, group_id=group.id)
    await session.commit()

    assert await _count(session, PermissionGroup, PermissionGroup.id == group.id) == 0
    assert await _count(session, ResourcePermission, ResourcePermission.group_id == group.id) == 0
    assert await _count(session, UserGroup, UserGroup.group_id == group.id) == 0
    assert await _granted_group_ids(session, invoices_id) == set()
    with pytest.raises(GroupNotFoundError):
        await delete_group(session=session, group_id=group.id)


@pytest.mark.asyncio
async def test_get_group_loads_members_and_resources(session: AsyncSession, make_user) -> None:
    await sync_resources(session=session)
    group = await create_group(session=session, name="Finance")
    await session.commit()
    user = await make_user(email="finance@vendorhub.test")
    await add_user_to_group(session=session, user_id=user.id, group_id=group.id)
    await add_group_to_resource(
        session=session,
        resource_id=await _resource_id(session, "page:invoices"),
        group_id=group.id,
    )
    await session.commit()

    loaded = await get_group(session=session, group_id=group.id)

    assert [membership.user.email for membership in loaded.memberships] == ["finance@vendorhub.test"]
    assert [grant.resource.resource_key for grant in loaded.permissions] == ["page:invoices"]
    with pytest.raises(GroupNotFoundError):
        await get_group(session=session, group_id="missing")


@pytest.mark.asyncio
async def test_list_groups_counts_and_orders_system_first(session: AsyncSession, make_user) -> None:
    users = [await make_user(), await make_user()]
    await sync_resources(session=session)
    await _system_group(session)
    zeta = await create_group(session=session, name="Zeta")
    alpha = await create_group(session=session, name="Alpha", description="Invoice approvers")
    await session.commit()
    for user in users:
        await add_user_to_group(session=session, user_id=user.id, group_id=alpha.id)
    await add_group_to_resource(
        session=session,
        resource_id=await _resource_id(session, "page:invoices"),
        group_id=zeta.id,
    )
    await session.commit()

    page = await list_groups(session=session)

    assert [item.group.name for item in page.items] == ["Administrators", "Alpha", "Zeta"]
    counts = {item.group.name: (item.member_count, item.permission_count) for item in page.items}
    assert counts == {"Administrators": (0, 0), "Alpha": (2, 0), "Zeta": (0, 1)}
    assert page.total == 3

    searched = await list_groups(session=session, search="INVOICE")
    assert [item.group.name for item in searched.items] == ["Alpha"]
    assert searched.total == 1

    paged = await list_groups(session=session, limit=1, offset=1)
    assert [item.group.name for item in paged.items] == ["Alpha"]
    assert paged.total == 3


# Resource grants ------------------------------------------------------------


@pytest.mark.asyncio
async def test_assign_groups_replaces_previous_grants(session: AsyncSession) -> None:
    await sync_resources(session=session)
    group_a = await create_group(session=session, name="A")
    group_b = await create_group(session=session, name="B")
    await session.commit()
    invoices_id = await _resource_id(session, "page:invoices")

    await assign_groups_to_resource(session=session, resource_id=invoices_id, group_ids=[group_a.id])
    resource = await assign_groups_to_resource(
        session=session,
        resource_id=invoices_id,
        group_ids=[group_b.id, group_b.id],
    )
    await session.commit()

    assert await _granted_group_ids(session, invoices_id) == {group_b.id}
    assert resource.group_ids == [group_b.id]


@pytest.mark.asyncio
async def test_reassigning_groups_moves_access_between_members(
    session: AsyncSession,
    make_user,
) -> None:
    only_a = await make_user()
    only_b = await make_user()
    await sync_resources(session=session)
    group_a = await create_group(session=session, name="A")
    group_b = await create_group(session=session, name="B")
    await session.commit()
    await add_user_to_group(session=session, user_id=only_a.id, group_id=group_a.id)
    await add_user_to_group(session=session, user_id=only_b.id, group_id=group_b.id)
    invoices_id = await _resource_id(session, "page:invoices")
    await assign_groups_to_resource(session=session, resource_id=invoices_id, group_ids=[group_a.id])
    await session.commit()

    assert await _can_open_invoices(session, only_a.id) is True
    assert await _can_open_invoices(session, only_b.id) is False

    await assign_groups_to_resource(session=session, resource_id=invoices_id, group_ids=[group_b.id])
    await session.commit()

    assert await _can_open_invoices(session, only_a.id) is False
    assert await _can_open_invoices(session, only_b.id) is True


@pytest.mark.asyncio
async def test_uncommitted_reassignment_is_invisible_to_other_sessions(
    session: AsyncSession,
    session_factory: async_sessionmaker[AsyncSession],
    make_user,
) -> None:
    only_a = await make_user()
    only_b = await make_user()
    await sync_resources(session=session)
    group_a = await create_group(session=session, name="A")
    group_b = await create_group(session=session, name="B")
    await session.commit()
    await add_user_to_group(session=session, user_id=only_a.id, group_id=group_a.id)
    await add_user_to_group(session=session, user_id=only_b.id, group_id=group_b.id)
    invoices_id = await _resource_id(session, "page:invoices")
    await assign_groups_to_resource(session=session, resource_id=invoices_id, group_ids=[group_a.id])
    await session.commit()

    await assign_groups_to_resource(session=session, resource_id=invoices_id, group_ids=[group_b.id])

    # The reader must finish before the writer commits on SQLite.
    async with session_factory() as other:
        assert await _granted_group_ids(other, invoices_id) == {group_a.id}
        assert await _can_open_invoices(other, only_a.id) is True
        assert await _can_open_invoices(other, only_b.id) is False

    await session.commit()

    async with session_factory() as other:
        assert await _granted_group_ids(other, invoices_id) == {group_b.id}
        assert await _can_open_invoices(other, only_a.id) is False
        assert await _can_open_invoices(other, only_b.id) is True


@pytest.mark.asyncio
async def test_assign_empty_list_opens_resource(session: AsyncSession) -> None:
    await sync_resources(session=session)
    group = await create_group(session=session, name="A")
    await session.commit()
    invoices_id = await _resource_id(session, "page:invoices")
    await assign_groups_to_resource(session=session, resource_id=invoices_id, group_ids=[group.id])

    await assign_groups_to_resource(session=session, resource_id=invoices_id, group_ids=[])
    await session.commit()

    assert await _granted_group_ids(session, invoices_id) == set()


@pytest.mark.asyncio
async def test_assign_rejects_unknown_group_or_resource(session: AsyncSession) -> None:
    await sync_resources(session=session)
    group = await create_group(session=session, name="A")
    await session.commit()
    group_id = group.id
    invoices_id = await _resource_id(session, "page:invoices")
    await assign_groups_to_resource(session=session, resource_id=invoices_id, group_ids=[group.id])
    await session.commit()

    with pytest.raises(GroupNotFoundError):
        await assign_groups_to_resource(
            session=session,
            resource_id=invoices_id,
            group_ids=[group.id, "missing"],
        )
    with pytest.raises(ResourceNotFoundError):
        await assign_groups_to_resource(session=session, resource_id="missing", group_ids=[])
    await session.rollback()

    assert await _granted_group_ids(session, invoices_id) == {group_id}


@pytest.mark.asyncio
async def test_apply_resource_assignments_is_all_or_nothing(session: AsyncSession) -> None:
    await sync_resources(session=session)
    group = await create_group(session=session, name="A")
    await session.commit()
    invoices_id = await _resource_id(session, "page:invoices")
    contracts_id = await _resource_id(session, "page:contracts")

    with pytest.raises(GroupNotFoundError):
        await apply_resource_assignments(
            session=session,
            assignments={invoices_id: [group.id], contracts_id: ["missing"]},
        )
    await session.commit()

    assert await _granted_group_ids(session, invoices_id) == set()
    assert await _granted_group_ids(session, contracts_id) == set()

    updated = await apply_resource_assignments(
        session=session,
        assignments={invoices_id: [group.id], contracts_id: [group.id]},
    )
    await session.commit()

    assert [resource.resource_key for resource in updated] == ["page:invoices", "page:contracts"]
    assert await _granted_group_ids(session, contracts_id) == {group.id}


@pytest.mark.asyncio
async def test_add_and_remove_group_grant_are_idempotent(session: AsyncSession) -> None:
    await sync_resources(session=session)
    group = await create_group(session=session, name="A")
    await session.commit()
    invoices_id = await _resource_id(session, "page:invoices")

    await add_group_to_resource(session=session, resource_id=invoices_id, group_id=group.id)
    await add_group_to_resource(session=session, resource_id=invoices_id, group_id=group.id)
    await session.commit()
    assert await _count(session, ResourcePermission, ResourcePermission.resource_id == invoices_id) == 1

    await remove_group_from_resource(session=session, resource_id=invoices_id, group_id=group.id)
    await remove_group_from_resource(session=session, resource_id=invoices_id, group_id=group.id)
    await session.commit()
    assert await _granted_group_ids(session, invoices_id) == set()


# Memberships ----------------------------------------------------------------


@pytest.mark.asyncio
async def test_set_user_groups_replaces_memberships(session: AsyncSession, make_user) -> None:
    group_a = await create_group(session=session, name="A")
    group_b = await create_group(session=session, name="B")
    await session.commit()
    user = await make_user()
    await add_user_to_group(session=session, user_id=user.id, group_id=group_a.id)
    await session.commit()

    result = await set_user_groups(
        session=session,
        user_id=user.id,
        group_ids=[group_b.id, group_b.id],
    )
    await session.commit()

    assert result == [group_b.id]
    members = select(UserGroup.group_id).where(UserGroup.user_id == user.id)
    assert set((await session.execute(members)).scalars()) == {group_b.id}

    with pytest.raises(UserNotFoundError):
        await set_user_groups(session=session, user_id="missing", group_ids=[])
    with pytest.raises(GroupNotFoundError):
        await set_user_groups(session=session, user_id=user.id, group_ids=["missing"])


@pytest.mark.asyncio
async def test_membership_add_and_remove_are_idempotent(session: AsyncSession, make_user) -> None:
    group = await create_group(session=session, name="A")
    await session.commit()
    user = await make_user()

    await add_user_to_group(session=session, user_id=user.id, group_id=group.id)
    await add_user_to_group(session=session, user_id=user.id, group_id=group.id)
    await session.commit()
    assert await _count(session, UserGroup, UserGroup.user_id == user.id) == 1

    await remove_user_from_group(session=session, user_id=user.id, group_id=group.id)
    await remove_user_from_group(session=session, user_id=user.id, group_id=group.id)
    await session.commit()
    assert await _count(session, UserGroup, UserGroup.user_id == user.id) == 0

    with pytest.raises(UserNotFoundError):
        await add_user_to_group(session=session, user_id="missing", group_id=group.id)
    with pytest.raises(GroupNotFoundError):
        await add_user_to_group(session=session, user_id=user.id, group_id="missing")


# Resources ----------------------------------------------------------------


@pytest.mark.asyncio
async def test_list_resources_filters_by_type_and_search(session: AsyncSession) -> None:
    await sync_resources(session=session)

    components = await list_resources(session=session, resource_type=ResourceType.COMPONENT)
    assert components
    assert {resource.type for resource in components} == {ResourceType.COMPONENT}

    matches = await list_resources(session=session, resource_type="page", search="INVOICE")
    assert [resource.resource_key for resource in matches] == ["page:invoices"]

    types = [resource.type for resource in await list_resources(session=session)]
    assert types[0] is ResourceType.PAGE
    assert types[-1] is ResourceType.COMPONENT
    assert types == sorted(types, key=lambda item: item is ResourceType.COMPONENT)


@pytest.mark.asyncio
async def test_list_resources_hides_inactive_rows(session: AsyncSession) -> None:
    await sync_resources(session=session)
    invoices_id = await _resource_id(session, "page:invoices")
    await update_resource(session=session, resource_id=invoices_id, is_active=False)
    await session.commit()

    keys = [resource.resource_key for resource in await list_resources(session=session)]

    assert "page:invoices" not in keys


@pytest.mark.asyncio
async def test_update_resource_applies_only_given_fields(session: AsyncSession) -> None:
    await sync_resources(session=session)
    invoices_id = await _resource_id(session, "page:invoices")

    resource = await update_resource(
        session=session,
        resource_id=invoices_id,
        name=" Supplier Invoices ",
        required_level="write",
    )
    await session.commit()

    assert resource.name == "Supplier Invoices"
    assert resource.required_level is PermissionLevel.WRITE
    assert resource.description == "Invoice management and validation"
    assert resource.sort_order == 5
    assert resource.resource_key == "page:invoices"

    with pytest.raises(ResourceValidationError):
        await update_resource(session=session, resource_id=invoices_id, name="  ")
    with pytest.raises(ResourceNotFoundError):
        await update_resource(session=session, resource_id="missing", sort_order=1)
