import logging

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from vendorhub.features.access_control import bootstrap as bootstrap_module
from vendorhub.features.access_control.authorization import check_resource_permission
from vendorhub.features.access_control.bootstrap import (
    initialize_access_control,
    initialize_access_control_safe,
)
from vendorhub.features.access_control.models import (
    PermissionGroup,
    ProtectableResource,
    ResourcePermission,
)
from vendorhub.features.access_control.registry import (
    ACCESS_CONTROL_RESOURCE_KEY,
    ADMINISTRATORS_GROUP_DESCRIPTION,
    ADMINISTRATORS_GROUP_NAME,
    ALL_PROTECTABLE_RESOURCES,
)
from vendorhub.features.access_control.service import add_user_to_group
from vendorhub.features.access_control.sync import reset_sync_state


async def _admin_group(session: AsyncSession) -> PermissionGroup:
    stmt = select(PermissionGroup).where(PermissionGroup.name == ADMINISTRATORS_GROUP_NAME)
    return (await session.execute(stmt)).scalar_one()


async def _access_control_grants(session: AsyncSession) -> list[str]:
    stmt = (
        select(ResourcePermission.group_id)
        .join(ProtectableResource, ProtectableResource.id == ResourcePermission.resource_id)
        .where(ProtectableResource.resource_key == ACCESS_CONTROL_RESOURCE_KEY)
    )
    return list((await session.execute(stmt)).scalars())


@pytest.mark.asyncio
async def test_initialize_seeds_administrators_group_and_grant(session: AsyncSession) -> None:
    result = await initialize_access_control(session=session)

    group = await _admin_group(session)
    assert result.admin_group_id == group.id
    assert result.sync.added == len(ALL_PROTECTABLE_RESOURCES)
    assert group.is_system is True
    assert group.description == ADMINISTRATORS_GROUP_DESCRIPTION
    assert await _access_control_grants(session) == [group.id]


@pytest.mark.asyncio
async def test_initialize_is_idempotent(session: AsyncSession) -> None:
    first = await initialize_access_control(session=session)
    reset_sync_state()
    second = await initialize_access_control(session=session)

    assert second.admin_group_id == first.admin_group_id
    assert second.sync.added == 0
    group_count = await session.execute(
        select(func.count()).select_from(PermissionGroup).where(
            PermissionGroup.name == ADMINISTRATORS_GROUP_NAME
        )
    )
    assert group_count.scalar_one() == 1
    assert await _access_control_grants(session) == [first.admin_group_id]


@pytest.mark.asyncio
async def test_initialize_keeps_administrator_edits(session: AsyncSession) -> None:
    await initialize_access_control(session=session)
    group = await _admin_group(session)
    group.description = "Edited by an administrator"
    await session.commit()

    reset_sync_state()
    await initialize_access_control(session=session)
    await session.refresh(group)

    assert group.description == "Edited by an administrator"


@pytest.mark.asyncio
async def test_administrators_can_open_access_control(session: AsyncSession, make_user) -> None:
    admin = await make_user()
    outsider = await make_user()
    result = await initialize_access_control(session=session)
    await add_user_to_group(session=session, user_id=admin.id, group_id=result.admin_group_id)
    await session.commit()

    allowed = await check_resource_permission(
        session=session,
        user_id=admin.id,
        resource_key=ACCESS_CONTROL_RESOURCE_KEY,
    )
    denied = await check_resource_permission(
        session=session,
        user_id=outsider.id,
        resource_key=ACCESS_CONTROL_RESOURCE_KEY,
    )

    assert allowed.allowed is True
    assert denied.allowed is False


@pytest.mark.asyncio
async def test_safe_initialize_logs_and_returns_none(
    monkeypatch: pytest.MonkeyPatch,
    session_factory: async_sessionmaker[AsyncSession],
    caplog: pytest.LogCaptureFixture,
) -> None:
    async def _boom(**_kwargs: object) -> None:
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(bootstrap_module, "sync_resources", _boom)

    with caplog.at_level(logging.ERROR, logger=bootstrap_module.__name__):
        result = await initialize_access_control_safe(session_factory=session_factory)

    assert result is None
    assert "Access control initialization failed" in caplog.text


@pytest.mark.asyncio
async def test_safe_initialize_returns_result(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    result = await initialize_access_control_safe(session_factory=session_factory)

    assert result is not None
    assert result.sync.added == len(ALL_PROTECTABLE_RESOURCES)
