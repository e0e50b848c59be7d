import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from vendorhub.features.access_control.guards import (
    can_demote_super_user,
    get_super_user_count,
    has_super_user,
)


@pytest.mark.asyncio
async def test_counts_only_active_super_users(session: AsyncSession, make_user) -> None:
    assert await get_super_user_count(session=session) == 0
    assert await has_super_user(session=session) is False
    await session.rollback()

    await make_user(is_super_user=True)
    await make_user(is_super_user=True, is_active=False)
    await make_user()

    assert await get_super_user_count(session=session) == 1
    assert await has_super_user(session=session) is True


@pytest.mark.asyncio
async def test_last_super_user_cannot_be_demoted(session: AsyncSession, make_user) -> None:
    admin = await make_user(is_super_user=True)
    regular = await make_user()

    assert await can_demote_super_user(session=session, user_id=admin.id) is False
    assert await can_demote_super_user(session=session, user_id=regular.id) is True
    assert await can_demote_super_user(session=session, user_id="missing") is True


@pytest.mark.asyncio
async def test_super_user_can_be_demoted_when_another_remains(session: AsyncSession, make_user) -> None:
    first = await make_user(is_super_user=True)
    second = await make_user(is_super_user=True)

    assert await can_demote_super_user(session=session, user_id=first.id) is True
    assert await can_demote_super_user(session=session, user_id=second.id) is True


@pytest.mark.asyncio
async def test_inactive_super_users_do_not_count_as_backup(session: AsyncSession, make_user) -> None:
    active = await make_user(is_super_user=True)
    await make_user(is_super_user=True, is_active=False)

    assert await can_demote_super_user(session=session, user_id=active.id) is False
