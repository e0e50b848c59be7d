"""Checks that keep at least one active super-user in the system.

The guard is advisory: it answers questions, and the user-management
service decides whether to refuse the write.
"""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from vendorhub.features.users.models import User


def _active_super_users():
    return (User.is_super_user.is_(True), User.is_active.is_(True))


async def get_super_user_count(*, session: AsyncSession) -> int:
    """Return the number of active super-users."""

    stmt = select(func.count()).select_from(User).where(*_active_super_users())
    result = await session.execute(stmt)
    return int(result.scalar_one() or 0)


async def has_super_user(*, session: AsyncSession) -> bool:
    """Return ``True`` when at least one active super-user exists."""

    stmt = select(User.id).where(*_active_super_users()).limit(1)
    result = await session.execute(stmt)
    return result.scalar_one_or_none() is not None


async def can_demote_super_user(*, session: AsyncSession, user_id: str) -> bool:
    """Return ``True`` if ``user_id`` is not a super-user or others remain active."""

    is_super_user = (
        await session.execute(select(User.is_super_user).where(User.id == user_id))
    ).scalar_one_or_none()
    if not is_super_user:
        return True
    return await get_super_user_count(session=session) > 1


__all__ = ["can_demote_super_user", "get_super_user_count", "has_super_user"]
