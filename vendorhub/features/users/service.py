"""User management operations that touch access-control flags."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from vendorhub.db.session import atomic
from vendorhub.features.access_control.exceptions import (
    AccessControlError,
    LastSuperUserError,
    UserNotFoundError,
)
from vendorhub.features.access_control.guards import (
    can_demote_super_user,
    get_super_user_count,
)
from vendorhub.features.access_control.models import UserGroup
from vendorhub.features.access_control.service import set_user_groups

from .models import User

logger = logging.getLogger(__name__)


class UserConflictError(AccessControlError):
    code = "USER_CONFLICT"
    status_code = 409


async def get_user(*, session: AsyncSession, user_id: str) -> User:
    user = await session.get(User, user_id)
    if user is None:
        raise UserNotFoundError(f"User '{user_id}' not found")
    return user


async def get_user_by_email(*, session: AsyncSession, email: str) -> User | None:
    stmt = select(User).where(User.email_normalized == email.strip().lower())
    return (await session.execute(stmt)).scalar_one_or_none()


async def get_user_group_ids(*, session: AsyncSession, user_id: str) -> list[str]:
    stmt = select(UserGroup.group_id).where(UserGroup.user_id == user_id).order_by(UserGroup.group_id)
    return list((await session.execute(stmt)).scalars().all())


async def create_user(
    *,
    session: AsyncSession,
    email: str,
    display_name: str | None = None,
    is_active: bool = True,
    is_super_user: bool = False,
) -> User:
    """Register a user row for an identity managed by the upstream auth layer."""

    user = User(
        email=email,
        display_name=display_name,
        is_active=is_active,
        is_super_user=is_super_user,
    )
    try:
        async with session.begin_nested():
            session.add(user)
            await session.flush([user])
    except IntegrityError as exc:
        raise UserConflictError(f"A user with email '{email}' already exists") from exc
    return user


async def update_user_access(
    *,
    session: AsyncSession,
    user_id: str,
    is_active: bool | None = None,
    is_super_user: bool | None = None,
    group_ids: Sequence[str] | None = None,
) -> User:
    """Change a user's activity, super-user flag and group memberships.

    Demoting or deactivating the last active super-user is refused with
    :class:`LastSuperUserError` before anything is written.
    """

    user = await get_user(session=session, user_id=user_id)

    if is_super_user is False and user.is_super_user:
        if not await can_demote_super_user(session=session, user_id=user.id):
            logger.warning("refused to demote last super-user %s", user.id)
            raise LastSuperUserError("Cannot remove super user status from the last super user")

    if is_active is False and user.is_active and user.is_super_user:
        if await get_super_user_count(session=session) <= 1:
            logger.warning("refused to deactivate last super-user %s", user.id)
            raise LastSuperUserError("Cannot deactivate the last super user")

    async with atomic(session):
        if is_active is not None:
            user.is_active = is_active
        if is_super_user is not None:
            user.is_super_user = is_super_user
        await session.flush([user])
        if group_ids is not None:
            await set_user_groups(session=session, user_id=user.id, group_ids=group_ids)
    return user


__all__ = [
    "UserConflictError",
    "create_user",
    "get_user",
    "get_user_by_email",
    "get_user_group_ids",
    "update_user_access",
]
