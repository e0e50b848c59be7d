"""User commands touching access-control flags."""

from __future__ import annotations

from argparse import Namespace

from vendorhub.features.users.service import create_user, update_user_access

from ..core.output import print_table
from ..core.runtime import open_session

__all__ = ["create", "super_user"]


async def create(args: Namespace) -> None:
    async with open_session() as session:
        user = await create_user(
            session=session,
            email=args.email,
            display_name=args.display_name,
            is_active=not args.inactive,
            is_super_user=args.super_user,
        )
    print_table(
        [(user.id, user.email, user.is_active, user.is_super_user)],
        ("ID", "Email", "Active", "Super-user"),
    )


async def super_user(args: Namespace) -> None:
    """Grant or revoke the super-user flag, refusing to demote the last one."""

    async with open_session() as session:
        user = await update_user_access(
            session=session,
            user_id=args.user_id,
            is_super_user=bool(args.grant),
        )
    state = "granted to" if user.is_super_user else "revoked from"
    print(f"Super-user {state} {user.email}")
