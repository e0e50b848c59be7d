"""Access-control commands: seeding and permission inspection."""

from __future__ import annotations

from argparse import Namespace
from dataclasses import asdict

from vendorhub.features.access_control.authorization import (
    check_page_permission_by_path,
    check_resource_permission,
    get_user_effective_permissions,
)
from vendorhub.features.access_control.bootstrap import initialize_access_control
from vendorhub.features.access_control.exceptions import UserNotFoundError
from vendorhub.features.access_control.sync import sync_resources

from ..core.output import print_json
from ..core.runtime import open_session

__all__ = ["check", "effective", "init", "sync"]


async def sync(_: Namespace) -> None:
    """Insert catalog resources missing from the database."""

    async with open_session() as session:
        result = await sync_resources(session=session)
    print(f"Resources: {result.added} added, {result.skipped} already present ({result.total} total)")


async def init(_: Namespace) -> None:
    """Seed resources and the Administrators group."""

    async with open_session() as session:
        result = await initialize_access_control(session=session)
    print(
        f"Resources: {result.sync.added} added, {result.sync.skipped} already present "
        f"({result.sync.total} total)"
    )
    print(f"Administrators group: {result.admin_group_id}")


async def check(args: Namespace) -> None:
    async with open_session() as session:
        if args.path:
            decision = await check_page_permission_by_path(
                session=session,
                user_id=args.user_id,
                path=args.path,
            )
        else:
            decision = await check_resource_permission(
                session=session,
                user_id=args.user_id,
                resource_key=args.resource,
            )

    if args.json:
        print_json(asdict(decision))
        return
    verdict = "allowed" if decision.allowed else "denied"
    suffix = f" ({decision.reason})" if decision.reason else ""
    print(f"{decision.resource_key}: {verdict}{suffix}")


async def effective(args: Namespace) -> None:
    async with open_session() as session:
        permissions = await get_user_effective_permissions(session=session, user_id=args.user_id)
    if permissions is None:
        raise UserNotFoundError(f"User '{args.user_id}' not found")

    if args.json:
        print_json(asdict(permissions))
        return
    role = "super-user" if permissions.is_super_user else "user"
    print(f"User {permissions.user_id} ({role}), groups: {len(permissions.group_ids)}")
    for key in permissions.accessible_resources:
        print(f"  {key}")
