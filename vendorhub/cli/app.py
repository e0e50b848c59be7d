"""Argument parser wiring for the VendorHub CLI."""

from __future__ import annotations

import argparse

from .commands import access as access_command
from .commands import settings as settings_command
from .commands import start as start_command
from .commands import users as users_command

__all__ = ["build_cli_app"]


def _add_user_id(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--user-id", required=True, help="Identifier of the user to inspect.")


def build_cli_app() -> argparse.ArgumentParser:
    """Return the configured ``argparse`` parser for the CLI."""

    parser = argparse.ArgumentParser(
        prog="vendorhub",
        description="Administrative tooling for VendorHub access control.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    start_parser = subparsers.add_parser("start", help="Serve the API with uvicorn.")
    start_command.register_arguments(start_parser)
    start_parser.set_defaults(handler=start_command.start)

    settings_parser = subparsers.add_parser("settings", help="Inspect VendorHub configuration.")
    settings_parser.set_defaults(handler=settings_command.dump)

    # Access control ------------------------------------------------------
    access_parser = subparsers.add_parser("access", help="Seed and inspect access control.")
    access_subparsers = access_parser.add_subparsers(dest="access_command", required=True)

    sync_parser = access_subparsers.add_parser(
        "sync",
        help="Insert protectable resources missing from the database.",
    )
    sync_parser.set_defaults(handler=access_command.sync)

    init_parser = access_subparsers.add_parser(
        "init",
        help="Seed resources and the Administrators group.",
    )
    init_parser.set_defaults(handler=access_command.init)

    check_parser = access_subparsers.add_parser(
        "check",
        help="Check whether a user may access a resource or page path.",
    )
    _add_user_id(check_parser)
    target = check_parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--resource", help="Resource key, e.g. page:vendors.")
    target.add_argument("--path", help="Page route, e.g. /settings/roles.")
    check_parser.add_argument("--json", action="store_true", help="Emit JSON output.")
    check_parser.set_defaults(handler=access_command.check)

    effective_parser = access_subparsers.add_parser(
        "effective",
        help="List every resource a user can access.",
    )
    _add_user_id(effective_parser)
    effective_parser.add_argument("--json", action="store_true", help="Emit JSON output.")
    effective_parser.set_defaults(handler=access_command.effective)

    # User management -----------------------------------------------------
    users_parser = subparsers.add_parser("users", help="Manage user access flags.")
    users_subparsers = users_parser.add_subparsers(dest="users_command", required=True)

    create_parser = users_subparsers.add_parser("create", help="Register a user.")
    create_parser.add_argument("--email", required=True, help="Email address for the user.")
    create_parser.add_argument("--display-name", help="Optional display name.")
    create_parser.add_argument(
        "--super-user",
        action="store_true",
        help="Grant the super-user flag.",
    )
    create_parser.add_argument(
        "--inactive",
        action="store_true",
        help="Create the user in an inactive state.",
    )
    create_parser.set_defaults(handler=users_command.create)

    super_parser = users_subparsers.add_parser(
        "super-user",
        help="Grant or revoke the super-user flag.",
    )
    super_parser.add_argument("--user-id", required=True, help="Identifier of the user.")
    toggle = super_parser.add_mutually_exclusive_group(required=True)
    toggle.add_argument("--grant", action="store_true", help="Grant super-user access.")
    toggle.add_argument("--revoke", action="store_true", help="Revoke super-user access.")
    super_parser.set_defaults(handler=users_command.super_user)

    return parser
