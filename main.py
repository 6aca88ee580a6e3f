#!/usr/bin/env python3
"""
ProfileVault -- administrative command line for the user store.

The HTTP API only ever creates accounts with the "user" role, so the first
admin has to come from here.

Usage:
  python main.py create-user --name "Ann" --email ann@x.com --password secret1
  python main.py create-user --name "Root" --email root@x.com --password s3cret! --admin
  python main.py list-users
  python main.py list-users --json
  python main.py set-role 3f2a... admin
  python main.py delete-user 3f2a...

Environment variables:
  USERS_FILE     Path to the JSON user store (default data/users.json).
  BCRYPT_ROUNDS  bcrypt cost factor for new passwords (default 12).

No SECRET_KEY is needed: the CLI never issues tokens.
"""

import argparse
import getpass
import json
import sys
from dataclasses import asdict
from typing import Optional

from auth.directory import UserDirectory
from auth.errors import AuthError
from auth.models import ROLE_ADMIN, ROLE_USER, ROLES
from auth.store import RecordStore
from core.config import get_settings


def _directory(users_file: Optional[str]) -> UserDirectory:
    settings = get_settings()
    return UserDirectory(RecordStore(users_file or settings.users_file))


def _cmd_create_user(directory: UserDirectory, args: argparse.Namespace) -> int:
    password = args.password or getpass.getpass("Password: ")
    role = ROLE_ADMIN if args.admin else ROLE_USER
    user = directory.create(args.name, args.email, password, role=role)
    print(f"  Created {user.role} '{user.email}' (id {user.id}).")
    return 0


def _cmd_list_users(directory: UserDirectory, args: argparse.Namespace) -> int:
    users = directory.find_all()
    if args.json:
        print(json.dumps([asdict(u) for u in users], indent=2))
        return 0
    if not users:
        print("  No users.")
        return 0
    print(f"  {'ID':<32}  {'ROLE':<5}  {'EMAIL':<30}  NAME")
    print("  " + "─" * 80)
    for u in users:
        print(f"  {u.id:<32}  {u.role:<5}  {u.email:<30}  {u.name}")
    print(f"\n  {len(users)} user(s).")
    return 0


def _cmd_set_role(directory: UserDirectory, args: argparse.Namespace) -> int:
    user = directory.update(args.user_id, role=args.role)
    if user is None:
        print(f"  [!] No user with id '{args.user_id}'.")
        return 1
    print(f"  '{user.email}' is now {user.role}.")
    return 0


def _cmd_delete_user(directory: UserDirectory, args: argparse.Namespace) -> int:
    if not directory.delete(args.user_id):
        print(f"  [!] No user with id '{args.user_id}'.")
        return 1
    print(f"  Deleted user {args.user_id}.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="ProfileVault -- manage the user store.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--users-file",
        metavar="PATH",
        help="User store to operate on (overrides USERS_FILE)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create-user", help="Create a user account")
    create.add_argument("--name", required=True)
    create.add_argument("--email", required=True)
    create.add_argument("--password", help="Prompted for if omitted")
    create.add_argument("--admin", action="store_true", help="Grant the admin role")
    create.set_defaults(func=_cmd_create_user)

    list_ = sub.add_parser("list-users", help="List all users")
    list_.add_argument("--json", action="store_true", help="Output as JSON")
    list_.set_defaults(func=_cmd_list_users)

    set_role = sub.add_parser("set-role", help="Change a user's role")
    set_role.add_argument("user_id")
    set_role.add_argument("role", choices=ROLES)
    set_role.set_defaults(func=_cmd_set_role)

    delete = sub.add_parser("delete-user", help="Permanently delete a user")
    delete.add_argument("user_id")
    delete.set_defaults(func=_cmd_delete_user)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    directory = _directory(args.users_file)
    try:
        return args.func(directory, args)
    except AuthError as e:
        print(f"  [!] {e.message}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
