"""Administrative commands for the chat service database and user directory."""
from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from projectflow_chat.core.security import create_access_token
from projectflow_chat.db.session import SessionLocal, create_tables
from projectflow_chat.models import ROLE_ADMIN
from projectflow_chat.services import users as user_directory


class CommandError(Exception):
    """Raised when a command cannot be completed."""


def cmd_init_db(_db: Session, _args: argparse.Namespace) -> None:
    create_tables()
    print("[manage] tables created")


def cmd_create_user(db: Session, args: argparse.Namespace) -> None:
    if user_directory.get_user_by_email(db, args.email) is not None:
        raise CommandError(f"user {args.email} already exists")
    user = user_directory.create_user(db, args.name, args.email, admin=args.admin)
    print(f"[manage] created user id={user.id} email={user.email} role={user.role}")


def cmd_make_admin(db: Session, args: argparse.Namespace) -> None:
    user = user_directory.get_user_by_email(db, args.email)
    if user is None:
        raise CommandError(f"no user with email {args.email}")
    user_directory.set_role(db, user, ROLE_ADMIN)
    print(f"[manage] {user.email} is now an admin")


def cmd_issue_token(db: Session, args: argparse.Namespace) -> None:
    user = user_directory.get_user_by_email(db, args.email)
    if user is None:
        raise CommandError(f"no user with email {args.email}")
    print(create_access_token(user.id))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="projectflow-chat",
        description="Manage the ProjectFlow chat database and user directory",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    init_db = commands.add_parser("init-db", help="Create all database tables")
    init_db.set_defaults(handler=cmd_init_db)

    create_user = commands.add_parser("create-user", help="Add a user to the directory")
    create_user.add_argument("name")
    create_user.add_argument("email")
    create_user.add_argument("--admin", action="store_true", help="Grant the admin role")
    create_user.set_defaults(handler=cmd_create_user)

    make_admin = commands.add_parser("make-admin", help="Grant the admin role to a user")
    make_admin.add_argument("email")
    make_admin.set_defaults(handler=cmd_make_admin)

    issue_token = commands.add_parser("issue-token", help="Print an access token for a user")
    issue_token.add_argument("email")
    issue_token.set_defaults(handler=cmd_issue_token)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    db = SessionLocal()
    try:
        args.handler(db, args)
    except (CommandError, ValueError, SQLAlchemyError) as exc:
        print(f"[manage] ERROR: {exc}", file=sys.stderr)
        return 1
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
