#!/usr/bin/env python3
"""
Operational commands.

    python -m backend.jobportal.cli init-db
    python -m backend.jobportal.cli create-admin --email admin@example.com --name "Site Admin"

Admins cannot sign up through the API; this is how the first one is made.
"""
import argparse
import getpass
import logging
import sys

from fastapi import HTTPException

from .database import init_db, session_scope
from .models.user import User
from .utils.security import hash_password
from .utils.validation import validate_display_name, validate_email, validate_password


def cmd_init_db(args: argparse.Namespace) -> int:
    init_db()
    print("✓ Database initialized successfully")
    return 0


def cmd_create_admin(args: argparse.Namespace) -> int:
    email = validate_email(args.email)
    name = validate_display_name(args.name)
    password = args.password or getpass.getpass("Admin password: ")
    validate_password(password)

    init_db()
    with session_scope() as db:
        user = db.query(User).filter(User.email == email).first()
        if user:
            if user.role == "admin":
                print(f"✓ {email} is already an admin")
                return 0
            if not args.promote:
                print(f"✗ {email} exists with role '{user.role}'. Re-run with --promote to make it an admin.")
                return 1
            user.role = "admin"
        else:
            user = User(email=email, display_name=name, password=hash_password(password), role="admin",
                        email_verified=True)
            db.add(user)
        db.flush()
        print(f"✓ Admin account ready: {email} (id={user.id})")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="jobportal", description="Job Portal maintenance commands")
    sub = parser.add_subparsers(dest="command", required=True)

    p_init = sub.add_parser("init-db", help="Create all tables")
    p_init.set_defaults(func=cmd_init_db)

    p_admin = sub.add_parser("create-admin", help="Create (or promote) an admin account")
    p_admin.add_argument("--email", required=True)
    p_admin.add_argument("--name", default="Administrator")
    p_admin.add_argument("--password", help="Prompted for when omitted")
    p_admin.add_argument("--promote", action="store_true", help="Promote an existing account")
    p_admin.set_defaults(func=cmd_create_admin)

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)
    try:
        return args.func(args)
    except HTTPException as e:
        # Validation helpers raise HTTPException; surface their message.
        print(f"✗ {e.detail}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
