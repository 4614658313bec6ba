#!/usr/bin/env python3
"""
LabAuth -- authentication backend for the lab-management application.

Usage:
  python main.py serve
  python main.py serve --host 127.0.0.1 --port 8000 --reload
  python main.py init-db
  python main.py create-admin --username admin --email admin@lab.edu --full-name "Lab Admin"
  python main.py set-active --username alice --disable
  python main.py set-active --username alice --enable
  python main.py set-role --username alice --role admin

Environment variables (or .env):
  JWT_SECRET    Required. Token signing secret; every command refuses to run without it.
  DATABASE_URL  Full SQLAlchemy URL, or DB_HOST / DB_PORT / DB_USER / DB_PASSWORD / DB_NAME.
"""

import argparse
import getpass
import sys
from typing import Optional

from pydantic import ValidationError

from auth.models import ROLES


def _load_settings():
    """Build Settings, turning a missing JWT_SECRET into a readable exit."""
    from core.config import get_settings

    try:
        return get_settings()
    except ValidationError as exc:
        for err in exc.errors():
            print(f"  [!] Configuration error: {err['msg']}")
        sys.exit(2)


def _open_store(settings):
    from auth.store import UserStore

    return UserStore(settings.sqlalchemy_url, pool_size=settings.db_pool_size)


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = _load_settings()
    uvicorn.run(
        "api.main:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )
    return 0


def cmd_init_db(args: argparse.Namespace) -> int:
    settings = _load_settings()
    store = _open_store(settings)
    store.close()
    print(f"  [+] Schema ready at {store.engine.url.render_as_string(hide_password=True)}")
    return 0


def cmd_create_admin(args: argparse.Namespace) -> int:
    from auth.errors import FieldErrors
    from auth.models import ROLE_ADMIN
    from auth.service import register_user

    settings = _load_settings()
    password = args.password or getpass.getpass("Password: ")
    if not args.password and password != getpass.getpass("Confirm password: "):
        print("  [!] Passwords do not match.")
        return 1

    store = _open_store(settings)
    try:
        user_id = register_user(
            store,
            username=args.username,
            email=args.email,
            password=password,
            full_name=args.full_name,
            phone_number=args.phone,
            role=ROLE_ADMIN,
        )
    except FieldErrors as exc:
        for field, reason in exc.errors.items():
            print(f"  [!] {field}: {reason}")
        return 1
    finally:
        store.close()

    print(f"  [+] Admin '{args.username}' created (id={user_id}).")
    return 0


def cmd_set_active(args: argparse.Namespace) -> int:
    settings = _load_settings()
    store = _open_store(settings)
    try:
        user = store.get_by_identifier(args.username)
        if user is None:
            print(f"  [!] No account matches '{args.username}'.")
            return 1
        store.set_active(user.id, args.enable)
    finally:
        store.close()

    state = "enabled" if args.enable else "disabled"
    print(f"  [+] Account '{user.username}' {state}.")
    return 0


def cmd_set_role(args: argparse.Namespace) -> int:
    settings = _load_settings()
    store = _open_store(settings)
    try:
        user = store.get_by_identifier(args.username)
        if user is None:
            print(f"  [!] No account matches '{args.username}'.")
            return 1
        store.set_role(user.id, args.role)
    finally:
        store.close()

    print(f"  [+] Account '{user.username}' now has role '{args.role}'.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="labauth",
        description="LabAuth -- authentication backend for the lab-management application.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve.add_argument("--host", default=None, help="Bind address (default: HOST setting)")
    serve.add_argument("--port", type=int, default=None, help="Port (default: PORT setting)")
    serve.add_argument("--reload", action="store_true", help="Auto-reload on code changes (development)")
    serve.set_defaults(func=cmd_serve)

    init_db = sub.add_parser("init-db", help="Create the users table if missing")
    init_db.set_defaults(func=cmd_init_db)

    admin = sub.add_parser("create-admin", help="Create an admin account")
    admin.add_argument("--username", required=True)
    admin.add_argument("--email", required=True)
    admin.add_argument("--full-name", required=True)
    admin.add_argument("--phone", default=None)
    admin.add_argument("--password", default=None, help="Prompted for when omitted")
    admin.set_defaults(func=cmd_create_admin)

    active = sub.add_parser("set-active", help="Enable or disable an account")
    active.add_argument("--username", required=True, help="Username or email")
    toggle = active.add_mutually_exclusive_group(required=True)
    toggle.add_argument("--enable", dest="enable", action="store_true")
    toggle.add_argument("--disable", dest="enable", action="store_false")
    active.set_defaults(func=cmd_set_active)

    role = sub.add_parser("set-role", help="Grant or revoke the admin role")
    role.add_argument("--username", required=True, help="Username or email")
    role.add_argument("--role", required=True, choices=ROLES)
    role.set_defaults(func=cmd_set_role)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
