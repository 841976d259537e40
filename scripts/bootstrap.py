#!/usr/bin/env python3
"""
Marketplace Bootstrap Script

Prepares a freshly migrated database: seeds the default system settings and
creates the first admin console account.

Usage:
    python scripts/bootstrap.py seed-settings
    python scripts/bootstrap.py create-admin --email EMAIL --name NAME [--role ROLE]

Options:
    --email       Admin login email
    --name        Admin display name
    --role        super_admin, admin or moderator (default: super_admin)
    --password    Admin password (prompted for when omitted)

Requirements:
    - Run `alembic upgrade head` from backend/ first
    - Run from project root directory
"""

from __future__ import annotations

import argparse
import asyncio
import getpass
import sys
from pathlib import Path

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from app.core.logging import setup_logging
from app.db import async_session_maker
from app.db.models import AdminRole
from app.services.admins import AdminAccountError, AdminAccountService
from app.services.settings import SettingsService
from app.services.settings_cache import SettingsCache

MIN_PASSWORD_LENGTH = 8


async def seed_settings() -> int:
    """Insert every default setting that is not already present."""
    async with async_session_maker() as session:
        inserted = await SettingsService(session, SettingsCache()).seed_defaults()
        await session.commit()
    print(f"Seeded {inserted} setting(s)")
    return 0


async def create_admin(email: str, name: str, role: AdminRole, password: str) -> int:
    """Create an admin console account."""
    async with async_session_maker() as session:
        try:
            admin = await AdminAccountService(session).create_admin(email, password, name, role)
        except AdminAccountError as e:
            print(f"Error: {e}")
            return 1
        await session.commit()
    print(f"Created {role.value} {admin.email} ({admin.id})")
    return 0


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Bootstrap the marketplace database")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("seed-settings", help="Insert missing default settings")

    admin_parser = subparsers.add_parser("create-admin", help="Create an admin account")
    admin_parser.add_argument("--email", required=True, help="Admin login email")
    admin_parser.add_argument("--name", required=True, help="Admin display name")
    admin_parser.add_argument(
        "--role",
        choices=[role.value for role in AdminRole],
        default=AdminRole.SUPER_ADMIN.value,
        help="Console role (default: super_admin)",
    )
    admin_parser.add_argument("--password", help="Password (prompted for when omitted)")

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    setup_logging()
    args = parse_args(argv)

    if args.command == "seed-settings":
        return asyncio.run(seed_settings())

    password = args.password or getpass.getpass("Password: ")
    if len(password) < MIN_PASSWORD_LENGTH:
        print(f"Error: password must be at least {MIN_PASSWORD_LENGTH} characters")
        return 1
    return asyncio.run(create_admin(args.email, args.name, AdminRole(args.role), password))


if __name__ == "__main__":
    sys.exit(main())
