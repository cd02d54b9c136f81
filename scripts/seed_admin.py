"""
Seed Admin Account

Creates the first back office admin for the Tryout PTN API.
Credentials come from the environment, never from this file.

Usage:
    ADMIN_EMAIL=admin@example.com ADMIN_PASSWORD=... ADMIN_NAME="Panitia" \
        python scripts/seed_admin.py
"""

import asyncio
import os
import sys

from tryout.core.database import close_db, get_session_maker
from tryout.core.security import hash_password
from tryout.modules.admins.repository import AdminRepository


async def seed_admin() -> int:
    """Create the admin account if it doesn't exist. Returns the exit code."""
    email = os.environ.get("ADMIN_EMAIL", "").strip().lower()
    password = os.environ.get("ADMIN_PASSWORD", "")
    name = os.environ.get("ADMIN_NAME", "Admin Tryout").strip()

    if not email or not password:
        print("ADMIN_EMAIL and ADMIN_PASSWORD must be set.", file=sys.stderr)
        return 1

    try:
        async with get_session_maker()() as db:
            existing = await AdminRepository.get_by_email(db, email)
            if existing:
                print(f"Admin already exists: {email}")
                print(f"  ID: {existing.id}")
                print(f"  Role: {existing.role.value}")
                return 0

            admin = await AdminRepository.create(
                db,
                email=email,
                name=name,
                password_hash=hash_password(password),
            )
            await db.commit()

            print("Admin created successfully!")
            print(f"  Email: {admin.email}")
            print(f"  Name: {admin.name}")
            print(f"  ID: {admin.id}")
            print(f"  Role: {admin.role.value}")
    finally:
        await close_db()

    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(seed_admin()))
