#!/usr/bin/env python3
"""
Admin Seeder
Creates the dashboard admin account, or resets its password if it exists.

Username and password come from ADMIN_USERNAME / ADMIN_PASSWORD (environment
or .env); anything missing is prompted for. Only the bcrypt hash is stored.
"""
import asyncio
import getpass
import sys

from sqlalchemy import select

from ambient_frames.config import settings
from ambient_frames.database import AsyncSessionLocal, init_db, close_db
from ambient_frames.models import Admin, generate_id, utcnow
from ambient_frames.utils.auth import hash_password


async def seed_admin(username: str, password: str) -> bool:
    """
    Insert or update the admin row.

    Returns:
        True if a new admin was created, False if an existing one was updated
    """
    await init_db()
    try:
        async with AsyncSessionLocal() as session:
            result = await session.execute(select(Admin).where(Admin.username == username))
            admin = result.scalar_one_or_none()
            created = admin is None

            if created:
                session.add(Admin(
                    id=generate_id(),
                    username=username,
                    password_hash=hash_password(password),
                    created_at=utcnow(),
                ))
            else:
                admin.password_hash = hash_password(password)

            await session.commit()
            return created
    finally:
        await close_db()


def main():
    username = settings.ADMIN_USERNAME or input("Admin username: ").strip()
    if not username:
        print("❌ Error: Username cannot be empty")
        sys.exit(1)

    password = settings.ADMIN_PASSWORD
    if not password:
        password = getpass.getpass("Admin password: ")
        if password != getpass.getpass("Confirm password: "):
            print("❌ Error: Passwords do not match")
            sys.exit(1)
    if not password:
        print("❌ Error: Password cannot be empty")
        sys.exit(1)

    print(f"Seeding admin: {username}")
    created = asyncio.run(seed_admin(username, password))
    print("✅ Admin created" if created else "✅ Admin already existed, password updated")


if __name__ == "__main__":
    main()
