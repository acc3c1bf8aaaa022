#!/usr/bin/env python3
"""
Admin Account Creator
Creates an admin user with a bcrypt password hash in the configured database.
Run this once after the schema exists (alembic upgrade head, or DATABASE_AUTO_CREATE=true).
"""
import asyncio
import getpass

from studio_site.config import settings
from studio_site.database import Database
from studio_site.schemas import UserCreate
from studio_site.storage import DatabaseStorage
from studio_site.utils.auth import hash_password


async def create_admin(username: str, password: str) -> int:
    """Insert the admin user and return its id."""
    database = Database(settings)
    try:
        await database.connect()
        storage = DatabaseStorage(database.session_factory)

        if await storage.get_user_by_username(username):
            raise ValueError(f"User '{username}' already exists")

        user = await storage.create_user(UserCreate(username=username, password_hash=hash_password(password)))
        return user.id
    finally:
        await database.close()


def main():
    """Prompt for credentials and create the admin account."""
    print("=" * 60)
    print("Admin Account Creator")
    print("=" * 60)
    print()

    username = input("Admin username: ").strip()
    if not username:
        print("\n❌ Error: Username cannot be empty")
        return

    # Get password securely (won't echo to screen)
    password = getpass.getpass("Admin password: ")
    if not password:
        print("\n❌ Error: Password cannot be empty")
        return

    if password != getpass.getpass("Confirm password: "):
        print("\n❌ Error: Passwords do not match")
        return

    print("\n⏳ Creating admin account...")

    try:
        user_id = asyncio.run(create_admin(username, password))
        print(f"\n✅ Admin '{username}' created (id {user_id})")
    except ValueError as e:
        print(f"\n❌ Error: {str(e)}")


if __name__ == "__main__":
    main()
