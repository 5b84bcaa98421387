"""Script to create the first administrator account.

Usage:
    python scripts/create_admin.py <username> <email> [first_name] [last_name]

The password is read from the ADMIN_PASSWORD environment variable, or
prompted for when it is not set.
"""

import asyncio
import getpass
import os
import sys

from vetflow.core.exceptions import ConflictException
from vetflow.core.permissions import UserRole
from vetflow.database import AsyncSessionLocal, engine
from vetflow.schemas.users import UserCreate
from vetflow.services.user_service import UserService


async def create_admin(
    username: str,
    email: str,
    password: str,
    first_name: str | None = None,
    last_name: str | None = None,
) -> None:
    """Create an active administrator account."""
    user_data = UserCreate(
        username=username,
        email=email,
        password=password,
        role=UserRole.ADMIN,
        first_name=first_name,
        last_name=last_name,
    )

    async with AsyncSessionLocal() as session:
        try:
            user = await UserService().create_user(session, user_data)
        except ConflictException as e:
            print(f"✗ {e.message}", file=sys.stderr)
            sys.exit(1)

    await engine.dispose()
    print(f"✓ Administrator '{user['username']}' created (id={user['id']})")


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print("Usage: python scripts/create_admin.py <username> <email> [first_name] [last_name]")
        sys.exit(1)

    password = os.getenv("ADMIN_PASSWORD") or getpass.getpass("Password: ")
    asyncio.run(create_admin(sys.argv[1], sys.argv[2], password, *sys.argv[3:5]))
