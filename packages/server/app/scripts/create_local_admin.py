"""
Script to create (or promote) an ADMIN user with a password for local testing.
"""

import asyncio
import argparse
import sys

# Add the project root to sys.path to allow importing from 'app'
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "../..")))

from sqlmodel import select

from app.core.auth import hash_password
from app.core.database import get_session_context
from app.models.user import User
from fitclub_shared.schemas.common import Role


async def create_admin(email: str, password: str, name: str):
    async with get_session_context() as session:
        result = await session.execute(select(User).where(User.email == email.lower()))
        user = result.scalar_one_or_none()

        if not user:
            user = User(
                email=email.lower(),
                name=name,
                password_hash=hash_password(password),
                role=Role.ADMIN.value,
            )
            session.add(user)
            print(f"Created admin: {email}")
        else:
            user.role = Role.ADMIN.value
            user.password_hash = hash_password(password)
            session.add(user)
            print(f"User {email} already exists, promoted to ADMIN.")

    print("Done.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create a local admin user.")
    parser.add_argument("--email", required=True, help="Email address for the user")
    parser.add_argument("--password", required=True, help="Password for the user")
    parser.add_argument("--name", default="Admin", help="Display name")

    args = parser.parse_args()

    asyncio.run(create_admin(args.email, args.password, args.name))
