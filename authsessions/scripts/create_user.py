"""
Bootstrap script — creates a user that can log in.

Usage:
    uv run python -m authsessions.scripts.create_user

Registration is not part of this service; use this to seed accounts
in a fresh database.
"""

import asyncio
import getpass
import uuid

from sqlalchemy import or_, select

from authsessions.core.config import settings
from authsessions.core.database import build_engine, build_session_factory
from authsessions.core.security import hash_password
from authsessions.models.user import User


async def create_user() -> None:
    engine = build_engine(settings)
    session_factory = build_session_factory(engine)

    async with session_factory() as session:
        # ── Collect input ────────────────────────────────────────────
        print(f"\n🔧  {settings.APP_NAME} — Create User\n")
        login = input("  Login:    ").strip()
        email = input("  Email:    ").strip()
        password = getpass.getpass("  Password: ")
        confirm = getpass.getpass("  Confirm:  ")

        if password != confirm:
            print("\n❌  Passwords do not match.")
            await engine.dispose()
            return

        if not login or not email or not password:
            print("\n❌  All fields are required.")
            await engine.dispose()
            return

        # ── Check for existing user ──────────────────────────────────
        existing = (
            await session.execute(
                select(User).where(or_(User.login == login, User.email == email))
            )
        ).scalar_one_or_none()

        if existing:
            print(f"\n❌  User with login '{login}' or email '{email}' already exists.")
            await engine.dispose()
            return

        user = User(
            id=uuid.uuid4(),
            login=login,
            email=email,
            password_hash=hash_password(password),
        )
        session.add(user)
        await session.commit()

        print("\n✅  User created successfully!")
        print(f"    ID:    {user.id}")
        print(f"    Login: {user.login}")
        print("\n   You can now log in via POST /auth/login\n")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(create_user())
