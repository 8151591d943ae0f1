"""
User lookup — the narrow slice of user storage the session core needs.

Registration, listing and admin CRUD are handled by other services;
here users are only found by login or id.
"""

import abc
import uuid

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from authsessions.models.user import User
from authsessions.services.session_store import SessionStoreError


class UserRepository(abc.ABC):
    @abc.abstractmethod
    async def get_by_login(self, login: str) -> User | None: ...

    @abc.abstractmethod
    async def get_by_id(self, user_id: str) -> User | None: ...


class SqlUserRepository(UserRepository):
    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    async def _one(self, stmt) -> User | None:
        try:
            async with self._session_factory() as db:
                result = await db.execute(stmt)
                return result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise SessionStoreError("user lookup failed") from exc

    async def get_by_login(self, login: str) -> User | None:
        return await self._one(select(User).where(User.login == login))

    async def get_by_id(self, user_id: str) -> User | None:
        try:
            uid = uuid.UUID(str(user_id))
        except ValueError:
            return None
        return await self._one(select(User).where(User.id == uid))
