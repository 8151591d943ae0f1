"""
Session store — persistence contract for device sessions.

Every method is an independent atomic operation against the backing
store; callers never hold a transaction across methods. ``rotate`` is a
compare-and-swap on ``issued_at`` so at most one concurrent refresh of
a given credential can win.

Backend faults surface as ``SessionStoreError``.
"""

import abc
import uuid
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from authsessions.models.session import DeviceSession


class SessionStoreError(Exception):
    """The backing store failed; the operation did not apply."""


@dataclass(frozen=True)
class SessionRecord:
    user_id: str
    device_id: str
    issued_at: datetime
    expires_at: datetime
    ip: str
    title: str


class SessionStore(abc.ABC):
    @abc.abstractmethod
    async def get(self, device_id: str) -> SessionRecord | None: ...

    @abc.abstractmethod
    async def create(self, record: SessionRecord) -> None: ...

    @abc.abstractmethod
    async def rotate(
        self,
        user_id: str,
        device_id: str,
        expected_issued_at: datetime,
        *,
        issued_at: datetime,
        expires_at: datetime,
        ip: str,
        title: str,
    ) -> bool:
        """Overwrite the row only if it still carries ``expected_issued_at``."""

    @abc.abstractmethod
    async def delete(self, user_id: str, device_id: str) -> bool: ...

    @abc.abstractmethod
    async def list_for_user(self, user_id: str) -> list[SessionRecord]: ...

    @abc.abstractmethod
    async def delete_all_except(self, user_id: str, keep_device_id: str) -> int: ...


# ── SQLAlchemy adapter ───────────────────────────────────────────────

def _to_record(row: DeviceSession) -> SessionRecord:
    return SessionRecord(
        user_id=str(row.user_id),
        device_id=row.device_id,
        issued_at=row.issued_at,
        expires_at=row.expires_at,
        ip=row.ip,
        title=row.title,
    )


class SqlSessionStore(SessionStore):
    """One short transaction per call on the ``device_sessions`` table."""

    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    async def get(self, device_id: str) -> SessionRecord | None:
        try:
            async with self._session_factory() as db:
                row = await db.get(DeviceSession, device_id)
                return _to_record(row) if row is not None else None
        except SQLAlchemyError as exc:
            raise SessionStoreError("session lookup failed") from exc

    async def create(self, record: SessionRecord) -> None:
        try:
            async with self._session_factory.begin() as db:
                db.add(
                    DeviceSession(
                        device_id=record.device_id,
                        user_id=uuid.UUID(record.user_id),
                        issued_at=record.issued_at,
                        expires_at=record.expires_at,
                        ip=record.ip,
                        title=record.title,
                    )
                )
        except SQLAlchemyError as exc:
            raise SessionStoreError("session insert failed") from exc

    async def rotate(
        self,
        user_id: str,
        device_id: str,
        expected_issued_at: datetime,
        *,
        issued_at: datetime,
        expires_at: datetime,
        ip: str,
        title: str,
    ) -> bool:
        stmt = (
            update(DeviceSession)
            .where(
                DeviceSession.device_id == device_id,
                DeviceSession.user_id == uuid.UUID(user_id),
                DeviceSession.issued_at == expected_issued_at,
            )
            .values(issued_at=issued_at, expires_at=expires_at, ip=ip, title=title)
        )
        try:
            async with self._session_factory.begin() as db:
                result = await db.execute(stmt)
        except SQLAlchemyError as exc:
            raise SessionStoreError("session rotation failed") from exc
        return result.rowcount == 1

    async def delete(self, user_id: str, device_id: str) -> bool:
        stmt = delete(DeviceSession).where(
            DeviceSession.device_id == device_id,
            DeviceSession.user_id == uuid.UUID(user_id),
        )
        try:
            async with self._session_factory.begin() as db:
                result = await db.execute(stmt)
        except SQLAlchemyError as exc:
            raise SessionStoreError("session delete failed") from exc
        return result.rowcount > 0

    async def list_for_user(self, user_id: str) -> list[SessionRecord]:
        stmt = (
            select(DeviceSession)
            .where(DeviceSession.user_id == uuid.UUID(user_id))
            .order_by(DeviceSession.issued_at)
        )
        try:
            async with self._session_factory() as db:
                result = await db.execute(stmt)
                return [_to_record(row) for row in result.scalars().all()]
        except SQLAlchemyError as exc:
            raise SessionStoreError("session listing failed") from exc

    async def delete_all_except(self, user_id: str, keep_device_id: str) -> int:
        """
        Delete every session of ``user_id`` except ``keep_device_id``.

        Returns the number of sessions removed.
        """
        stmt = delete(DeviceSession).where(
            DeviceSession.user_id == uuid.UUID(user_id),
            DeviceSession.device_id != keep_device_id,
        )
        try:
            async with self._session_factory.begin() as db:
                result = await db.execute(stmt)
        except SQLAlchemyError as exc:
            raise SessionStoreError("session bulk delete failed") from exc
        return result.rowcount
