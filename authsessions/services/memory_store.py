"""
In-process backing stores for local development and tests.

State lives in plain dicts guarded by one re-entrant lock, which also
makes ``rotate`` a true compare-and-swap.
"""

import threading
from dataclasses import replace
from datetime import datetime

from authsessions.models.user import User
from authsessions.services.session_store import SessionRecord, SessionStore, SessionStoreError
from authsessions.services.user_service import UserRepository


class MemoryUserRepository(UserRepository):
    def __init__(self) -> None:
        self.users: dict[str, User] = {}
        self._lock = threading.RLock()

    def add(self, user: User) -> User:
        with self._lock:
            self.users[str(user.id)] = user
        return user

    async def get_by_login(self, login: str) -> User | None:
        with self._lock:
            for user in self.users.values():
                if user.login == login:
                    return user
        return None

    async def get_by_id(self, user_id: str) -> User | None:
        with self._lock:
            return self.users.get(str(user_id))


class MemorySessionStore(SessionStore):
    def __init__(self) -> None:
        self.sessions: dict[str, SessionRecord] = {}
        self._lock = threading.RLock()

    async def get(self, device_id: str) -> SessionRecord | None:
        with self._lock:
            return self.sessions.get(device_id)

    async def create(self, record: SessionRecord) -> None:
        with self._lock:
            if record.device_id in self.sessions:
                raise SessionStoreError(f"device {record.device_id} already has a session")
            self.sessions[record.device_id] = record

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
        with self._lock:
            current = self.sessions.get(device_id)
            if (
                current is None
                or current.user_id != user_id
                or current.issued_at != expected_issued_at
            ):
                return False
            self.sessions[device_id] = replace(
                current, issued_at=issued_at, expires_at=expires_at, ip=ip, title=title,
            )
            return True

    async def delete(self, user_id: str, device_id: str) -> bool:
        with self._lock:
            current = self.sessions.get(device_id)
            if current is None or current.user_id != user_id:
                return False
            del self.sessions[device_id]
            return True

    async def list_for_user(self, user_id: str) -> list[SessionRecord]:
        with self._lock:
            rows = [r for r in self.sessions.values() if r.user_id == user_id]
        return sorted(rows, key=lambda r: r.issued_at)

    async def delete_all_except(self, user_id: str, keep_device_id: str) -> int:
        with self._lock:
            doomed = [
                device_id
                for device_id, record in self.sessions.items()
                if record.user_id == user_id and device_id != keep_device_id
            ]
            for device_id in doomed:
                del self.sessions[device_id]
        return len(doomed)
