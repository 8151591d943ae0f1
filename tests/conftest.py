import sys
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from authsessions.core.config import Settings  # noqa: E402
from authsessions.core.security import CredentialIssuer, TokenKind, hash_password  # noqa: E402
from authsessions.models.user import User  # noqa: E402
from authsessions.services.auth_service import SessionManager  # noqa: E402
from authsessions.services.memory_store import (  # noqa: E402
    MemorySessionStore,
    MemoryUserRepository,
)

PASSWORD = "correct-horse-battery"


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2026, 1, 1, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


@pytest.fixture
def settings():
    return Settings(
        USE_MEMORY_STORE=True,
        ACCESS_TOKEN_SECRET="test-access-secret",
        REFRESH_TOKEN_SECRET="test-refresh-secret",
        ACCESS_TOKEN_EXPIRE_SECONDS=20,
        REFRESH_TOKEN_EXPIRE_SECONDS=3600,
    )


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def issuer(settings, clock):
    return CredentialIssuer(settings, clock)


@pytest.fixture(scope="session")
def password():
    return PASSWORD


@pytest.fixture(scope="session")
def password_hash():
    # bcrypt is slow; hash once per run
    return hash_password(PASSWORD)


@pytest.fixture
def alice(password_hash):
    return User(id=uuid.uuid4(), login="alice", email="alice@example.com", password_hash=password_hash)


@pytest.fixture
def bob(password_hash):
    return User(id=uuid.uuid4(), login="bob", email="bob@example.com", password_hash=password_hash)


@pytest.fixture
def users(alice, bob):
    repo = MemoryUserRepository()
    repo.add(alice)
    repo.add(bob)
    return repo


@pytest.fixture
def sessions():
    return MemorySessionStore()


@pytest.fixture
def manager(users, sessions, issuer, clock):
    return SessionManager(users=users, sessions=sessions, issuer=issuer, clock=clock)


@pytest.fixture
def device_of(issuer):
    """Extract the device id embedded in a refresh token."""

    def _device_of(refresh_token: str) -> str:
        return issuer.verify(refresh_token, TokenKind.REFRESH)["device_id"]

    return _device_of
