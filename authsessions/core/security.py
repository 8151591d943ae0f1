"""
Password hashing & credential (JWT) helpers.

- Passwords are hashed with bcrypt directly (passlib is unmaintained
  and broken with bcrypt>=4.1).
- Access and refresh credentials are JWTs signed with SEPARATE secrets,
  so a leaked access secret cannot forge refresh tokens.
- Verification never raises: every failure (absent, malformed, bad
  signature, wrong kind, expired) collapses to ``None``.
"""

import enum
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
from jose import JWTError, jwt

from authsessions.core.clock import Clock
from authsessions.core.config import Settings

# ── Password hashing ────────────────────────────────────────────────


def hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


# ── JWT ──────────────────────────────────────────────────────────────


class TokenKind(str, enum.Enum):
    ACCESS = "access"
    REFRESH = "refresh"


_REQUIRED_CLAIMS: dict[TokenKind, tuple[str, ...]] = {
    TokenKind.ACCESS: ("sub", "login", "email", "exp"),
    TokenKind.REFRESH: ("sub", "device_id", "issued_at", "exp"),
}


def to_epoch(moment: datetime) -> int:
    return int(moment.timestamp())


def from_epoch(seconds: int) -> datetime:
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


class CredentialIssuer:
    """Stateless minting and verification of access / refresh credentials."""

    def __init__(self, settings: Settings, clock: Clock):
        self._settings = settings
        self._clock = clock
        self._secrets = {
            TokenKind.ACCESS: settings.ACCESS_TOKEN_SECRET,
            TokenKind.REFRESH: settings.REFRESH_TOKEN_SECRET,
        }

    def _encode(self, claims: dict[str, Any], kind: TokenKind) -> str:
        to_encode = {**claims, "type": kind.value}
        return jwt.encode(
            to_encode, self._secrets[kind], algorithm=self._settings.JWT_ALGORITHM,
        )

    def issue_access_credential(self, user) -> str:
        expire = self._clock.now() + timedelta(
            seconds=self._settings.ACCESS_TOKEN_EXPIRE_SECONDS,
        )
        return self._encode(
            {
                "sub": str(user.id),
                "user_id": str(user.id),
                "login": user.login,
                "email": user.email,
                "exp": to_epoch(expire),
            },
            TokenKind.ACCESS,
        )

    def refresh_expiry(self, issued_at: datetime) -> datetime:
        return issued_at + timedelta(seconds=self._settings.REFRESH_TOKEN_EXPIRE_SECONDS)

    def issue_refresh_credential(
        self, user_id: str, device_id: str, issued_at: datetime,
    ) -> str:
        return self._encode(
            {
                "sub": str(user_id),
                "user_id": str(user_id),
                "device_id": device_id,
                "issued_at": to_epoch(issued_at),
                "exp": to_epoch(self.refresh_expiry(issued_at)),
            },
            TokenKind.REFRESH,
        )

    def verify(self, token: str | None, kind: TokenKind) -> dict[str, Any] | None:
        """
        Decode ``token`` as a credential of ``kind``.

        Returns the claims, or ``None`` when the token is absent, malformed,
        signed with another key, of the other kind, missing claims, or
        expired according to the injected clock.
        """
        if not token:
            return None
        try:
            # Expiry is checked below against the injected clock.
            payload = jwt.decode(
                token,
                self._secrets[kind],
                algorithms=[self._settings.JWT_ALGORITHM],
                options={"verify_exp": False},
            )
        except JWTError:
            return None

        if payload.get("type") != kind.value:
            return None
        if any(payload.get(claim) in (None, "") for claim in _REQUIRED_CLAIMS[kind]):
            return None
        try:
            expires = int(payload["exp"])
        except (TypeError, ValueError):
            return None
        if expires <= to_epoch(self._clock.now()):
            return None
        return payload
