"""
Authentication service — login, refresh rotation, logout and
self-service session management.

Every operation that takes a refresh token starts with
``authenticate``: the token must verify AND match the session row
stored for its device (same owner, same ``issued_at``). Missing,
invalid, expired and stale tokens are indistinguishable to callers.

Rotation rules:
- Each login creates a new device session (fresh ``device_id``).
- Each refresh replaces the device's ``issued_at`` through a
  compare-and-swap on the store; the previous refresh token is dead
  from that moment on, even if the new one never reaches the client.

Domain failures are return values. Storage faults
(``SessionStoreError``) propagate unchanged, and no tokens are handed
out unless the session row was written.
"""

import enum
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta

from authsessions.core.clock import Clock
from authsessions.core.security import (
    CredentialIssuer,
    TokenKind,
    from_epoch,
    verify_password,
)
from authsessions.services.session_store import SessionRecord, SessionStore
from authsessions.services.user_service import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class RefreshClaims:
    user_id: str
    device_id: str
    issued_at: datetime


@dataclass(frozen=True)
class SessionView:
    ip: str
    title: str
    last_active_date: str
    device_id: str


class RevokeOutcome(enum.IntEnum):
    """Single-device revocation result; values are the HTTP status codes."""

    UNAUTHORIZED = 401
    NOT_FOUND = 404
    FORBIDDEN = 403
    SUCCESS = 204


def client_title(raw: str | None) -> str:
    """First space-separated token of a client identification string."""
    return (raw or "").split(" ")[0]


def iso_timestamp(moment: datetime) -> str:
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class SessionManager:
    def __init__(
        self,
        users: UserRepository,
        sessions: SessionStore,
        issuer: CredentialIssuer,
        clock: Clock,
    ):
        self.users = users
        self.sessions = sessions
        self.issuer = issuer
        self.clock = clock

    # ── Helpers ──────────────────────────────────────────────────────

    async def authenticate(self, refresh_token: str | None) -> RefreshClaims | None:
        """Resolve a refresh token to its live session, or ``None``."""
        payload = self.issuer.verify(refresh_token, TokenKind.REFRESH)
        if payload is None:
            return None
        try:
            issued_at = from_epoch(int(payload["issued_at"]))
        except (TypeError, ValueError, OverflowError):
            return None
        claims = RefreshClaims(
            user_id=str(payload["sub"]),
            device_id=str(payload["device_id"]),
            issued_at=issued_at,
        )

        stored = await self.sessions.get(claims.device_id)
        if stored is None or stored.user_id != claims.user_id:
            return None
        if stored.issued_at != claims.issued_at:
            logger.warning(
                "Stale refresh token for user %s device %s",
                claims.user_id,
                claims.device_id,
            )
            return None
        return claims

    def _next_issued_at(self, previous: datetime | None = None) -> datetime:
        now = self.clock.now().replace(microsecond=0)
        if previous is not None and now <= previous:
            # Same second as the last rotation; keep issued_at strictly increasing
            now = previous + timedelta(seconds=1)
        return now

    # ── Login ────────────────────────────────────────────────────────

    async def login(
        self,
        login: str,
        password: str,
        ip: str,
        client_agent: str | None,
    ) -> TokenPair | None:
        """Check credentials and open a new device session."""
        user = await self.users.get_by_login(login)
        if user is None or not verify_password(password, user.password_hash or ""):
            return None

        user_id = str(user.id)
        device_id = str(uuid.uuid4())
        issued_at = self._next_issued_at()

        access_token = self.issuer.issue_access_credential(user)
        refresh_token = self.issuer.issue_refresh_credential(user_id, device_id, issued_at)

        await self.sessions.create(
            SessionRecord(
                user_id=user_id,
                device_id=device_id,
                issued_at=issued_at,
                expires_at=self.issuer.refresh_expiry(issued_at),
                ip=ip,
                title=client_title(client_agent),
            )
        )
        logger.info("User %s logged in on device %s", user_id, device_id)
        return TokenPair(access_token, refresh_token)

    # ── Refresh ──────────────────────────────────────────────────────

    async def refresh(
        self,
        refresh_token: str | None,
        ip: str,
        client_agent: str | None,
    ) -> TokenPair | None:
        """Rotate a refresh token; the presented token is retired."""
        claims = await self.authenticate(refresh_token)
        if claims is None:
            return None

        user = await self.users.get_by_id(claims.user_id)
        if user is None:
            return None

        issued_at = self._next_issued_at(claims.issued_at)
        rotated = await self.sessions.rotate(
            claims.user_id,
            claims.device_id,
            claims.issued_at,
            issued_at=issued_at,
            expires_at=self.issuer.refresh_expiry(issued_at),
            ip=ip,
            title=client_title(client_agent),
        )
        if not rotated:
            logger.warning(
                "Lost refresh race for user %s device %s",
                claims.user_id,
                claims.device_id,
            )
            return None

        logger.info("Rotated refresh token for user %s device %s", claims.user_id, claims.device_id)
        return TokenPair(
            self.issuer.issue_access_credential(user),
            self.issuer.issue_refresh_credential(claims.user_id, claims.device_id, issued_at),
        )

    # ── Logout ───────────────────────────────────────────────────────

    async def logout(self, refresh_token: str | None) -> bool:
        claims = await self.authenticate(refresh_token)
        if claims is None:
            return False
        # Row may already be gone (concurrent revoke); still a successful logout
        await self.sessions.delete(claims.user_id, claims.device_id)
        logger.info("User %s logged out of device %s", claims.user_id, claims.device_id)
        return True

    # ── Session listing & revocation ─────────────────────────────────

    async def list_sessions(self, refresh_token: str | None) -> list[SessionView] | None:
        claims = await self.authenticate(refresh_token)
        if claims is None:
            return None
        rows = await self.sessions.list_for_user(claims.user_id)
        return [
            SessionView(
                ip=row.ip,
                title=row.title,
                last_active_date=iso_timestamp(row.issued_at),
                device_id=row.device_id,
            )
            for row in rows
        ]

    async def revoke_all_other_devices(self, refresh_token: str | None) -> bool:
        claims = await self.authenticate(refresh_token)
        if claims is None:
            return False
        removed = await self.sessions.delete_all_except(claims.user_id, claims.device_id)
        logger.info(
            "User %s revoked %d other device session(s)", claims.user_id, removed,
        )
        return True

    async def revoke_device(
        self, refresh_token: str | None, target_device_id: str,
    ) -> RevokeOutcome:
        """
        Revoke one of the caller's device sessions.

        Outcome priority: UNAUTHORIZED > NOT_FOUND > FORBIDDEN > SUCCESS.
        """
        target = await self.sessions.get(target_device_id)
        claims = await self.authenticate(refresh_token)
        if claims is None:
            return RevokeOutcome.UNAUTHORIZED
        if target is None:
            return RevokeOutcome.NOT_FOUND
        if target.user_id != claims.user_id:
            return RevokeOutcome.FORBIDDEN

        await self.sessions.delete(claims.user_id, target.device_id)
        logger.info("User %s revoked device %s", claims.user_id, target.device_id)
        return RevokeOutcome.SUCCESS
