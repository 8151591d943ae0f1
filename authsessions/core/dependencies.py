"""
FastAPI dependencies shared by the controllers.

The issuer, clock and stores are built once by the app factory and kept
on ``app.state``; a ``SessionManager`` is assembled per request.
"""

from typing import Any

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from authsessions.core.config import Settings
from authsessions.core.security import CredentialIssuer, TokenKind
from authsessions.services.auth_service import SessionManager

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_issuer(request: Request) -> CredentialIssuer:
    return request.app.state.issuer


def get_session_manager(request: Request) -> SessionManager:
    state = request.app.state
    return SessionManager(
        users=state.users,
        sessions=state.sessions,
        issuer=state.issuer,
        clock=state.clock,
    )


def get_refresh_token(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> str | None:
    """Refresh token from its HTTP-only cookie (``None`` if absent)."""
    return request.cookies.get(settings.REFRESH_COOKIE_NAME)


def client_ip(request: Request) -> str:
    return request.client.host if request.client else ""


async def get_current_user_token(
    token: str | None = Depends(oauth2_scheme),
    issuer: CredentialIssuer = Depends(get_issuer),
) -> dict[str, Any]:
    """Decode the Bearer access token; 401 on any failure."""
    payload = issuer.verify(token, TokenKind.ACCESS)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return payload
