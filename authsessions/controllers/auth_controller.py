"""
Auth controller — login, token refresh, logout & current user.

The refresh token travels only in an HTTP-only cookie; the access
token is returned in the response body.
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from authsessions.core.config import Settings
from authsessions.core.dependencies import (
    client_ip,
    get_current_user_token,
    get_refresh_token,
    get_session_manager,
    get_settings,
)
from authsessions.schemas import LoginRequest, MeResponse, TokenResponse
from authsessions.services.auth_service import SessionManager, TokenPair

router = APIRouter(prefix="/auth", tags=["Auth"])


def _issue(response: Response, tokens: TokenPair, settings: Settings) -> TokenResponse:
    response.set_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        value=tokens.refresh_token,
        max_age=settings.REFRESH_TOKEN_EXPIRE_SECONDS,
        httponly=True,
        secure=settings.REFRESH_COOKIE_SECURE,
    )
    return TokenResponse(access_token=tokens.access_token)


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    manager: SessionManager = Depends(get_session_manager),
    settings: Settings = Depends(get_settings),
):
    """Authenticate with login + password → access token + refresh cookie."""
    tokens = await manager.login(
        body.login,
        body.password,
        client_ip(request),
        request.headers.get("user-agent"),
    )
    if tokens is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid login or password",
        )
    return _issue(response, tokens, settings)


@router.post("/refresh-token", response_model=TokenResponse)
async def refresh_token(
    request: Request,
    response: Response,
    refresh: str | None = Depends(get_refresh_token),
    manager: SessionManager = Depends(get_session_manager),
    settings: Settings = Depends(get_settings),
):
    """Exchange the refresh cookie for a new access + refresh pair."""
    tokens = await manager.refresh(
        refresh, client_ip(request), request.headers.get("user-agent"),
    )
    if tokens is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
        )
    return _issue(response, tokens, settings)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    refresh: str | None = Depends(get_refresh_token),
    manager: SessionManager = Depends(get_session_manager),
    settings: Settings = Depends(get_settings),
):
    """End the session of the device holding the refresh cookie."""
    if not await manager.logout(refresh):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
        )
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(
        settings.REFRESH_COOKIE_NAME,
        httponly=True,
        secure=settings.REFRESH_COOKIE_SECURE,
    )
    return response


@router.get("/me", response_model=MeResponse)
async def me(token_payload: dict[str, Any] = Depends(get_current_user_token)):
    return MeResponse(
        user_id=token_payload["sub"],
        login=token_payload["login"],
        email=token_payload["email"],
    )
