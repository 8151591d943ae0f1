"""
Security controller — self-service device session management.

The refresh cookie is the authentication proof for these routes;
users only ever see and revoke their own sessions.
"""

from fastapi import APIRouter, Depends, HTTPException, Response, status

from authsessions.core.dependencies import get_refresh_token, get_session_manager
from authsessions.schemas import DeviceSessionOut
from authsessions.services.auth_service import RevokeOutcome, SessionManager

router = APIRouter(prefix="/security", tags=["Security"])

_REVOKE_DETAIL = {
    RevokeOutcome.UNAUTHORIZED: "Invalid or expired refresh token",
    RevokeOutcome.NOT_FOUND: "Device session not found",
    RevokeOutcome.FORBIDDEN: "Device session belongs to another user",
}


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired refresh token",
    )


@router.get("/devices", response_model=list[DeviceSessionOut])
async def list_devices(
    refresh: str | None = Depends(get_refresh_token),
    manager: SessionManager = Depends(get_session_manager),
):
    """All active device sessions of the current user."""
    sessions = await manager.list_sessions(refresh)
    if sessions is None:
        raise _unauthorized()
    return [
        DeviceSessionOut(
            ip=view.ip,
            title=view.title,
            last_active_date=view.last_active_date,
            device_id=view.device_id,
        )
        for view in sessions
    ]


@router.delete("/devices", status_code=status.HTTP_204_NO_CONTENT)
async def revoke_other_devices(
    refresh: str | None = Depends(get_refresh_token),
    manager: SessionManager = Depends(get_session_manager),
):
    """Terminate every session except the current device's."""
    if not await manager.revoke_all_other_devices(refresh):
        raise _unauthorized()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/devices/{device_id}", status_code=status.HTTP_204_NO_CONTENT)
async def revoke_device(
    device_id: str,
    refresh: str | None = Depends(get_refresh_token),
    manager: SessionManager = Depends(get_session_manager),
):
    """Terminate one device session; 401 / 404 / 403 otherwise."""
    outcome = await manager.revoke_device(refresh, device_id)
    if outcome is not RevokeOutcome.SUCCESS:
        raise HTTPException(status_code=int(outcome), detail=_REVOKE_DETAIL[outcome])
    return Response(status_code=status.HTTP_204_NO_CONTENT)
