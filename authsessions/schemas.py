"""
Pydantic schemas for request / response serialization.

Schemas are deliberately decoupled from SQLAlchemy models and from the
service dataclasses so the API surface can evolve independently.
Session-facing payloads use the camelCase keys the web client expects.
"""

from pydantic import BaseModel, ConfigDict, Field


# ── Auth ─────────────────────────────────────────────────────────────
class LoginRequest(BaseModel):
    login: str = Field(min_length=1)
    password: str = Field(min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class MeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId")
    login: str
    email: str


# ── Devices ──────────────────────────────────────────────────────────
class DeviceSessionOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ip: str
    title: str
    last_active_date: str = Field(alias="lastActiveDate")
    device_id: str = Field(alias="deviceId")


# ── Generic ──────────────────────────────────────────────────────────
class MessageResponse(BaseModel):
    detail: str
