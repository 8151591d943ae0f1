"""
Device session model — one row per logged-in device.

- ``device_id`` is the primary key: a refresh overwrites the row for
  its device, never appends a new one.
- ``issued_at`` mirrors the ``issued_at`` claim of the refresh token
  last minted for the device; a token carrying any other value is
  stale and is rejected.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from authsessions.models.base import Base


class DeviceSession(Base):
    __tablename__ = "device_sessions"

    device_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    issued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    ip: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    title: Mapped[str] = mapped_column(String(256), nullable=False, default="")

    def __repr__(self) -> str:
        return f"<DeviceSession user={self.user_id} device={self.device_id} issued={self.issued_at}>"
