"""
Models package — import every model so SQLAlchemy's Base.metadata
knows about all tables (critical for Alembic autogenerate).
"""

from authsessions.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from authsessions.models.session import DeviceSession
from authsessions.models.user import User

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "DeviceSession",
    "User",
]
