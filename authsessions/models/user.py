"""
User model.

This service only reads users (lookup by login / id). Registration and
administrative CRUD live elsewhere; ``scripts/create_user.py`` exists
for bootstrapping.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from authsessions.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class User(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "users"

    login: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    email: Mapped[str] = mapped_column(String(256), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(512), nullable=False)

    def __repr__(self) -> str:
        return f"<User {self.login}>"
