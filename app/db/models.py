from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from app.utils.timezone import utcnow


class Base(DeclarativeBase):
    """Base class for all database models."""


class User(Base):
    """User table for authentication and user context.

    Credentials and token issuance live outside this service; the row exists
    so ownership can be enforced and per-user writes can be serialized.
    Stores:
    - id: User ID (string UUID format)
    - email: User email (optional, nullable, unique when set)
    - name: Display name (optional)
    - is_active: Inactive users are rejected by the auth dependency
    - created_at: Timestamp when user was created
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    email: Mapped[str | None] = mapped_column(String, nullable=True, unique=True)
    name: Mapped[str | None] = mapped_column(String, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("idx_users_email", "email", unique=False),
    )
