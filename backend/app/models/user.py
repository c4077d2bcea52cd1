"""
models/user.py — User table definition.

One row per account. Also the "channel" when a profile is viewed as a
subscribable entity. No business logic; password hashing and field rules
live in store/credential_store.py.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.extensions import db


class User(db.Model):
    __tablename__ = "users"

    __table_args__ = (
        CheckConstraint(
            "LENGTH(TRIM(username)) > 0",
            name="ck_users_username_nonempty",
        ),
        CheckConstraint(
            "email LIKE '%@%'",
            name="ck_users_email_format",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    # Stored lowercase; the credential store normalises before every write.
    username: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
    )

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
    )

    full_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    avatar: Mapped[str] = mapped_column(
        String(1024),
        nullable=False,
    )

    # Empty string when the user never uploaded a cover image.
    cover_image: Mapped[str] = mapped_column(
        String(1024),
        nullable=False,
        default="",
        server_default="",
    )

    # Single refresh-token slot. Rotation overwrites it; logout clears it.
    refresh_token: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────

    videos: Mapped[list["Video"]] = relationship(  # noqa: F821
        "Video",
        back_populates="owner",
    )

    watch_history: Mapped[list["WatchHistoryEntry"]] = relationship(  # noqa: F821
        "WatchHistoryEntry",
        back_populates="user",
        order_by="WatchHistoryEntry.position",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<User id={self.id} username={self.username!r}>"
