"""
models/watch_history.py — WatchHistoryEntry table definition.

Ordered list of videos a user has watched. `position` is the ordering key;
the same video may appear more than once.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.extensions import db


class WatchHistoryEntry(db.Model):
    __tablename__ = "watch_history"

    id: Mapped[int] = mapped_column(primary_key=True)

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    video_id: Mapped[int] = mapped_column(
        ForeignKey("videos.id", ondelete="CASCADE"),
        nullable=False,
    )

    position: Mapped[int] = mapped_column(Integer, nullable=False)

    watched_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    user: Mapped["User"] = relationship(  # noqa: F821
        "User",
        back_populates="watch_history",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<WatchHistoryEntry user_id={self.user_id} "
            f"video_id={self.video_id} position={self.position}>"
        )
