"""
models/subscription.py — Subscription table definition.

A directed edge: `subscriber` follows `channel`. Both ends are users.
Rows are created and deleted by the subscription feature; this service only
counts them when building a channel profile.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.extensions import db


class Subscription(db.Model):
    __tablename__ = "subscriptions"

    __table_args__ = (
        UniqueConstraint(
            "subscriber_id",
            "channel_id",
            name="uq_subscriptions_subscriber_channel",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    # The user who is subscribing.
    subscriber_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # The user being subscribed to.
    channel_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Subscription subscriber_id={self.subscriber_id} "
            f"channel_id={self.channel_id}>"
        )
