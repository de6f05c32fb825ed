"""
Push Subscription Model.

WHAT: SQLAlchemy model for web push subscriptions.

HOW: One row per installed browser endpoint. Rows are immutable: they are
inserted on subscribe and deleted on unsubscribe or when the push service
reports the endpoint as gone. There is no update path.
"""

from datetime import datetime, timezone
from typing import Dict, Any

from sqlalchemy import BigInteger, Integer, Text, DateTime, Index
from sqlalchemy.orm import Mapped, mapped_column

from pushrelay.models.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class PushSubscription(Base):
    """
    Web Push subscription record.

    WHAT: Stores the push endpoint and its encryption keys.

    Invariants:
    - ``endpoint`` is unique across live rows (unique index)
    - ``id`` is never reused (sqlite_autoincrement / Postgres identity)
    - ``created_at`` is set once on insert
    """

    __tablename__ = "push_subscriptions"

    # BIGINT on server databases; SQLite AUTOINCREMENT requires INTEGER
    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )

    # Subscription endpoint (unique URL for this subscription)
    endpoint: Mapped[str] = mapped_column(Text, nullable=False)

    # Encryption keys for secure messaging
    p256dh_key: Mapped[str] = mapped_column(Text, nullable=False)
    auth_key: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utcnow, nullable=False
    )

    __table_args__ = (
        Index("ix_push_subscriptions_endpoint", "endpoint", unique=True),
        {"sqlite_autoincrement": True},
    )

    def __repr__(self) -> str:
        return f"<PushSubscription(id={self.id}, endpoint={self.endpoint!r})>"

    def to_webpush_info(self) -> Dict[str, Any]:
        """
        Convert to format expected by webpush library.

        Returns:
            Subscription dict for pywebpush's ``subscription_info``
        """
        return {
            "endpoint": self.endpoint,
            "keys": {
                "p256dh": self.p256dh_key,
                "auth": self.auth_key,
            },
        }
