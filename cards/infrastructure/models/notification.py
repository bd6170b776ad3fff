"""SQLAlchemy models for persisted notifications and per-user receipts."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.sql import expression

from cards.infrastructure.database import Base
from cards.utils import now_in_app_naive_datetime


class NotificationModel(Base):
    """Database representation for notifications."""

    __tablename__ = "notification"
    __table_args__ = (
        Index("ix_notification_recipient_created", "recipient_id", "created_at", "id"),
        Index("ix_notification_global_created", "is_global", "created_at", "id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    type = Column(String(50), nullable=False)
    message = Column(Text, nullable=False)
    payload = Column(JSON, nullable=False, default=dict)
    recipient_id = Column(Integer, ForeignKey("user.id"), nullable=True)
    is_global = Column(
        Boolean, nullable=False, default=False, server_default=expression.false()
    )
    is_seen = Column(
        Boolean, nullable=False, default=False, server_default=expression.false()
    )
    is_read = Column(
        Boolean, nullable=False, default=False, server_default=expression.false()
    )
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)
    seen_at = Column(DateTime(), nullable=True)
    read_at = Column(DateTime(), nullable=True)


class NotificationReceiptModel(Base):
    """Seen/read state of a global notification for a single user."""

    __tablename__ = "notification_receipt"
    __table_args__ = (
        UniqueConstraint(
            "notification_id", "user_id", name="ux_notification_receipt_user"
        ),
    )

    id = Column(Integer, primary_key=True)
    notification_id = Column(
        Integer, ForeignKey("notification.id", ondelete="CASCADE"), nullable=False
    )
    user_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True)
    seen_at = Column(DateTime(), nullable=True)
    read_at = Column(DateTime(), nullable=True)


__all__ = ["NotificationModel", "NotificationReceiptModel"]
