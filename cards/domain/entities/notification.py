"""Domain entities describing notifications and the events that produce them."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

NOTIFICATION_TYPE_LIKE = "Like"
NOTIFICATION_TYPE_COMMENT = "Comment"
NOTIFICATION_TYPE_ANNOUNCEMENT = "Announcement"

LIVE_NOTIFICATION_EVENT = "notification"


@dataclass
class Notification:
    """Durable notification record.

    ``recipient_id`` is ``None`` for global notifications. For a global
    record returned to a specific viewer, ``is_seen``/``is_read`` reflect that
    viewer's receipt rather than a shared flag.
    """

    id: int | None
    type: str
    message: str
    payload: dict[str, Any] = field(default_factory=dict)
    recipient_id: int | None = None
    is_global: bool = False
    is_seen: bool = False
    is_read: bool = False
    created_at: datetime | None = None
    seen_at: datetime | None = None
    read_at: datetime | None = None


@dataclass(frozen=True)
class NotificationEvent:
    """Request to notify someone, built by a producer and handed to the dispatcher."""

    type: str
    message: str
    payload: dict[str, Any] = field(default_factory=dict)
    recipient_id: int | None = None
    is_global: bool = False

    def __post_init__(self) -> None:
        if not self.is_global and self.recipient_id is None:
            raise ValueError("Targeted notifications require a recipient")


@dataclass(frozen=True)
class NotificationPage:
    """One page of notifications ordered newest first."""

    items: list[Notification]
    next_cursor: str | None = None

    @property
    def has_more(self) -> bool:
        return self.next_cursor is not None


__all__ = [
    "LIVE_NOTIFICATION_EVENT",
    "NOTIFICATION_TYPE_ANNOUNCEMENT",
    "NOTIFICATION_TYPE_COMMENT",
    "NOTIFICATION_TYPE_LIKE",
    "Notification",
    "NotificationEvent",
    "NotificationPage",
]
