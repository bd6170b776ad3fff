"""Wire representation of notifications pushed over the realtime channel."""

from __future__ import annotations

from typing import Any

from cards.domain.entities import Notification
from cards.utils import isoformat_or_none


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Return the JSON payload for ``notification`` without internal fields."""

    return {
        "id": notification.id,
        "type": notification.type,
        "message": notification.message,
        "payload": dict(notification.payload or {}),
        "is_global": notification.is_global,
        "is_seen": notification.is_seen,
        "is_read": notification.is_read,
        "created_at": isoformat_or_none(notification.created_at),
    }


__all__ = ["serialize_notification"]
