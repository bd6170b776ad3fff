"""Public helpers for emitting and reading notifications."""

from .events import announce, notify_post_commented, notify_post_liked
from .inbox import (
    get_unseen_count,
    list_notifications,
    mark_all_seen,
    mark_notification_read,
)

__all__ = [
    "announce",
    "notify_post_liked",
    "notify_post_commented",
    "list_notifications",
    "get_unseen_count",
    "mark_all_seen",
    "mark_notification_read",
]
