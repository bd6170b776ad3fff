"""Domain entities exposed by the application."""

from .notification import (
    LIVE_NOTIFICATION_EVENT,
    NOTIFICATION_TYPE_ANNOUNCEMENT,
    NOTIFICATION_TYPE_COMMENT,
    NOTIFICATION_TYPE_LIKE,
    Notification,
    NotificationEvent,
    NotificationPage,
)
from .post import Comment, Like, Post
from .user import Principal, User

__all__ = [
    "Comment",
    "LIVE_NOTIFICATION_EVENT",
    "Like",
    "NOTIFICATION_TYPE_ANNOUNCEMENT",
    "NOTIFICATION_TYPE_COMMENT",
    "NOTIFICATION_TYPE_LIKE",
    "Notification",
    "NotificationEvent",
    "NotificationPage",
    "Post",
    "Principal",
    "User",
]
