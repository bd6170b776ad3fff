from .auth import Token
from .notification import (
    AnnouncementCreate,
    MarkAllSeenRead,
    MarkReadResult,
    NotificationPageRead,
    NotificationRead,
    UnseenCountRead,
)
from .post import CommentCreate, CommentRead, PostCreate, PostRead
from .user import UserCreate, UserRead

__all__ = [
    "AnnouncementCreate",
    "CommentCreate",
    "CommentRead",
    "MarkAllSeenRead",
    "MarkReadResult",
    "NotificationPageRead",
    "NotificationRead",
    "PostCreate",
    "PostRead",
    "Token",
    "UnseenCountRead",
    "UserCreate",
    "UserRead",
]
