"""Repository implementations for infrastructure layer."""

from .notification_repository import NotificationRepository
from .post_repository import PostRepository
from .user_repository import UserRepository

__all__ = [
    "NotificationRepository",
    "PostRepository",
    "UserRepository",
]
