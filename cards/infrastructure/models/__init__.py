"""ORM models used by the application infrastructure."""

from .notification import NotificationModel, NotificationReceiptModel
from .post import CommentModel, LikeModel, PostModel
from .user import UserModel

__all__ = [
    "CommentModel",
    "LikeModel",
    "NotificationModel",
    "NotificationReceiptModel",
    "PostModel",
    "UserModel",
]
