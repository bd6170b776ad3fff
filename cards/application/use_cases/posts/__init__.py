"""Use cases for posts and the interactions that notify their owners."""

from .add_comment import add_comment
from .create_post import create_post
from .errors import AlreadyLikedError, NotLikedError, PostNotFoundError
from .likes import like_post, unlike_post

__all__ = [
    "AlreadyLikedError",
    "NotLikedError",
    "PostNotFoundError",
    "add_comment",
    "create_post",
    "like_post",
    "unlike_post",
]
