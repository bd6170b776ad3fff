"""Domain entities for posts and the interactions that trigger notifications."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Post:
    id: int | None
    user_id: int
    caption: str
    like_count: int = 0
    comment_count: int = 0
    created_at: datetime | None = None


@dataclass
class Like:
    post_id: int
    user_id: int
    created_at: datetime | None = None


@dataclass
class Comment:
    id: int | None
    post_id: int
    user_id: int
    text: str
    created_at: datetime | None = None
