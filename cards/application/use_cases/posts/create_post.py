"""Use case for publishing a post."""

from sqlalchemy.orm import Session

from cards.domain.entities import Post, Principal
from cards.infrastructure.repositories import PostRepository


def create_post(session: Session, *, owner: Principal, caption: str) -> Post:
    return PostRepository(session).create(
        Post(id=None, user_id=owner.user_id, caption=caption.strip())
    )
