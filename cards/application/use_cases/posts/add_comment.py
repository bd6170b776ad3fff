"""Use case for commenting on a post."""

from __future__ import annotations

from sqlalchemy.orm import Session

from cards.application.use_cases.notifications import notify_post_commented
from cards.domain.entities import Comment, Principal
from cards.infrastructure.notifications import NotificationDispatcher
from cards.infrastructure.repositories import PostRepository

from .errors import PostNotFoundError


def add_comment(
    session: Session,
    dispatcher: NotificationDispatcher,
    *,
    post_id: int,
    actor: Principal,
    text: str,
) -> Comment:
    """Persist a comment by ``actor`` and notify the post owner."""

    text = text.strip()
    if not text:
        raise ValueError("El comentario no puede estar vacío")

    repository = PostRepository(session)
    post = repository.get(post_id)
    if post is None:
        raise PostNotFoundError(post_id)

    comment = repository.add_comment(
        Comment(id=None, post_id=post_id, user_id=actor.user_id, text=text)
    )
    notify_post_commented(session, dispatcher, post=post, comment=comment, actor=actor)
    return comment
