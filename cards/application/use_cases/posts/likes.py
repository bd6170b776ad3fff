"""Use cases for liking and unliking posts."""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cards.application.use_cases.notifications import notify_post_liked
from cards.domain.entities import Post, Principal
from cards.infrastructure.notifications import NotificationDispatcher
from cards.infrastructure.repositories import PostRepository

from .errors import AlreadyLikedError, NotLikedError, PostNotFoundError


def like_post(
    session: Session,
    dispatcher: NotificationDispatcher,
    *,
    post_id: int,
    actor: Principal,
) -> Post:
    """Record a like by ``actor`` and notify the post owner."""

    repository = PostRepository(session)
    post = repository.get(post_id)
    if post is None:
        raise PostNotFoundError(post_id)
    if repository.get_like(post_id, actor.user_id) is not None:
        raise AlreadyLikedError()

    try:
        like = repository.add_like(post_id, actor.user_id)
    except IntegrityError as exc:
        session.rollback()
        raise AlreadyLikedError() from exc

    notify_post_liked(session, dispatcher, post=post, like=like, actor=actor)
    return repository.get(post_id)


def unlike_post(session: Session, *, post_id: int, actor: Principal) -> Post:
    """Remove a like. Undoing an action never notifies anyone."""

    repository = PostRepository(session)
    if repository.get(post_id) is None:
        raise PostNotFoundError(post_id)
    if not repository.remove_like(post_id, actor.user_id):
        raise NotLikedError()
    return repository.get(post_id)
