"""Build notification events for user actions and hand them to the dispatcher."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from cards.domain.entities import (
    NOTIFICATION_TYPE_ANNOUNCEMENT,
    NOTIFICATION_TYPE_COMMENT,
    NOTIFICATION_TYPE_LIKE,
    Comment,
    Like,
    Notification,
    NotificationEvent,
    Post,
    Principal,
)
from cards.infrastructure.notifications import NotificationDispatcher
from cards.infrastructure.repositories import NotificationRepository
from cards.utils import isoformat_or_none

logger = logging.getLogger(__name__)


def _dispatch_secondary(
    session: Session, dispatcher: NotificationDispatcher, event: NotificationEvent
) -> Notification | None:
    """Dispatch ``event`` without letting a failure undo the action that caused it."""

    try:
        return dispatcher.dispatch_from_thread(event, NotificationRepository(session))
    except Exception:
        session.rollback()
        logger.exception(
            "Could not dispatch %s notification for user %s",
            event.type,
            event.recipient_id,
        )
        return None


def notify_post_liked(
    session: Session,
    dispatcher: NotificationDispatcher,
    *,
    post: Post,
    like: Like,
    actor: Principal,
) -> Notification | None:
    """Tell the post owner that ``actor`` liked their post."""

    if post.user_id == actor.user_id:
        return None

    event = NotificationEvent(
        type=NOTIFICATION_TYPE_LIKE,
        message=f"A {actor.user_name} le gustó tu publicación.",
        recipient_id=post.user_id,
        payload={
            "post_id": post.id,
            "actor_id": actor.user_id,
            "actor_name": actor.user_name,
            "timestamp": isoformat_or_none(like.created_at),
        },
    )
    return _dispatch_secondary(session, dispatcher, event)


def notify_post_commented(
    session: Session,
    dispatcher: NotificationDispatcher,
    *,
    post: Post,
    comment: Comment,
    actor: Principal,
) -> Notification | None:
    """Tell the post owner that ``actor`` commented on their post."""

    if post.user_id == actor.user_id:
        return None

    event = NotificationEvent(
        type=NOTIFICATION_TYPE_COMMENT,
        message=f"{actor.user_name} comentó tu publicación.",
        recipient_id=post.user_id,
        payload={
            "post_id": post.id,
            "comment_id": comment.id,
            "actor_id": actor.user_id,
            "actor_name": actor.user_name,
            "timestamp": isoformat_or_none(comment.created_at),
        },
    )
    return _dispatch_secondary(session, dispatcher, event)


def announce(
    session: Session,
    dispatcher: NotificationDispatcher,
    *,
    message: str,
    payload: dict[str, Any] | None = None,
) -> Notification:
    """Publish a global announcement. Persistence errors propagate."""

    event = NotificationEvent(
        type=NOTIFICATION_TYPE_ANNOUNCEMENT,
        message=message,
        payload=payload or {},
        is_global=True,
    )
    return dispatcher.dispatch_from_thread(event, NotificationRepository(session))


__all__ = ["announce", "notify_post_commented", "notify_post_liked"]
