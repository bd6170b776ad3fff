"""Read and acknowledge the notifications visible to a user."""

from __future__ import annotations

from sqlalchemy.orm import Session

from cards.domain.entities import NotificationPage
from cards.infrastructure.repositories import NotificationRepository


def list_notifications(
    session: Session, user_id: int, *, limit: int, cursor: str | None = None
) -> NotificationPage:
    """Return a page of notifications older than ``cursor``, newest first."""

    if limit <= 0:
        raise ValueError("El límite debe ser mayor que cero")
    return NotificationRepository(session).find_page(user_id, limit=limit, cursor=cursor)


def get_unseen_count(session: Session, user_id: int) -> int:
    return NotificationRepository(session).count_unseen(user_id)


def mark_all_seen(session: Session, user_id: int) -> int:
    return NotificationRepository(session).mark_all_seen(user_id)


def mark_notification_read(session: Session, user_id: int, notification_id: int) -> None:
    """Flag one notification as read or raise ``ValueError`` if it is not visible."""

    if not NotificationRepository(session).mark_one_read(notification_id, user_id):
        raise ValueError("Notificación no encontrada")


__all__ = [
    "get_unseen_count",
    "list_notifications",
    "mark_all_seen",
    "mark_notification_read",
]
