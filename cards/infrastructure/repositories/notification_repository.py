"""Persistence helpers for notification entities."""

from __future__ import annotations

import threading

from sqlalchemy import and_, exists, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cards.domain.entities import Notification, NotificationPage
from cards.infrastructure.models import NotificationModel, NotificationReceiptModel
from cards.utils import (
    decode_cursor,
    encode_cursor,
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_naive_datetime,
)


class NotificationRepository:
    """Durable store for :class:`Notification` records.

    Targeted notifications carry their own ``is_seen``/``is_read`` flags.
    Global notifications keep that state per viewer in
    :class:`NotificationReceiptModel` rows.

    ``created_at`` is always stamped here, at write time, so that it never
    decreases in id order; keyset cursors rely on that.
    """

    _write_lock = threading.Lock()

    def __init__(self, session: Session) -> None:
        self.session = session

    def insert(self, notification: Notification) -> Notification:
        """Persist ``notification``; any ``created_at`` it carries is ignored."""

        model = NotificationModel(
            type=notification.type,
            message=notification.message,
            payload=dict(notification.payload or {}),
            recipient_id=None if notification.is_global else notification.recipient_id,
            is_global=notification.is_global,
            is_seen=False,
            is_read=False,
        )
        with self._write_lock:
            model.created_at = now_in_app_naive_datetime()
            self.session.add(model)
            self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def find_page(
        self,
        user_id: int,
        *,
        limit: int,
        cursor: str | None = None,
    ) -> NotificationPage:
        """Return notifications visible to ``user_id`` strictly older than ``cursor``."""

        query = self._visible_query(user_id)
        if cursor:
            created_at, cursor_id = decode_cursor(cursor)
            naive_created_at = ensure_app_naive_datetime(created_at)
            query = query.filter(
                or_(
                    NotificationModel.created_at < naive_created_at,
                    and_(
                        NotificationModel.created_at == naive_created_at,
                        NotificationModel.id < cursor_id,
                    ),
                )
            )
        rows = (
            query.order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc())
            .limit(limit + 1)
            .all()
        )
        items = [self._to_entity(model, receipt) for model, receipt in rows[:limit]]
        next_cursor = None
        if len(rows) > limit and items:
            last = items[-1]
            next_cursor = encode_cursor(last.created_at, last.id)
        return NotificationPage(items=items, next_cursor=next_cursor)

    def get_for_user(self, notification_id: int, user_id: int) -> Notification | None:
        row = (
            self._visible_query(user_id)
            .filter(NotificationModel.id == notification_id)
            .one_or_none()
        )
        if row is None:
            return None
        model, receipt = row
        return self._to_entity(model, receipt)

    def count_unseen(self, user_id: int) -> int:
        targeted = (
            self.session.query(NotificationModel)
            .filter(
                NotificationModel.recipient_id == user_id,
                NotificationModel.is_global.is_(False),
                NotificationModel.is_seen.is_(False),
            )
            .count()
        )
        global_unseen = (
            self._visible_query(user_id)
            .filter(NotificationModel.is_global.is_(True))
            .filter(
                or_(
                    NotificationReceiptModel.id.is_(None),
                    NotificationReceiptModel.seen_at.is_(None),
                )
            )
            .count()
        )
        return targeted + global_unseen

    def mark_all_seen(self, user_id: int) -> int:
        """Flag every notification currently unseen by ``user_id``; return how many."""

        return self._retry_on_conflict(self._mark_all_seen, user_id)

    def _mark_all_seen(self, user_id: int) -> int:
        now = now_in_app_naive_datetime()
        missing_receipts = self._missing_receipt_ids(user_id)
        modified = (
            self.session.query(NotificationModel)
            .filter(
                NotificationModel.recipient_id == user_id,
                NotificationModel.is_global.is_(False),
                NotificationModel.is_seen.is_(False),
            )
            .update(
                {NotificationModel.is_seen: True, NotificationModel.seen_at: now},
                synchronize_session=False,
            )
        )
        modified += (
            self.session.query(NotificationReceiptModel)
            .filter(
                NotificationReceiptModel.user_id == user_id,
                NotificationReceiptModel.seen_at.is_(None),
            )
            .update({NotificationReceiptModel.seen_at: now}, synchronize_session=False)
        )
        for notification_id in missing_receipts:
            self.session.add(
                NotificationReceiptModel(
                    notification_id=notification_id, user_id=user_id, seen_at=now
                )
            )
        modified += len(missing_receipts)
        self.session.commit()
        return modified

    def mark_one_read(self, notification_id: int, user_id: int) -> bool:
        """Flag a single notification as read; ``False`` when it is not visible."""

        return self._retry_on_conflict(self._mark_one_read, notification_id, user_id)

    def _mark_one_read(self, notification_id: int, user_id: int) -> bool:
        model = self.session.get(NotificationModel, notification_id)
        if model is None:
            return False
        now = now_in_app_naive_datetime()
        if model.is_global:
            receipt = (
                self.session.query(NotificationReceiptModel)
                .filter(
                    NotificationReceiptModel.notification_id == notification_id,
                    NotificationReceiptModel.user_id == user_id,
                )
                .one_or_none()
            )
            if receipt is None:
                receipt = NotificationReceiptModel(
                    notification_id=notification_id, user_id=user_id
                )
                self.session.add(receipt)
            if receipt.read_at is None:
                receipt.read_at = now
        elif model.recipient_id == user_id:
            if not model.is_read:
                model.is_read = True
                model.read_at = now
        else:
            return False
        self.session.commit()
        return True

    def _missing_receipt_ids(self, user_id: int) -> list[int]:
        rows = (
            self.session.query(NotificationModel.id)
            .filter(NotificationModel.is_global.is_(True))
            .filter(~self._has_receipt(user_id))
            .all()
        )
        return [notification_id for (notification_id,) in rows]

    def _retry_on_conflict(self, operation, *args):
        try:
            return operation(*args)
        except IntegrityError:
            # A concurrent request created the same receipt first.
            self.session.rollback()
            return operation(*args)

    def _visible_query(self, user_id: int):
        return (
            self.session.query(NotificationModel, NotificationReceiptModel)
            .outerjoin(
                NotificationReceiptModel,
                and_(
                    NotificationReceiptModel.notification_id == NotificationModel.id,
                    NotificationReceiptModel.user_id == user_id,
                ),
            )
            .filter(
                or_(
                    and_(
                        NotificationModel.recipient_id == user_id,
                        NotificationModel.is_global.is_(False),
                    ),
                    NotificationModel.is_global.is_(True),
                )
            )
        )

    @staticmethod
    def _has_receipt(user_id: int):
        return exists().where(
            NotificationReceiptModel.notification_id == NotificationModel.id,
            NotificationReceiptModel.user_id == user_id,
        )

    @staticmethod
    def _to_entity(
        model: NotificationModel,
        receipt: NotificationReceiptModel | None = None,
    ) -> Notification:
        if model.is_global:
            seen_at = receipt.seen_at if receipt is not None else None
            read_at = receipt.read_at if receipt is not None else None
            is_seen = seen_at is not None
            is_read = read_at is not None
        else:
            seen_at, read_at = model.seen_at, model.read_at
            is_seen, is_read = bool(model.is_seen), bool(model.is_read)
        return Notification(
            id=model.id,
            type=model.type,
            message=model.message,
            payload=dict(model.payload or {}),
            recipient_id=model.recipient_id,
            is_global=bool(model.is_global),
            is_seen=is_seen,
            is_read=is_read,
            created_at=ensure_app_timezone(model.created_at),
            seen_at=ensure_app_timezone(seen_at),
            read_at=ensure_app_timezone(read_at),
        )


__all__ = ["NotificationRepository"]
