"""Persist notifications and push them to whoever is online."""

from __future__ import annotations

import logging
from collections.abc import Hashable
from typing import Protocol

from anyio import from_thread, to_thread

from cards.domain.entities import LIVE_NOTIFICATION_EVENT, Notification, NotificationEvent

from .channel import RealtimeChannel
from .presence import PresenceRegistry
from .serialization import serialize_notification

logger = logging.getLogger(__name__)


class NotificationStore(Protocol):
    def insert(self, notification: Notification) -> Notification: ...


def _to_notification(event: NotificationEvent) -> Notification:
    # created_at is stamped by the store at write time.
    return Notification(
        id=None,
        type=event.type,
        message=event.message,
        payload=dict(event.payload),
        recipient_id=None if event.is_global else event.recipient_id,
        is_global=event.is_global,
    )


class NotificationDispatcher:
    """Always persist, then broadcast, deliver now, or leave for backfill.

    The durable write completes before any live emission so that a client
    polling the REST backfill can never miss an event it was pushed. Live
    delivery is a latency optimisation only: presence and emit failures are
    logged and swallowed, persistence failures propagate to the producer.
    """

    def __init__(self, registry: PresenceRegistry, channel: RealtimeChannel) -> None:
        self._registry = registry
        self._channel = channel

    async def dispatch(
        self, event: NotificationEvent, store: NotificationStore
    ) -> Notification:
        saved = await to_thread.run_sync(store.insert, _to_notification(event))
        await self._deliver(saved)
        return saved

    def dispatch_from_thread(
        self, event: NotificationEvent, store: NotificationStore
    ) -> Notification:
        """Dispatch from a worker thread that already holds a pool slot.

        The write runs on the calling thread; only the live delivery hops to
        the event loop, so no second worker slot is ever requested.
        """

        saved = store.insert(_to_notification(event))
        from_thread.run(self._deliver, saved)
        return saved

    async def _deliver(self, notification: Notification) -> None:
        message = serialize_notification(notification)
        if notification.is_global:
            delivered = await self._channel.emit_to_all_sessions(
                LIVE_NOTIFICATION_EVENT, message
            )
            logger.debug(
                "Broadcast notification %s to %s session(s)", notification.id, delivered
            )
            return

        sessions = self._live_sessions(notification.recipient_id)
        if not sessions:
            logger.debug(
                "User %s offline; notification %s kept for backfill",
                notification.recipient_id,
                notification.id,
            )
            return

        delivered = await self._channel.emit_to_sessions(
            sessions, LIVE_NOTIFICATION_EVENT, message
        )
        logger.debug(
            "Pushed notification %s to %s/%s session(s) of user %s",
            notification.id,
            delivered,
            len(sessions),
            notification.recipient_id,
        )

    def _live_sessions(self, user_id: int | None) -> frozenset[Hashable]:
        if user_id is None:
            return frozenset()
        try:
            return self._registry.sessions_for(user_id)
        except Exception:
            logger.warning(
                "Presence lookup failed for user %s; delivering via backfill only",
                user_id,
                exc_info=True,
            )
            return frozenset()


__all__ = ["NotificationDispatcher", "NotificationStore"]
