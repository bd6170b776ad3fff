"""Keep a live notification connection open and feed its events to a feed."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

import anyio

from cards.domain.entities import LIVE_NOTIFICATION_EVENT

from .feed import NotificationFeed

logger = logging.getLogger(__name__)


class LiveConnectionClosed(Exception):
    """Raised by a connection when the remote end goes away."""


class LiveConnection(Protocol):
    async def send_json(self, data: Any) -> None: ...

    async def receive_json(self) -> Any: ...

    async def close(self) -> None: ...


ConnectionFactory = Callable[[], Awaitable[LiveConnection]]


class LiveSubscription:
    """Register presence, relay ``notification`` events and reconnect on drops.

    ``connect`` opens a new transport-level connection (for instance a
    websocket to ``/notifications/ws?token=...``). Every successful
    (re)connection announces the session with ``{"type": "register"}``.
    After a reconnection the feed is told to resynchronise, because nothing
    guarantees the events pushed during the outage were received.
    """

    def __init__(
        self,
        connect: ConnectionFactory,
        feed: NotificationFeed,
        *,
        initial_backoff: float = 0.5,
        max_backoff: float = 30.0,
        max_attempts: int | None = None,
    ) -> None:
        self._connect = connect
        self._feed = feed
        self._initial_backoff = initial_backoff
        self._max_backoff = max_backoff
        self._max_attempts = max_attempts
        self._connected = False
        self._cancel_scope: anyio.CancelScope | None = None

    @property
    def connected(self) -> bool:
        return self._connected

    def stop(self) -> None:
        if self._cancel_scope is not None:
            self._cancel_scope.cancel()

    async def run(self) -> None:
        """Run until :meth:`stop` is called or ``max_attempts`` consecutive attempts fail."""

        with anyio.CancelScope() as scope:
            self._cancel_scope = scope
            await self._run_forever()
        self._cancel_scope = None

    async def _run_forever(self) -> None:
        failures = 0
        has_connected = False
        while True:
            try:
                connection = await self._connect()
            except (OSError, LiveConnectionClosed) as exc:
                logger.info("Live channel unavailable: %s", exc)
            else:
                try:
                    await connection.send_json({"type": "register"})
                    self._connected = True
                    failures = 0
                    if has_connected:
                        await self._feed.handle_reconnect()
                    has_connected = True
                    await self._pump(connection)
                except (OSError, LiveConnectionClosed) as exc:
                    logger.info("Live channel dropped: %s", exc)
                finally:
                    self._connected = False
                    with anyio.CancelScope(shield=True):
                        await self._close_quietly(connection)

            failures += 1
            if self._max_attempts is not None and failures > self._max_attempts:
                logger.warning("Giving up on the live channel after %s attempts", failures - 1)
                return
            await anyio.sleep(self._backoff(failures))

    async def _pump(self, connection: LiveConnection) -> None:
        while True:
            message = await connection.receive_json()
            if not isinstance(message, dict):
                continue
            if message.get("type") != LIVE_NOTIFICATION_EVENT:
                continue
            try:
                self._feed.apply_live(message.get("data") or {})
            except ValueError:
                logger.warning("Ignoring malformed live notification: %r", message)

    def _backoff(self, failures: int) -> float:
        return min(self._max_backoff, self._initial_backoff * (2 ** (failures - 1)))

    @staticmethod
    async def _close_quietly(connection: LiveConnection) -> None:
        try:
            await connection.close()
        except (OSError, LiveConnectionClosed):
            pass


__all__ = ["ConnectionFactory", "LiveConnection", "LiveConnectionClosed", "LiveSubscription"]
