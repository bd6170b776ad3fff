"""Websocket transport used to push events to registered sessions."""

from __future__ import annotations

import logging
from collections.abc import Hashable, Iterable
from typing import Any

from .presence import PresenceRegistry

logger = logging.getLogger(__name__)


class RealtimeChannel:
    """Send JSON events to live sessions tracked by a :class:`PresenceRegistry`.

    Delivery is best effort: a session that fails to receive is dropped from
    the registry and the error is not propagated.
    """

    def __init__(self, registry: PresenceRegistry) -> None:
        self._registry = registry

    async def emit_to_session(
        self, handle: Hashable, event_name: str, payload: Any
    ) -> bool:
        message = {"type": event_name, "data": payload}
        try:
            await handle.send_json(message)
        except Exception as exc:
            owner = self._registry.unregister(handle)
            logger.debug(
                "Dropping %s event for user %s: session unreachable (%s)",
                event_name,
                owner,
                exc,
            )
            return False
        return True

    async def emit_to_sessions(
        self, handles: Iterable[Hashable], event_name: str, payload: Any
    ) -> int:
        delivered = 0
        for handle in handles:
            if await self.emit_to_session(handle, event_name, payload):
                delivered += 1
        return delivered

    async def emit_to_all_sessions(self, event_name: str, payload: Any) -> int:
        return await self.emit_to_sessions(
            self._registry.all_sessions(), event_name, payload
        )


__all__ = ["RealtimeChannel"]
