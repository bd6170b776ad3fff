"""Presence bookkeeping for realtime notification sessions."""

from __future__ import annotations

import threading
from collections import defaultdict
from collections.abc import Hashable
from typing import DefaultDict, Set


class PresenceRegistry:
    """Track which live sessions belong to which user.

    A user may own several sessions at once (tabs, devices). Handles are
    opaque hashables, usually a :class:`fastapi.WebSocket`. The registry is
    shared between the event loop and the worker thread pool, so every
    mutation and snapshot happens under one lock.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._sessions: DefaultDict[int, Set[Hashable]] = defaultdict(set)
        self._owners: dict[Hashable, int] = {}

    def register(self, user_id: int, handle: Hashable) -> None:
        """Associate ``handle`` with ``user_id``; repeated calls are no-ops."""

        with self._lock:
            previous = self._owners.get(handle)
            if previous == user_id:
                return
            if previous is not None:
                self._discard(previous, handle)
            self._owners[handle] = user_id
            self._sessions[user_id].add(handle)

    def unregister(self, handle: Hashable) -> int | None:
        """Forget ``handle`` and return its owner, or ``None`` if it was unknown."""

        with self._lock:
            user_id = self._owners.pop(handle, None)
            if user_id is not None:
                self._discard(user_id, handle)
            return user_id

    def is_online(self, user_id: int) -> bool:
        with self._lock:
            return bool(self._sessions.get(user_id))

    def sessions_for(self, user_id: int) -> frozenset[Hashable]:
        with self._lock:
            return frozenset(self._sessions.get(user_id, ()))

    def all_sessions(self) -> frozenset[Hashable]:
        with self._lock:
            return frozenset(self._owners)

    def online_users(self) -> frozenset[int]:
        with self._lock:
            return frozenset(self._sessions)

    def __len__(self) -> int:
        with self._lock:
            return len(self._owners)

    def _discard(self, user_id: int, handle: Hashable) -> None:
        sessions = self._sessions.get(user_id)
        if sessions is None:
            return
        sessions.discard(handle)
        if not sessions:
            self._sessions.pop(user_id, None)


__all__ = ["PresenceRegistry"]
