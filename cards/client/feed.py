"""Merge live notification pushes with paginated REST backfill.

The feed owns the list shown in the notification panel and the unseen badge
counter. It guarantees three things whatever order live pushes and backfill
pages arrive in:

* every notification id appears at most once;
* items are ordered by ``(created_at, id)`` descending;
* the badge only moves for net-new unseen items, and seen/read stay
  independent.

Server calls that acknowledge state (mark seen / mark read) are optimistic:
local state changes first and a failed request is only logged. The next
:meth:`NotificationFeed.load_initial` is the point where the server's view
wins again.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from anyio.abc import TaskGroup

from cards.utils import encode_cursor, parse_datetime

from .api import NotificationsApiError

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20


@dataclass
class FeedItem:
    """A notification as held by the panel, plus client-only state."""

    id: int
    type: str
    message: str
    created_at: datetime
    payload: dict[str, Any] = field(default_factory=dict)
    is_global: bool = False
    is_seen: bool = False
    is_read: bool = False
    is_new: bool = False

    @classmethod
    def from_payload(cls, data: Mapping[str, Any], *, is_new: bool = False) -> "FeedItem":
        """Build an item from the REST/live wire shape; ``ValueError`` if incomplete."""

        try:
            item_id = int(data["id"])
            created_at = parse_datetime(data["created_at"])
        except (KeyError, TypeError) as exc:
            raise ValueError(f"Malformed notification payload: {data!r}") from exc
        if created_at is None:
            raise ValueError(f"Notification {item_id} has no creation time")
        return cls(
            id=item_id,
            type=str(data.get("type", "")),
            message=str(data.get("message", "")),
            created_at=created_at,
            payload=dict(data.get("payload") or {}),
            is_global=bool(data.get("is_global", False)),
            is_seen=bool(data.get("is_seen", False)),
            is_read=bool(data.get("is_read", False)),
            is_new=is_new,
        )

    @property
    def sort_key(self) -> tuple[datetime, int]:
        return (self.created_at, self.id)


def _oldest(items: list[FeedItem]) -> FeedItem | None:
    return min(items, key=lambda item: item.sort_key, default=None)

class NotificationsBackend(Protocol):
    async def list_page(
        self, *, cursor: str | None = None, limit: int = DEFAULT_PAGE_SIZE
    ) -> Mapping[str, Any]: ...

    async def unseen_count(self) -> int: ...

    async def mark_all_seen(self) -> int: ...

    async def mark_read(self, notification_id: int) -> bool: ...


class NotificationFeed:
    def __init__(
        self, api: NotificationsBackend, *, page_size: int = DEFAULT_PAGE_SIZE
    ) -> None:
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self._api = api
        self._page_size = page_size
        self._items: list[FeedItem] = []
        self._by_id: dict[int, FeedItem] = {}
        self._unseen = 0
        self._has_more = False
        self._is_open = False
        self._stale = True
        self._loading = 0
        self._arrived_while_loading: list[FeedItem] = []
        self._seen_watermark: tuple[datetime, int] | None = None
        self._backfill_edge: FeedItem | None = None
        self._task_group: TaskGroup | None = None

    @property
    def items(self) -> tuple[FeedItem, ...]:
        return tuple(self._items)

    @property
    def unseen_count(self) -> int:
        return self._unseen

    @property
    def has_more(self) -> bool:
        return self._has_more

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def is_stale(self) -> bool:
        return self._stale

    def get(self, notification_id: int) -> FeedItem | None:
        return self._by_id.get(notification_id)

    def bind(self, task_group: TaskGroup | None) -> None:
        """Run server acknowledgements in ``task_group`` instead of awaiting them."""

        self._task_group = task_group

    async def open(self) -> None:
        """Open the panel: fresh backfill, then clear the badge if needed."""

        await self.load_initial()
        if self._unseen > 0:
            await self.mark_all_seen()

    def close(self) -> None:
        """Drop held items; the badge counter survives until the next open."""

        self._items.clear()
        self._by_id.clear()
        self._has_more = False
        self._is_open = False
        self._stale = True
        self._backfill_edge = None

    async def load_initial(self) -> None:
        """Replace the held list with the newest page from the server."""

        page = await self._fetch(cursor=None)
        fetched = [FeedItem.from_payload(data) for data in page.get("items", ())]
        arrived = list(self._arrived_while_loading)

        self._items.clear()
        self._by_id.clear()
        self._merge(fetched)
        # Pushes that landed while the request was in flight may be newer
        # than the page; they must not be lost by the replace.
        self._merge(arrived)
        if not self._loading:
            self._arrived_while_loading = []
        self._seen_watermark = None
        self._backfill_edge = _oldest(fetched)

        self._unseen = sum(1 for item in self._items if not item.is_seen)
        self._has_more = bool(page.get("has_more", page.get("next_cursor") is not None))
        self._is_open = True
        self._stale = False

    async def load_more(self) -> int:
        """Fetch the page strictly older than the last backfilled item.

        Returns how many net-new items were added. Items already held (for
        example delivered live and returned again by an overlapping page) are
        skipped. The badge counter is not touched.
        """

        if self._backfill_edge is None:
            # An empty first page has no edge; only a stale panel reloads.
            if not self._stale:
                return 0
            await self.load_initial()
            return len(self._items)
        if not self._has_more:
            return 0

        # Live pushes never move the backfill position.
        edge = self._backfill_edge
        page = await self._fetch(cursor=encode_cursor(edge.created_at, edge.id))
        fetched = [FeedItem.from_payload(data) for data in page.get("items", ())]
        self._apply_seen_watermark(fetched)
        added = self._merge(fetched)
        if fetched:
            self._backfill_edge = _oldest(fetched)
        if not self._loading:
            self._arrived_while_loading = []
        self._has_more = bool(page.get("has_more", page.get("next_cursor") is not None))
        return len(added)

    def apply_live(self, data: Mapping[str, Any]) -> bool:
        """Insert a pushed notification unless it is already held.

        Returns ``True`` when the item was net-new. Each net-new unseen item
        bumps the badge by one.
        """

        item = FeedItem.from_payload(data, is_new=True)
        if self._loading:
            self._arrived_while_loading.append(item)
        added = self._merge([item])
        if not added:
            return False
        if not item.is_seen:
            self._unseen += 1
        return True

    async def mark_all_seen(self) -> None:
        """Clear the badge and flag held items as seen, then tell the server."""

        needs_sync = self._unseen > 0 or any(not item.is_seen for item in self._items)
        self._unseen = 0
        for item in self._items:
            item.is_seen = True
        if self._items:
            self._seen_watermark = self._items[0].sort_key
        if needs_sync:
            await self._acknowledge(self._api.mark_all_seen, description="mark all seen")

    async def mark_read(self, notification_id: int) -> bool:
        """Flag one held item as read. The badge counter is left alone."""

        item = self._by_id.get(notification_id)
        if item is None:
            return False
        if item.is_read:
            return True
        item.is_read = True
        await self._acknowledge(
            self._api.mark_read, notification_id, description=f"mark {notification_id} read"
        )
        return True

    async def refresh_unseen_count(self) -> int:
        self._unseen = await self._api.unseen_count()
        return self._unseen

    async def handle_reconnect(self) -> None:
        """Resynchronise after the live channel dropped.

        Anything pushed during the outage is assumed lost; the server state is
        reloaded. An open panel reloads its first page, a closed one only
        refreshes the badge.
        """

        self._stale = True
        try:
            if self._is_open:
                await self.load_initial()
            else:
                await self.refresh_unseen_count()
        except (NotificationsApiError, ValueError):
            logger.warning("Backfill after reconnect failed; feed left stale", exc_info=True)

    async def _fetch(self, *, cursor: str | None) -> Mapping[str, Any]:
        self._loading += 1
        try:
            return await self._api.list_page(cursor=cursor, limit=self._page_size)
        finally:
            self._loading -= 1

    def _merge(self, candidates: Iterable[FeedItem]) -> list[FeedItem]:
        added: list[FeedItem] = []
        for item in candidates:
            if item.id in self._by_id:
                continue
            self._by_id[item.id] = item
            self._items.append(item)
            added.append(item)
        if added:
            self._items.sort(key=lambda held: held.sort_key, reverse=True)
        return added

    def _apply_seen_watermark(self, items: Iterable[FeedItem]) -> None:
        if self._seen_watermark is None:
            return
        for item in items:
            if item.sort_key <= self._seen_watermark:
                item.is_seen = True

    async def _acknowledge(
        self,
        func: Callable[..., Awaitable[Any]],
        *args: Any,
        description: str,
    ) -> None:
        if self._task_group is not None:
            self._task_group.start_soon(self._run_acknowledgement, func, args, description)
        else:
            await self._run_acknowledgement(func, args, description)

    @staticmethod
    async def _run_acknowledgement(
        func: Callable[..., Awaitable[Any]], args: tuple[Any, ...], description: str
    ) -> None:
        try:
            await func(*args)
        except NotificationsApiError as exc:
            logger.warning("Could not %s on the server: %s", description, exc)


__all__ = ["DEFAULT_PAGE_SIZE", "FeedItem", "NotificationFeed", "NotificationsBackend"]
