"""Tests for reconciling live pushes with paginated backfill on the client."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import pytest

from cards.client import FeedItem, NotificationFeed, NotificationsApiError
from cards.utils import decode_cursor, encode_cursor

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _wire(item_id: int, *, minutes: int | None = None, is_seen: bool = False) -> dict:
    created_at = BASE_TIME + timedelta(minutes=item_id if minutes is None else minutes)
    return {
        "id": item_id,
        "type": "Like",
        "message": f"notificación {item_id}",
        "payload": {"post_id": item_id},
        "is_global": False,
        "is_seen": is_seen,
        "is_read": False,
        "created_at": created_at.isoformat(),
    }


class FakeBackend:
    """In-memory server double speaking the REST page shape."""

    def __init__(self, items: list[dict] | None = None) -> None:
        self.items = list(items or [])
        self.calls: list[tuple] = []
        self.fail_acknowledgements = False
        self.on_list_page = None
        self.extra_items: list[dict] = []
        self.last_modified: int | None = None

    def add(self, item: dict) -> dict:
        self.items.append(item)
        return item

    async def list_page(self, *, cursor=None, limit=20):
        self.calls.append(("list_page", cursor, limit))
        if self.on_list_page is not None:
            self.on_list_page()
        ordered = sorted(
            self.items,
            key=lambda item: (datetime.fromisoformat(item["created_at"]), item["id"]),
            reverse=True,
        )
        if cursor:
            position = decode_cursor(cursor)
            ordered = [
                item
                for item in ordered
                if (datetime.fromisoformat(item["created_at"]), item["id"]) < position
            ]
        page = ordered[:limit]
        page = page + [item for item in self.extra_items if cursor]
        has_more = len(ordered) > limit
        next_cursor = None
        if has_more:
            last = page[-1]
            next_cursor = encode_cursor(datetime.fromisoformat(last["created_at"]), last["id"])
        return {"items": [dict(item) for item in page], "next_cursor": next_cursor, "has_more": has_more}

    async def unseen_count(self):
        self.calls.append(("unseen_count",))
        return sum(1 for item in self.items if not item["is_seen"])

    async def mark_all_seen(self):
        self.calls.append(("mark_all_seen",))
        if self.fail_acknowledgements:
            raise NotificationsApiError(503, "Notifications service is unavailable.")
        modified = 0
        for item in self.items:
            if not item["is_seen"]:
                item["is_seen"] = True
                modified += 1
        self.last_modified = modified
        return modified

    async def mark_read(self, notification_id):
        self.calls.append(("mark_read", notification_id))
        if self.fail_acknowledgements:
            raise NotificationsApiError(503, "Notifications service is unavailable.")
        for item in self.items:
            if item["id"] == notification_id:
                item["is_read"] = True
        return True


def _ids(feed: NotificationFeed) -> list[int]:
    return [item.id for item in feed.items]


def test_feed_item_rejects_incomplete_payloads() -> None:
    with pytest.raises(ValueError):
        FeedItem.from_payload({"type": "Like"})
    with pytest.raises(ValueError):
        FeedItem.from_payload({"id": 1, "created_at": None})


@pytest.mark.anyio
async def test_live_item_then_backfill_keeps_single_copy() -> None:
    backend = FakeBackend([_wire(1), _wire(2)])
    feed = NotificationFeed(backend, page_size=10)

    assert feed.apply_live(backend.add(_wire(3))) is True
    assert feed.unseen_count == 1

    await feed.load_initial()

    assert _ids(feed) == [3, 2, 1]
    assert feed.unseen_count == 3


@pytest.mark.anyio
async def test_duplicate_live_push_is_ignored() -> None:
    backend = FakeBackend([_wire(1)])
    feed = NotificationFeed(backend)
    await feed.load_initial()

    assert feed.apply_live(_wire(1)) is False
    assert feed.apply_live(_wire(2)) is True
    assert feed.apply_live(_wire(2)) is False

    assert _ids(feed) == [2, 1]
    assert feed.unseen_count == 2
    assert feed.get(2).is_new is True
    assert feed.get(1).is_new is False


@pytest.mark.anyio
async def test_load_more_skips_items_already_delivered_live() -> None:
    backend = FakeBackend([_wire(item_id) for item_id in range(1, 6)])
    feed = NotificationFeed(backend, page_size=2)
    await feed.load_initial()
    assert _ids(feed) == [5, 4]
    assert feed.has_more is True

    # A late push for an older item the next page will also return.
    assert feed.apply_live(_wire(3)) is True
    added = await feed.load_more()

    assert added == 1
    assert _ids(feed) == [5, 4, 3, 2]
    assert len(set(_ids(feed))) == len(feed.items)


@pytest.mark.anyio
async def test_load_more_walks_to_the_end_without_touching_the_badge() -> None:
    backend = FakeBackend([_wire(item_id) for item_id in range(1, 6)])
    feed = NotificationFeed(backend, page_size=2)
    await feed.load_initial()
    badge = feed.unseen_count

    while feed.has_more:
        await feed.load_more()

    assert _ids(feed) == [5, 4, 3, 2, 1]
    assert feed.unseen_count == badge
    assert await feed.load_more() == 0


@pytest.mark.anyio
async def test_push_during_initial_load_is_not_lost() -> None:
    backend = FakeBackend([_wire(1)])
    feed = NotificationFeed(backend)

    def _push_while_loading() -> None:
        # Emitted after the server built its page.
        feed.apply_live(_wire(9))

    backend.on_list_page = _push_while_loading
    await feed.load_initial()

    assert _ids(feed) == [9, 1]
    assert feed.unseen_count == 2


@pytest.mark.anyio
async def test_open_marks_everything_seen_on_the_server() -> None:
    backend = FakeBackend([_wire(1), _wire(2, is_seen=True)])
    feed = NotificationFeed(backend)

    await feed.open()

    assert feed.is_open is True
    assert feed.unseen_count == 0
    assert all(item.is_seen for item in feed.items)
    assert ("mark_all_seen",) in backend.calls
    assert await backend.unseen_count() == 0


@pytest.mark.anyio
async def test_open_without_unseen_items_skips_the_server_call() -> None:
    backend = FakeBackend([_wire(1, is_seen=True)])
    feed = NotificationFeed(backend)

    await feed.open()

    assert ("mark_all_seen",) not in backend.calls


@pytest.mark.anyio
async def test_seen_and_read_are_independent() -> None:
    backend = FakeBackend([_wire(1), _wire(2)])
    feed = NotificationFeed(backend)
    await feed.load_initial()

    assert await feed.mark_read(1) is True
    assert feed.get(1).is_read is True
    assert feed.get(1).is_seen is False
    assert feed.unseen_count == 2

    await feed.mark_all_seen()
    assert feed.unseen_count == 0
    assert feed.get(2).is_read is False
    assert await feed.mark_read(404) is False


@pytest.mark.anyio
async def test_older_pages_respect_a_previous_mark_all_seen() -> None:
    backend = FakeBackend([_wire(item_id) for item_id in range(1, 5)])
    # The server never records the acknowledgement, so older pages still say unseen.
    backend.fail_acknowledgements = True
    feed = NotificationFeed(backend, page_size=2)
    await feed.open()

    await feed.load_more()

    assert all(item.is_seen for item in feed.items)
    assert feed.unseen_count == 0


@pytest.mark.anyio
async def test_close_keeps_the_badge() -> None:
    backend = FakeBackend([_wire(1)])
    feed = NotificationFeed(backend)
    await feed.load_initial()
    feed.close()

    assert feed.items == ()
    assert feed.is_open is False
    assert feed.unseen_count == 1

    feed.apply_live(_wire(2))
    assert feed.unseen_count == 2


@pytest.mark.anyio
async def test_failed_acknowledgement_is_logged_and_local_state_kept(caplog) -> None:
    backend = FakeBackend([_wire(1), _wire(2)])
    backend.fail_acknowledgements = True
    feed = NotificationFeed(backend)
    await feed.load_initial()

    with caplog.at_level(logging.WARNING):
        await feed.mark_all_seen()
        await feed.mark_read(2)

    assert feed.unseen_count == 0
    assert feed.get(2).is_read is True
    assert "Could not mark all seen" in caplog.text
    assert "Could not mark 2 read" in caplog.text

    # The next backfill lets the server state win again.
    await feed.load_initial()
    assert feed.unseen_count == 2


@pytest.mark.anyio
async def test_reconnect_refreshes_from_the_server() -> None:
    backend = FakeBackend([_wire(1)])
    feed = NotificationFeed(backend)

    backend.add(_wire(2))
    await feed.handle_reconnect()
    assert feed.unseen_count == 2
    assert feed.items == ()

    await feed.load_initial()
    backend.add(_wire(3))
    await feed.handle_reconnect()
    assert _ids(feed) == [3, 2, 1]
    assert feed.is_stale is False


def test_page_size_must_be_positive() -> None:
    with pytest.raises(ValueError):
        NotificationFeed(FakeBackend(), page_size=0)


@pytest.mark.anyio
async def test_misbehaving_backfill_that_repeats_items_does_not_duplicate() -> None:
    backend = FakeBackend([_wire(0), _wire(1), _wire(3), _wire(5)])
    feed = NotificationFeed(backend, page_size=3)
    await feed.load_initial()
    assert _ids(feed) == [5, 3, 1]

    backend.extra_items = [_wire(3)]
    await feed.load_more()

    assert _ids(feed) == [5, 3, 1, 0]


@pytest.mark.anyio
async def test_opening_with_four_unseen_clears_badge_and_server_confirms() -> None:
    backend = FakeBackend([_wire(item_id) for item_id in range(1, 5)])
    feed = NotificationFeed(backend)
    await feed.refresh_unseen_count()
    assert feed.unseen_count == 4

    await feed.open()

    assert feed.unseen_count == 0
    assert [item.is_seen for item in feed.items] == [True] * 4
    assert backend.last_modified == 4


@pytest.mark.anyio
async def test_reconnect_with_malformed_backfill_leaves_feed_stale(caplog) -> None:
    backend = FakeBackend([_wire(1)])
    feed = NotificationFeed(backend)
    await feed.load_initial()

    backend.add(dict(_wire(2), id="dos"))
    with caplog.at_level(logging.WARNING):
        await feed.handle_reconnect()

    assert feed.is_stale is True
    assert _ids(feed) == [1]
    assert "Backfill after reconnect failed" in caplog.text


@pytest.mark.anyio
async def test_load_more_after_empty_first_page_keeps_badge() -> None:
    backend = FakeBackend()
    feed = NotificationFeed(backend)
    await feed.load_initial()
    assert feed.has_more is False

    feed.apply_live(backend.add(_wire(1)))
    list_calls = len([call for call in backend.calls if call[0] == "list_page"])

    assert await feed.load_more() == 0
    assert feed.unseen_count == 1
    assert _ids(feed) == [1]
    assert len([call for call in backend.calls if call[0] == "list_page"]) == list_calls
