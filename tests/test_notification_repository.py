"""Tests for notification persistence, pagination and seen/read state."""

from __future__ import annotations

import time
from datetime import datetime, timedelta, timezone

import anyio
import pytest

from cards.domain.entities import Notification, NotificationEvent, User
from cards.infrastructure import database
from cards.infrastructure.models import NotificationModel, NotificationReceiptModel
from cards.infrastructure.notifications import (
    NotificationDispatcher,
    PresenceRegistry,
    RealtimeChannel,
)
from cards.infrastructure.repositories import NotificationRepository, UserRepository
from cards.utils import ensure_app_naive_datetime

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def users(db_session):
    repository = UserRepository(db_session)
    return [
        repository.create(
            User(id=None, name=name, email=f"{name}@example.com", password="x")
        )
        for name in ("alice", "bob")
    ]


def _insert(
    repository: NotificationRepository,
    *,
    recipient_id: int | None,
    created_at: datetime,
    message: str = "hola",
) -> Notification:
    """Insert a notification and backdate it to ``created_at``."""

    saved = repository.insert(
        Notification(
            id=None,
            type="Announcement" if recipient_id is None else "Like",
            message=message,
            recipient_id=recipient_id,
            is_global=recipient_id is None,
        )
    )
    repository.session.query(NotificationModel).filter_by(id=saved.id).update(
        {NotificationModel.created_at: ensure_app_naive_datetime(created_at)}
    )
    repository.session.commit()
    return saved


def test_pages_are_newest_first_without_gaps_or_duplicates(db_session, users) -> None:
    alice, bob = users
    repository = NotificationRepository(db_session)
    for offset in range(5):
        _insert(repository, recipient_id=alice.id, created_at=BASE_TIME + timedelta(minutes=offset))
    # Same timestamp twice: the id breaks the tie.
    _insert(repository, recipient_id=alice.id, created_at=BASE_TIME + timedelta(minutes=2))
    _insert(repository, recipient_id=bob.id, created_at=BASE_TIME + timedelta(minutes=9))

    collected: list[Notification] = []
    cursor = None
    while True:
        page = repository.find_page(alice.id, limit=2, cursor=cursor)
        collected.extend(page.items)
        if not page.has_more:
            break
        cursor = page.next_cursor

    assert len(collected) == 6
    assert len({item.id for item in collected}) == 6
    keys = [(item.created_at, item.id) for item in collected]
    assert keys == sorted(keys, reverse=True)
    assert all(item.recipient_id == alice.id for item in collected)


def test_last_page_has_no_cursor(db_session, users) -> None:
    alice, _ = users
    repository = NotificationRepository(db_session)
    _insert(repository, recipient_id=alice.id, created_at=BASE_TIME)
    _insert(repository, recipient_id=alice.id, created_at=BASE_TIME + timedelta(seconds=1))

    page = repository.find_page(alice.id, limit=2)

    assert len(page.items) == 2
    assert page.next_cursor is None
    assert page.has_more is False


def test_malformed_cursor_is_rejected(db_session, users) -> None:
    alice, _ = users

    with pytest.raises(ValueError):
        NotificationRepository(db_session).find_page(alice.id, limit=5, cursor="no-es-un-cursor")


def test_unseen_count_and_mark_all_seen(db_session, users) -> None:
    alice, bob = users
    repository = NotificationRepository(db_session)
    _insert(repository, recipient_id=alice.id, created_at=BASE_TIME)
    _insert(repository, recipient_id=alice.id, created_at=BASE_TIME + timedelta(minutes=1))
    _insert(repository, recipient_id=bob.id, created_at=BASE_TIME + timedelta(minutes=2))
    _insert(repository, recipient_id=None, created_at=BASE_TIME + timedelta(minutes=3))

    assert repository.count_unseen(alice.id) == 3
    assert repository.count_unseen(bob.id) == 2

    assert repository.mark_all_seen(alice.id) == 3
    assert repository.count_unseen(alice.id) == 0
    assert repository.mark_all_seen(alice.id) == 0

    # Global seen state is tracked per user.
    assert repository.count_unseen(bob.id) == 2
    page = repository.find_page(bob.id, limit=10)
    assert [item.is_seen for item in page.items] == [False, False]


def test_mark_one_read_keeps_seen_state_independent(db_session, users) -> None:
    alice, bob = users
    repository = NotificationRepository(db_session)
    targeted = _insert(repository, recipient_id=alice.id, created_at=BASE_TIME)
    announcement = _insert(repository, recipient_id=None, created_at=BASE_TIME + timedelta(minutes=1))

    assert repository.mark_one_read(targeted.id, alice.id) is True
    assert repository.mark_one_read(announcement.id, alice.id) is True

    read_targeted = repository.get_for_user(targeted.id, alice.id)
    read_announcement = repository.get_for_user(announcement.id, alice.id)
    assert read_targeted.is_read is True and read_targeted.is_seen is False
    assert read_announcement.is_read is True and read_announcement.is_seen is False
    assert read_targeted.read_at is not None
    assert repository.count_unseen(alice.id) == 2

    assert repository.get_for_user(announcement.id, bob.id).is_read is False


def test_mark_one_read_rejects_invisible_notifications(db_session, users) -> None:
    alice, bob = users
    repository = NotificationRepository(db_session)
    for_bob = _insert(repository, recipient_id=bob.id, created_at=BASE_TIME)

    assert repository.mark_one_read(for_bob.id, alice.id) is False
    assert repository.mark_one_read(9999, alice.id) is False
    assert repository.get_for_user(for_bob.id, alice.id) is None
    assert repository.get_for_user(for_bob.id, bob.id).is_read is False


def test_mark_all_seen_does_not_touch_read_flags(db_session, users) -> None:
    alice, _ = users
    repository = NotificationRepository(db_session)
    first = _insert(repository, recipient_id=alice.id, created_at=BASE_TIME)
    _insert(repository, recipient_id=alice.id, created_at=BASE_TIME + timedelta(minutes=1))

    repository.mark_all_seen(alice.id)

    page = repository.find_page(alice.id, limit=10)
    assert all(item.is_seen for item in page.items)
    assert not any(item.is_read for item in page.items)
    assert repository.get_for_user(first.id, alice.id).seen_at is not None


def test_insert_stamps_creation_time_at_write(db_session, users) -> None:
    repository = NotificationRepository(db_session)
    first = repository.insert(
        Notification(id=None, type="Announcement", message="uno", is_global=True)
    )
    second = repository.insert(
        Notification(
            id=None,
            type="Announcement",
            message="dos",
            is_global=True,
            created_at=BASE_TIME - timedelta(days=365),
        )
    )

    assert second.id > first.id
    assert second.created_at >= first.created_at
    assert second.created_at > BASE_TIME


class _SlowRepository(NotificationRepository):
    def __init__(self, session, delay: float) -> None:
        super().__init__(session)
        self.delay = delay

    def insert(self, notification: Notification) -> Notification:
        time.sleep(self.delay)
        return super().insert(notification)


@pytest.mark.anyio
async def test_concurrent_dispatches_keep_creation_time_in_id_order() -> None:
    registry = PresenceRegistry()
    dispatcher = NotificationDispatcher(registry, RealtimeChannel(registry))
    results: dict[str, Notification] = {}

    async def _dispatch(name: str, delay: float) -> None:
        session = database.SessionLocal()
        try:
            event = NotificationEvent(type="Announcement", message=name, is_global=True)
            results[name] = await dispatcher.dispatch(event, _SlowRepository(session, delay))
        finally:
            session.close()

    with anyio.fail_after(5):
        async with anyio.create_task_group() as tg:
            tg.start_soon(_dispatch, "slow", 0.3)
            await anyio.sleep(0.05)
            tg.start_soon(_dispatch, "fast", 0)

    slow, fast = results["slow"], results["fast"]
    assert fast.id < slow.id
    assert fast.created_at <= slow.created_at


def test_mark_all_seen_survives_a_concurrent_receipt(db_session, users, monkeypatch) -> None:
    alice, _ = users
    repository = NotificationRepository(db_session)
    targeted = _insert(repository, recipient_id=alice.id, created_at=BASE_TIME)
    announcement = _insert(repository, recipient_id=None, created_at=BASE_TIME + timedelta(minutes=1))

    original = NotificationRepository._missing_receipt_ids
    calls = []

    def _missing_then_race(self, user_id):
        missing = original(self, user_id)
        if not calls:
            # Another tab acknowledges the same announcement in between.
            with database.SessionLocal() as other:
                other.add(
                    NotificationReceiptModel(
                        notification_id=announcement.id,
                        user_id=user_id,
                        seen_at=datetime(2024, 5, 2, 9, 0),
                    )
                )
                other.commit()
        calls.append(missing)
        return missing

    monkeypatch.setattr(NotificationRepository, "_missing_receipt_ids", _missing_then_race)

    assert repository.mark_all_seen(alice.id) == 1

    assert calls == [[announcement.id], []]
    assert repository.count_unseen(alice.id) == 0
    assert repository.get_for_user(targeted.id, alice.id).is_seen is True
