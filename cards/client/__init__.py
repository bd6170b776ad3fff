"""Client-side reconciliation of live and backfilled notifications."""

from .api import NotificationsApiClient, NotificationsApiError
from .feed import DEFAULT_PAGE_SIZE, FeedItem, NotificationFeed, NotificationsBackend
from .live import LiveConnection, LiveConnectionClosed, LiveSubscription

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "FeedItem",
    "LiveConnection",
    "LiveConnectionClosed",
    "LiveSubscription",
    "NotificationFeed",
    "NotificationsApiClient",
    "NotificationsApiError",
    "NotificationsBackend",
]
