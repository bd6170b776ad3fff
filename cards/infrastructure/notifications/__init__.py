"""Realtime notification helpers for the infrastructure layer."""

from .channel import RealtimeChannel
from .dispatcher import NotificationDispatcher, NotificationStore
from .presence import PresenceRegistry
from .serialization import serialize_notification

__all__ = [
    "NotificationDispatcher",
    "NotificationStore",
    "PresenceRegistry",
    "RealtimeChannel",
    "serialize_notification",
]
