"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    type: str
    message: str
    payload: dict[str, Any] = Field(default_factory=dict)
    is_global: bool = False
    is_seen: bool = False
    is_read: bool = False
    created_at: datetime


class NotificationPageRead(BaseModel):
    """Cursor-paginated notifications, newest first."""

    items: list[NotificationRead]
    next_cursor: str | None = Field(
        default=None,
        description="Cursor opaco para pedir la siguiente página; nulo si no hay más.",
    )
    has_more: bool


class UnseenCountRead(BaseModel):
    unseen_count: int


class MarkAllSeenRead(BaseModel):
    modified_count: int


class MarkReadResult(BaseModel):
    success: bool


class AnnouncementCreate(BaseModel):
    """Payload used to publish a global announcement."""

    message: str = Field(..., min_length=1, max_length=500)
    payload: dict[str, Any] = Field(default_factory=dict)


__all__ = [
    "AnnouncementCreate",
    "MarkAllSeenRead",
    "MarkReadResult",
    "NotificationPageRead",
    "NotificationRead",
    "UnseenCountRead",
]
