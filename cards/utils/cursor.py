"""Opaque keyset cursors encoding a ``(created_at, id)`` position."""

from __future__ import annotations

import base64
from datetime import datetime

from .datetime import ensure_app_timezone


def encode_cursor(created_at: datetime, item_id: int) -> str:
    """Encode a ``(created_at, id)`` pair into a URL-safe base64 string."""

    localized = ensure_app_timezone(created_at)
    raw = f"{localized.isoformat()}|{item_id}"
    return base64.urlsafe_b64encode(raw.encode()).decode()


def decode_cursor(cursor: str) -> tuple[datetime, int]:
    """Decode a cursor back to ``(created_at, id)``.

    Raises ``ValueError`` on malformed cursors; routes map it to 400.
    """

    try:
        raw = base64.urlsafe_b64decode(cursor.encode()).decode()
        created_at, item_id = raw.split("|", 1)
        return ensure_app_timezone(datetime.fromisoformat(created_at)), int(item_id)
    except (ValueError, UnicodeDecodeError) as exc:
        raise ValueError(f"Invalid cursor: {cursor!r}") from exc
