"""Utility helpers for reusable functionality."""

from .cursor import decode_cursor, encode_cursor
from .datetime import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    get_app_timezone,
    isoformat_or_none,
    now_in_app_naive_datetime,
    now_in_app_timezone,
    parse_datetime,
)

__all__ = [
    "decode_cursor",
    "encode_cursor",
    "ensure_app_naive_datetime",
    "ensure_app_timezone",
    "get_app_timezone",
    "isoformat_or_none",
    "now_in_app_naive_datetime",
    "now_in_app_timezone",
    "parse_datetime",
]
