"""Domain entity representing a user."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class User:
    """Core attributes describing an application user."""

    id: int | None
    name: str
    email: str
    password: str
    is_active: bool = True
    is_admin: bool = False
    created_at: datetime | None = None


@dataclass(frozen=True)
class Principal:
    """Verified identity extracted from an access token."""

    user_id: int
    user_name: str
