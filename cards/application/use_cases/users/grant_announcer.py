"""Use case for letting an existing account publish announcements."""

from __future__ import annotations

from sqlalchemy.orm import Session

from cards.domain.entities import User
from cards.infrastructure.repositories import UserRepository


def grant_announcer(session: Session, *, email: str) -> User:
    """Give the account behind ``email`` admin rights; ``ValueError`` if unknown."""

    user = UserRepository(session).set_admin(email, is_admin=True)
    if user is None:
        raise ValueError("No existe un usuario con ese correo")
    return user
