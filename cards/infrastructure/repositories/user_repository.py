"""Persistence layer for user data."""

from __future__ import annotations

from sqlalchemy import or_
from sqlalchemy.orm import Session

from cards.domain.entities import User
from cards.infrastructure.models import UserModel
from cards.utils import ensure_app_timezone


class UserRepository:
    """Provide lookup and creation operations for user entities."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: int) -> User | None:
        model = self.session.get(UserModel, user_id)
        return self._to_entity(model) if model else None

    def get_by_email(self, email: str) -> User | None:
        model = (
            self.session.query(UserModel)
            .filter(UserModel.email == email.strip().lower())
            .one_or_none()
        )
        return self._to_entity(model) if model else None

    def exists(self, *, name: str, email: str) -> bool:
        query = self.session.query(UserModel.id).filter(
            or_(UserModel.name == name, UserModel.email == email.strip().lower())
        )
        return query.first() is not None

    def create(self, user: User) -> User:
        model = UserModel(
            name=user.name,
            email=user.email.strip().lower(),
            password=user.password,
            is_active=user.is_active,
            is_admin=user.is_admin,
        )
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def set_admin(self, email: str, is_admin: bool = True) -> User | None:
        model = (
            self.session.query(UserModel)
            .filter(UserModel.email == email.strip().lower())
            .one_or_none()
        )
        if model is None:
            return None
        model.is_admin = is_admin
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    @staticmethod
    def _to_entity(model: UserModel) -> User:
        return User(
            id=model.id,
            name=model.name,
            email=model.email,
            password=model.password,
            is_active=model.is_active,
            is_admin=model.is_admin,
            created_at=ensure_app_timezone(model.created_at),
        )


__all__ = ["UserRepository"]
