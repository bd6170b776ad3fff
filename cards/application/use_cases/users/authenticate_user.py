"""Use case for authenticating users by email and password."""

from enum import Enum

from sqlalchemy.orm import Session

from cards.domain.entities import User
from cards.infrastructure.repositories import UserRepository
from cards.infrastructure.security import verify_password


class AuthenticationStatus(Enum):
    SUCCESS = "success"
    INVALID_CREDENTIALS = "invalid_credentials"
    INACTIVE = "inactive"


def authenticate_user(
    session: Session, email: str, password: str
) -> tuple[User | None, AuthenticationStatus]:
    """Return the user matching the credentials together with the outcome."""

    user = UserRepository(session).get_by_email(email)
    if user is None or not verify_password(password, user.password):
        return None, AuthenticationStatus.INVALID_CREDENTIALS
    if not user.is_active:
        return user, AuthenticationStatus.INACTIVE
    return user, AuthenticationStatus.SUCCESS
