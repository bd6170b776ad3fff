"""Use case for registering users."""

from sqlalchemy.orm import Session

from cards.domain.entities import User
from cards.infrastructure.repositories import UserRepository
from cards.infrastructure.security import get_password_hash


def create_user(
    session: Session,
    *,
    name: str,
    email: str,
    password: str,
    is_admin: bool = False,
) -> User:
    """Create a new account or raise ``ValueError`` if the name or email is taken."""

    repository = UserRepository(session)
    if repository.exists(name=name, email=email):
        raise ValueError("El nombre de usuario o el correo ya están registrados")
    user = User(
        id=None,
        name=name.strip(),
        email=email,
        password=get_password_hash(password),
        is_active=True,
        is_admin=is_admin,
    )
    return repository.create(user)
