"""FastAPI dependency utilities."""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from cards.domain.entities import Principal, User
from cards.infrastructure.database import get_db
from cards.infrastructure.notifications import NotificationDispatcher
from cards.infrastructure.repositories import UserRepository
from cards.infrastructure.security import verify_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token")


def _credentials_exception(detail: str = "Credenciales inválidas") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def resolve_current_user(token: str, db: Session) -> User:
    """Resolve the account behind ``token`` or raise a 401 error."""

    try:
        principal = verify_token(token)
    except ValueError as exc:
        raise _credentials_exception() from exc

    user = UserRepository(db).get(principal.user_id)
    if user is None:
        raise _credentials_exception("Usuario no encontrado")
    return user


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    return resolve_current_user(token, db)


def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    """Ensure the authenticated user is active."""

    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Usuario inactivo",
        )
    return current_user


def get_current_principal(
    current_user: User = Depends(get_current_active_user),
) -> Principal:
    return Principal(user_id=current_user.id, user_name=current_user.name)


def require_admin(current_user: User = Depends(get_current_active_user)) -> User:
    """Ensure the authenticated user has administrator privileges."""

    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No autorizado",
        )
    return current_user


def get_dispatcher(request: Request) -> NotificationDispatcher:
    return request.app.state.dispatcher
