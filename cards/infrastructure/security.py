"""Security helpers for hashing and token generation."""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext

from cards.config import get_settings
from cards.domain.entities import Principal, User

_ALGORITHM = "HS256"

pwd_context = CryptContext(
    schemes=["pbkdf2_sha256"],
    deprecated="auto",
    pbkdf2_sha256__rounds=310_000,
)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(user: User, expires_delta: timedelta | None = None) -> str:
    """Issue a signed token identifying ``user`` by id and user name."""

    settings = get_settings()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    claims = {"sub": str(user.id), "name": user.name, "exp": expire}
    return jwt.encode(claims, settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> dict:
    try:
        return jwt.decode(token, get_settings().secret_key, algorithms=[_ALGORITHM])
    except JWTError as exc:
        raise ValueError("Could not validate credentials") from exc


def verify_token(token: str) -> Principal:
    """Return the :class:`Principal` encoded in ``token``.

    Raises ``ValueError`` when the token is expired, tampered with or lacks
    the identity claims.
    """

    payload = decode_access_token(token)
    subject = payload.get("sub")
    name = payload.get("name")
    if subject is None or not isinstance(name, str):
        raise ValueError("Could not validate credentials")
    try:
        user_id = int(subject)
    except (TypeError, ValueError) as exc:
        raise ValueError("Could not validate credentials") from exc
    return Principal(user_id=user_id, user_name=name)
