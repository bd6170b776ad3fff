"""Database configuration and session management."""

from __future__ import annotations

import logging
from collections.abc import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from cards.config import get_settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""


def _create_engine(database_url: str) -> Engine:
    connect_args: dict[str, object] = {}
    if database_url.startswith("sqlite"):
        # Sessions are handed between the event loop and the worker pool.
        connect_args["check_same_thread"] = False
    return create_engine(database_url, pool_pre_ping=True, connect_args=connect_args)


engine = _create_engine(get_settings().database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def configure_database(database_url: str) -> Engine:
    """Rebind the session factory to ``database_url`` and return the new engine."""

    global engine

    previous = engine
    engine = _create_engine(database_url)
    SessionLocal.configure(bind=engine)
    previous.dispose()
    logger.debug("Database rebound to %s", engine.url.render_as_string(hide_password=True))
    return engine


def initialize_database() -> None:
    """Ensure all ORM models have corresponding database tables."""

    from cards.infrastructure import models  # noqa: F401  # ensure models are imported

    Base.metadata.create_all(bind=engine, checkfirst=True)


def dispose_database() -> None:
    engine.dispose()


def get_db() -> Generator[Session, None, None]:
    """Yield a database session and close it afterwards."""

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
