"""Shared fixtures: a throwaway SQLite database and an application client."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

import pytest

TEST_DB_PATH = Path(tempfile.gettempdir()) / "cards_api_test.db"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["ACCESS_TOKEN_EXPIRE_MINUTES"] = "30"

from cards.config import reset_settings_cache  # noqa: E402

reset_settings_cache()

from cards.infrastructure import database  # noqa: E402
from cards.infrastructure import models  # noqa: E402,F401
from cards.infrastructure.models import UserModel  # noqa: E402

DEFAULT_PASSWORD = "Secret123"


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def reset_database():
    """Ensure the test database starts from a clean state for each test."""

    database.configure_database(f"sqlite:///{TEST_DB_PATH}")
    database.Base.metadata.drop_all(bind=database.engine)
    database.initialize_database()
    yield
    database.Base.metadata.drop_all(bind=database.engine)
    database.engine.dispose()


@pytest.fixture
def db_session():
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    from fastapi.testclient import TestClient

    from cards.main import create_app

    app = create_app()
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def register_user(client):
    """Return a helper that signs up a user and logs them in."""

    def _register(name: str, *, admin: bool = False) -> dict:
        email = f"{name}@example.com"
        response = client.post(
            "/users/",
            json={"name": name, "email": email, "password": DEFAULT_PASSWORD},
        )
        assert response.status_code == 201, response.text
        user_id = response.json()["id"]

        if admin:
            with database.SessionLocal() as session:
                session.get(UserModel, user_id).is_admin = True
                session.commit()

        token_response = client.post(
            "/auth/token",
            data={"username": email, "password": DEFAULT_PASSWORD},
        )
        assert token_response.status_code == 200, token_response.text
        token = token_response.json()["access_token"]
        return {
            "id": user_id,
            "name": name,
            "token": token,
            "headers": {"Authorization": f"Bearer {token}"},
        }

    return _register
