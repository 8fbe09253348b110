from __future__ import annotations

import dataclasses
import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import update

# Ensure secrets and an in-memory default DB are set before the app module is imported
os.environ.setdefault("ENV", "local")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test_jwt_secret_32_chars_minimum")
os.environ.setdefault("ACCESS_TOKEN_TTL_SECONDS", "900")
os.environ.setdefault("SMTP_HOST", "")

from eventhub.core.config import settings as base_settings  # noqa: E402
from eventhub.main import create_app  # noqa: E402
from eventhub.models import User  # noqa: E402
from eventhub.models.user import UserRole  # noqa: E402

DEFAULT_PASSWORD = "StrongPass123"


@pytest.fixture
def settings(tmp_path):
    return dataclasses.replace(
        base_settings,
        database_url=f"sqlite:///{tmp_path / 'eventhub_test.db'}",
        smtp_host=None,
        admin_emails=[],
    )


@pytest.fixture
def app(settings):
    app = create_app(settings)
    yield app
    app.state.engine.dispose()


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def db_session(app):
    db = app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def broadcaster(app):
    return app.state.broadcaster


@pytest.fixture
def published(broadcaster):
    """Every message the app publishes during the test, in order."""
    messages: list[dict] = []
    subscription = broadcaster.subscribe(messages.append, label="test")
    yield messages
    broadcaster.unsubscribe(subscription)


def signup(client: TestClient, email: str, password: str = DEFAULT_PASSWORD, role: str | None = None):
    body = {"email": email, "password": password}
    if role is not None:
        body["role"] = role
    return client.post("/v1/auth/signup", json=body)


def login(client: TestClient, email: str, password: str = DEFAULT_PASSWORD):
    return client.post("/v1/auth/login", json={"email": email, "password": password})


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def make_user(client: TestClient, db_session, email: str, role: UserRole = UserRole.ATTENDEE) -> str:
    """Sign up, set the role directly in the DB, then log in. Returns the access token."""
    resp = signup(client, email)
    assert resp.status_code == 201, resp.text
    if role != UserRole.ATTENDEE:
        db_session.execute(update(User).where(User.email == email).values(role=role))
        db_session.commit()
    resp = login(client, email)
    assert resp.status_code == 200, resp.text
    return resp.json()["token"]
