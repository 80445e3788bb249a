"""
Shared fixtures for the API tests.

The database path is pointed at a temporary file before the application is
imported, and the schema, sessions and login limiter are reset for every test.
"""

import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="alliance-map-tests-")
os.environ["DB_PATH"] = os.path.join(_TMP_DIR, "test.db")
os.environ["SESSION_SECRET_KEY"] = "test-secret-key"
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["ADMIN_PASSWORD"] = "admin"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from database import SessionLocal, User, engine, reset_db  # noqa: E402
from logic.security import hash_password  # noqa: E402
from main import app  # noqa: E402
from server.auth import reset_login_attempts  # noqa: E402
from user_context import clear_sessions  # noqa: E402

ADMIN = {"username": "admin", "password": "admin"}


@pytest.fixture(autouse=True)
def fresh_db():
    reset_db(engine)
    clear_sessions()
    reset_login_attempts()
    yield


@pytest.fixture
def client():
    return TestClient(app)


def login(client, username="admin", password="admin"):
    response = client.post("/api/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return response


def create_account(username, role, password="secret", user_id=None):
    """Insert a user straight into the database."""
    db = SessionLocal()
    try:
        user = User(
            id=user_id or f"id-{username}",
            username=username,
            password=hash_password(password),
            role=role,
        )
        db.add(user)
        db.commit()
        return user.id
    finally:
        db.close()


@pytest.fixture
def admin_client():
    c = TestClient(app)
    login(c)
    return c


@pytest.fixture
def client_for():
    """Build a logged-in client for a fresh account with the given role."""

    def factory(role, username=None):
        username = username or f"{role}-user"
        create_account(username, role)
        c = TestClient(app)
        login(c, username, "secret")
        return c

    return factory
