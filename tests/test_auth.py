"""
Tests for login, sessions and role checks.

Run with: python -m pytest tests/test_auth.py
"""

import bcrypt
from fastapi.testclient import TestClient

from conftest import ADMIN, create_account, login
from database import SessionLocal, User
from main import app
from server.auth import check_login_rate, reset_login_attempts


def test_login_sets_session(client):
    response = client.post("/api/login", json=ADMIN)
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["user"] == {"id": "admin", "username": "admin", "role": "admin"}
    assert "sid" in response.cookies

    me = client.get("/api/me").json()
    assert me["user"]["username"] == "admin"


def test_login_rejects_bad_credentials(client):
    assert client.post("/api/login", json={"username": "admin", "password": "nope"}).status_code == 401
    assert client.post("/api/login", json={"username": "ghost", "password": "admin"}).status_code == 401
    assert client.post("/api/login", json={}).status_code == 401


def test_me_anonymous(client):
    assert client.get("/api/me").json() == {"user": None}


def test_logout(admin_client):
    response = admin_client.post("/api/logout")
    assert response.status_code == 200
    assert admin_client.get("/api/me").json() == {"user": None}


def test_logout_requires_auth(client):
    response = client.post("/api/logout")
    assert response.status_code == 401
    assert response.json()["detail"] == "Authentication required"


def test_tampered_cookie_is_anonymous(client):
    client.cookies.set("sid", "not-a-signed-value")
    assert client.get("/api/me").json() == {"user": None}


def test_login_rate_limit(client, monkeypatch):
    monkeypatch.setattr("server.auth.LOGIN_RATE_LIMIT", 2)
    bad = {"username": "admin", "password": "wrong"}
    assert client.post("/api/login", json=bad).status_code == 401
    assert client.post("/api/login", json=bad).status_code == 401
    assert client.post("/api/login", json=ADMIN).status_code == 429


def test_login_rate_window_expires(monkeypatch):
    monkeypatch.setattr("server.auth.LOGIN_RATE_LIMIT", 1)
    monkeypatch.setattr("server.auth.LOGIN_RATE_WINDOW", 10)
    reset_login_attempts()
    assert check_login_rate("1.2.3.4", now=100.0) is True
    assert check_login_rate("1.2.3.4", now=105.0) is False
    assert check_login_rate("5.6.7.8", now=105.0) is True
    assert check_login_rate("1.2.3.4", now=116.0) is True


def test_admin_can_delete_a_user(admin_client):
    admin_client.post(
        "/api/users", json={"id": "u1", "username": "user1", "password": "pw", "role": "viewer"}
    ).raise_for_status()

    assert admin_client.delete("/api/users/u1").status_code == 200

    users = admin_client.get("/api/users").json()
    assert all(u["id"] != "u1" for u in users)


def test_deleted_user_session_stops_working(admin_client):
    create_account("temp", "moderator")
    other = TestClient(app)
    login(other, "temp", "secret")
    assert other.get("/api/me").json()["user"]["username"] == "temp"

    admin_client.delete("/api/users/id-temp").raise_for_status()

    assert other.get("/api/me").json() == {"user": None}
    assert other.get("/api/export").status_code == 401


def test_role_change_applies_to_open_sessions(admin_client, client_for):
    moderator = client_for("moderator", "mod")
    assert moderator.get("/api/users").status_code == 200

    admin_client.put(
        "/api/users/id-mod", json={"username": "mod", "role": "viewer"}
    ).raise_for_status()

    assert moderator.get("/api/users").status_code == 403


def test_role_gates(client, client_for):
    viewer = client_for("viewer")
    moderator = client_for("moderator")
    city = {"id": "c1", "name": "Alpha", "status": "occupied", "x": 0, "y": 0}

    assert client.post("/api/cities", json=city).status_code == 401
    assert viewer.post("/api/cities", json=city).status_code == 200
    assert moderator.post("/api/cities", json=city).status_code == 200

    trap = {"id": "t1", "slot": 1, "x": 5, "y": 5}
    assert moderator.post("/api/traps", json=trap).status_code == 403
    assert moderator.post("/api/levels", json={"level": 1, "color": "#123456"}).status_code == 403
    assert viewer.get("/api/users").status_code == 403
    assert viewer.get("/api/export").status_code == 200
    assert viewer.post("/api/import", json=[]).status_code == 403


def store_bcrypt_account(username, password, ident="$2b$"):
    hashed = bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=4)).decode()
    db = SessionLocal()
    try:
        db.add(User(id=f"id-{username}", username=username, password=ident + hashed[4:], role="moderator"))
        db.commit()
    finally:
        db.close()


def stored_hash(username):
    db = SessionLocal()
    try:
        return db.query(User).filter(User.username == username).one().password
    finally:
        db.close()


def test_bcrypt_account_logs_in_and_is_rehashed(client):
    store_bcrypt_account("veteran", "oldpass")

    login(client, "veteran", "oldpass")
    assert client.get("/api/me").json()["user"]["username"] == "veteran"
    assert stored_hash("veteran").startswith("$pbkdf2-sha256$")

    other = TestClient(app)
    login(other, "veteran", "oldpass")


def test_bcrypt_2a_hash_is_accepted(client):
    store_bcrypt_account("elder", "oldpass", ident="$2a$")

    assert client.post("/api/login", json={"username": "elder", "password": "nope"}).status_code == 401
    assert stored_hash("elder").startswith("$2a$")
    login(client, "elder", "oldpass")
