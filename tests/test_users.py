"""
Tests for account management.

Run with: python -m pytest tests/test_users.py
"""

from fastapi.testclient import TestClient

from conftest import create_account, login
from main import app


def account(**overrides):
    payload = {"id": "u1", "username": "scout", "password": "pw", "role": "viewer"}
    payload.update(overrides)
    return payload


def test_list_users_hides_passwords(admin_client):
    users = admin_client.get("/api/users").json()
    assert users == [{"id": "admin", "username": "admin", "role": "admin"}]


def test_create_user_can_log_in(admin_client):
    response = admin_client.post("/api/users", json=account())
    assert response.status_code == 200
    assert response.json() == {"id": "u1", "success": True}

    other = TestClient(app)
    login(other, "scout", "pw")
    assert other.get("/api/me").json()["user"]["role"] == "viewer"


def test_user_validation(admin_client):
    cases = [
        (account(username=""), "Invalid username"),
        (account(username="x" * 51), "Invalid username"),
        (account(password="a"), "Invalid password (min 2 chars)"),
        (account(password=None), "Invalid password (min 2 chars)"),
        (account(role="owner"), "Invalid role"),
    ]
    for payload, message in cases:
        response = admin_client.post("/api/users", json=payload)
        assert response.status_code == 400, payload
        assert response.json()["detail"] == message


def test_username_must_be_unique(admin_client):
    response = admin_client.post("/api/users", json=account(username="admin"))
    assert response.status_code == 409
    assert response.json()["detail"] == "Username already taken"


def test_update_keeps_password_when_blank(admin_client):
    admin_client.post("/api/users", json=account()).raise_for_status()

    response = admin_client.put("/api/users/u1", json=account(password="", role="moderator"))
    assert response.status_code == 200

    other = TestClient(app)
    login(other, "scout", "pw")
    assert other.get("/api/me").json()["user"]["role"] == "moderator"


def test_update_changes_password(admin_client):
    admin_client.post("/api/users", json=account()).raise_for_status()
    admin_client.put("/api/users/u1", json=account(password="newpw")).raise_for_status()

    other = TestClient(app)
    assert other.post("/api/login", json={"username": "scout", "password": "pw"}).status_code == 401
    login(other, "scout", "newpw")


def test_update_missing_user(admin_client):
    response = admin_client.put("/api/users/ghost", json=account())
    assert response.status_code == 404


def test_cannot_demote_last_admin(admin_client):
    response = admin_client.put(
        "/api/users/admin", json={"username": "admin", "role": "moderator"}
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot remove the last admin"

    create_account("second", "admin")
    response = admin_client.put(
        "/api/users/admin", json={"username": "admin", "role": "moderator"}
    )
    assert response.status_code == 200


def test_cannot_demote_last_admin_by_replacing(admin_client):
    response = admin_client.post(
        "/api/users", json={"id": "admin", "username": "admin", "password": "admin", "role": "viewer"}
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot remove the last admin"
    assert admin_client.get("/api/users").status_code == 200

    create_account("second", "admin")
    response = admin_client.post(
        "/api/users", json={"id": "id-second", "username": "second", "password": "pw", "role": "viewer"}
    )
    assert response.status_code == 200


def test_cannot_delete_self(admin_client):
    response = admin_client.delete("/api/users/admin")
    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot delete your own account"


def test_moderator_manages_non_admins(client_for):
    moderator = client_for("moderator")

    assert moderator.post("/api/users", json=account()).status_code == 200
    assert moderator.put("/api/users/u1", json=account(role="moderator")).status_code == 200
    assert moderator.delete("/api/users/u1").status_code == 200


def test_moderator_cannot_touch_admins(client_for):
    moderator = client_for("moderator")

    response = moderator.post("/api/users", json=account(role="admin"))
    assert response.status_code == 403
    assert response.json()["detail"] == "Only admins can manage admin accounts"

    assert moderator.put(
        "/api/users/admin", json={"username": "admin", "role": "viewer"}
    ).status_code == 403
    assert moderator.delete("/api/users/admin").status_code == 403


def test_user_changes_are_audited(admin_client):
    admin_client.post("/api/users", json=account()).raise_for_status()
    admin_client.delete("/api/users/u1").raise_for_status()

    entries = admin_client.get("/api/audit/users/u1").json()
    assert [e["action"] for e in entries] == ["delete", "create"]
    assert entries[1]["details"] == "admin user create scout"
    assert all("pw" not in (e["details"] or "") for e in entries)
