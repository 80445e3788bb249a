"""
Tests for level colours.

Run with: python -m pytest tests/test_levels.py
"""

from logic.config import DEFAULT_LEVEL_COLORS


def test_default_levels_are_seeded(client):
    levels = client.get("/api/levels").json()
    assert levels == [{"level": k, "color": v} for k, v in sorted(DEFAULT_LEVEL_COLORS.items())]


def test_set_level_recolours_cities(admin_client):
    for cid, level in (("a", 2), ("b", 2), ("c", 3)):
        admin_client.post(
            "/api/cities",
            json={"id": cid, "name": cid, "level": level, "status": "occupied", "x": 0, "y": 0},
        ).raise_for_status()

    response = admin_client.post("/api/levels", json={"level": 2, "color": "#000000"})
    assert response.status_code == 200
    assert response.json() == {"success": True, "updated_cities": 2}

    colors = {c["id"]: c["color"] for c in admin_client.get("/api/cities").json()}
    assert colors["a"] == colors["b"] == "#000000"
    assert colors["c"] == DEFAULT_LEVEL_COLORS[3]


def test_new_level_is_added(admin_client):
    admin_client.post("/api/levels", json={"level": 9, "color": "#fff"}).raise_for_status()

    levels = admin_client.get("/api/levels").json()
    assert levels[-1] == {"level": 9, "color": "#fff"}

    entry = admin_client.get("/api/audit", params={"entity": "level_colors"}).json()[0]
    assert entry["entity_id"] == "9"
    assert entry["action"] == "update"


def test_invalid_level_or_color(admin_client):
    for payload in (
        {"level": 0, "color": "#000000"},
        {"level": "x", "color": "#000000"},
        {"level": 1, "color": "black"},
        {"level": 1},
        {"level": 10**20, "color": "#000000"},
        {"level": 1_000_001, "color": "#000000"},
    ):
        response = admin_client.post("/api/levels", json=payload)
        assert response.status_code == 400, payload
        assert response.json()["detail"] == "Invalid level or color"


def test_levels_admin_only(client, client_for):
    body = {"level": 1, "color": "#000000"}
    assert client.post("/api/levels", json=body).status_code == 401
    assert client_for("moderator").post("/api/levels", json=body).status_code == 403
