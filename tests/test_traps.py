"""
Tests for the bear trap API.

Run with: python -m pytest tests/test_traps.py
"""

from logic.config import DEFAULT_TRAP_COLOR


def trap(**overrides):
    payload = {"id": "t1", "slot": 1, "x": 0, "y": 0}
    payload.update(overrides)
    return payload


def test_get_traps_is_public(client):
    response = client.get("/api/traps")
    assert response.status_code == 200
    assert response.json() == []


def test_create_requires_login(client):
    response = client.post("/api/traps", json=trap())
    assert response.status_code == 401


def test_admin_creates_lists_and_deletes(admin_client):
    response = admin_client.post("/api/traps", json=trap(slot=2, x=3, y=4))
    assert response.status_code == 200
    assert response.json()["id"] == "t1"

    traps = admin_client.get("/api/traps").json()
    assert traps == [
        {"id": "t1", "slot": 2, "x": 3, "y": 4, "color": DEFAULT_TRAP_COLOR, "notes": None}
    ]

    assert admin_client.delete("/api/traps/t1").status_code == 200
    assert admin_client.get("/api/traps").json() == []
    assert admin_client.delete("/api/traps/t1").status_code == 404


def test_traps_ordered_by_slot(admin_client):
    admin_client.post("/api/traps", json=trap(id="c", slot=3, x=10)).raise_for_status()
    admin_client.post("/api/traps", json=trap(id="a", slot=1, x=-10)).raise_for_status()
    admin_client.post("/api/traps", json=trap(id="b", slot=2, x=0)).raise_for_status()

    assert [t["slot"] for t in admin_client.get("/api/traps").json()] == [1, 2, 3]


def test_slot_and_bounds_validation(admin_client):
    cases = [
        (trap(slot=0), "Invalid slot"),
        (trap(slot=4), "Invalid slot"),
        (trap(slot="one"), "Invalid slot"),
        (trap(x=None), "Invalid coordinates"),
        (trap(x=20), "Coordinates out of bounds"),
        (trap(y=-21), "Coordinates out of bounds"),
        (trap(color="orange"), "Invalid color"),
    ]
    for payload, message in cases:
        response = admin_client.post("/api/traps", json=payload)
        assert response.status_code == 400, payload
        assert response.json()["detail"] == message

    # the footprint fits exactly in the bottom-right corner
    assert admin_client.post("/api/traps", json=trap(x=19, y=19)).status_code == 200


def test_slot_already_taken(admin_client):
    admin_client.post("/api/traps", json=trap()).raise_for_status()

    response = admin_client.post("/api/traps", json=trap(id="t2", x=10, y=10))
    assert response.status_code == 409
    assert response.json()["detail"] == "Slot already taken"


def test_traps_cannot_overlap(admin_client):
    admin_client.post("/api/traps", json=trap()).raise_for_status()

    response = admin_client.post("/api/traps", json=trap(id="t2", slot=2, x=1, y=1))
    assert response.status_code == 409
    assert response.json()["detail"] == "Trap overlaps another trap"

    assert admin_client.post("/api/traps", json=trap(id="t2", slot=2, x=2, y=0)).status_code == 200


def test_move_trap_onto_its_own_footprint(admin_client):
    admin_client.post("/api/traps", json=trap()).raise_for_status()

    response = admin_client.put("/api/traps/t1", json=trap(x=1, y=1, color="#000000"))
    assert response.status_code == 200

    stored = admin_client.get("/api/traps").json()[0]
    assert (stored["x"], stored["y"], stored["color"]) == (1, 1, "#000000")


def test_update_missing_trap(admin_client):
    response = admin_client.put("/api/traps/ghost", json=trap())
    assert response.status_code == 404
    assert response.json()["detail"] == "Trap not found"


def test_moderator_cannot_manage_traps(admin_client, client_for):
    admin_client.post("/api/traps", json=trap()).raise_for_status()
    moderator = client_for("moderator")

    assert moderator.put("/api/traps/t1", json=trap(x=5)).status_code == 403
    assert moderator.delete("/api/traps/t1").status_code == 403


def test_trap_changes_are_audited(admin_client):
    admin_client.post("/api/traps", json=trap(x=2, y=3)).raise_for_status()
    admin_client.delete("/api/traps/t1").raise_for_status()

    entries = admin_client.get("/api/audit", params={"entity": "traps"}).json()
    assert [e["action"] for e in entries] == ["delete", "create"]
    assert entries[1]["details"] == "admin trap create (2, 3) slot 1"
    assert entries[1]["user"] == "admin"
