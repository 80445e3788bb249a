"""
City management API routes.

This module contains endpoints for listing, creating, updating and deleting
member cities on the grid.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2025-12-17
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException
from sqlalchemy.orm import Session

from audit_service import (
    ACTION_CREATE,
    ACTION_DELETE,
    ACTION_UPDATE,
    ENTITY_CITIES,
    AuditLogger,
)
from database import City, LevelColor, Trap, get_db
from logic.config import DEFAULT_CITY_COLOR
from logic.validation import find_trap_at, validate_city_payload
from user_context import actor_name, require_auth

router = APIRouter()


def resolve_city_color(db: Session, color: Optional[str], level: Optional[int]) -> str:
    """Pick the marker colour: explicit colour, then level colour, then default."""
    if color:
        return color
    if level is not None:
        entry = db.get(LevelColor, level)
        if entry:
            return entry.color
    return DEFAULT_CITY_COLOR


def ensure_not_on_trap(db: Session, x: int, y: int) -> None:
    """Reject a tile covered by a bear trap footprint.

    Raises:
        HTTPException: If a trap covers (x, y).
    """
    traps = [t.to_dict() for t in db.query(Trap).all()]
    if find_trap_at(traps, x, y):
        raise HTTPException(400, "Cannot place a city on a bear trap area")


def _fmt_pos(value: Optional[float]) -> str:
    return "" if value is None else f"{value:g}"


def summarise_city_changes(before: Dict[str, Any], after: Dict[str, Any]) -> str:
    """Build a concise change summary for the audit log.

    Args:
        before: City state before the update.
        after: City state after the update.

    Returns:
        Comma separated summary, or 'update' when nothing notable changed.
    """
    changes: List[str] = []
    if before["name"] != after["name"]:
        changes.append("change name")
    if before["status"] != after["status"]:
        changes.append(f"status {before['status']}->{after['status']}")
    if before["level"] != after["level"]:
        old = "" if before["level"] is None else before["level"]
        new = "" if after["level"] is None else after["level"]
        changes.append(f"level {old}->{new}")
    if before["x"] != after["x"] or before["y"] != after["y"]:
        changes.append(f"move ({before['x']},{before['y']})->({after['x']},{after['y']})")
    if before["px"] != after["px"] or before["py"] != after["py"]:
        changes.append(
            f"abs-pos {_fmt_pos(before['px'])},{_fmt_pos(before['py'])}"
            f"->{_fmt_pos(after['px'])},{_fmt_pos(after['py'])}"
        )
    return ", ".join(changes) if changes else "update"


def apply_city(city: City, data: Dict[str, Any], color: str) -> None:
    for key in ("name", "level", "status", "x", "y", "px", "py", "notes"):
        setattr(city, key, data[key])
    city.color = color


@router.get("/api/cities")
def list_cities(db: Session = Depends(get_db)):
    """List all cities ordered by name."""
    return [c.to_dict() for c in db.query(City).order_by(City.name, City.id).all()]


@router.post("/api/cities")
def create_city(
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    user=Depends(require_auth),
):
    """Create a city, or replace the city with the same id.

    Args:
        payload: City fields. x/y may be omitted when px/py are given.

    Returns:
        Dictionary with the city id and success flag.

    Raises:
        HTTPException: If validation fails or the tile is covered by a trap.
    """
    data = validate_city_payload(payload)
    ensure_not_on_trap(db, data["x"], data["y"])
    color = resolve_city_color(db, data["color"], data["level"])

    city = db.get(City, data["id"])
    action = ACTION_UPDATE if city else ACTION_CREATE
    if city is None:
        city = City(id=data["id"])
        db.add(city)
    apply_city(city, data, color)

    actor = actor_name(user)
    AuditLogger.log(
        db,
        ENTITY_CITIES,
        action,
        data["id"],
        user=actor,
        details=f"{actor} city {action} ({data['x']}, {data['y']}) {data['name']}",
    )
    db.commit()
    return {"id": data["id"], "success": True}


@router.put("/api/cities/{city_id}")
def update_city(
    city_id: str,
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    user=Depends(require_auth),
):
    """Update an existing city.

    Raises:
        HTTPException: If validation fails, the tile is covered by a trap,
            or the city does not exist.
    """
    data = validate_city_payload(payload, city_id=city_id)
    ensure_not_on_trap(db, data["x"], data["y"])
    color = resolve_city_color(db, data["color"], data["level"])

    city = db.get(City, city_id)
    if city is None:
        raise HTTPException(404, "City not found")

    before = city.to_dict()
    apply_city(city, data, color)
    summary = summarise_city_changes(before, city.to_dict())

    actor = actor_name(user)
    AuditLogger.log(
        db,
        ENTITY_CITIES,
        ACTION_UPDATE,
        city_id,
        user=actor,
        details=f"{actor} city update ({data['x']}, {data['y']}) {summary} {data['name']}".strip(),
    )
    db.commit()
    return {"success": True}


@router.delete("/api/cities/{city_id}")
def delete_city(city_id: str, db: Session = Depends(get_db), user=Depends(require_auth)):
    """Delete a city.

    Raises:
        HTTPException: If the city does not exist.
    """
    city = db.get(City, city_id)
    if city is None:
        raise HTTPException(404, "City not found")

    actor = actor_name(user)
    AuditLogger.log(
        db,
        ENTITY_CITIES,
        ACTION_DELETE,
        city_id,
        user=actor,
        details=f"{actor} city deleted ({city.x}, {city.y}) {city.name}",
    )
    db.delete(city)
    db.commit()
    return {"success": True}
