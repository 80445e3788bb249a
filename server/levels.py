"""
Level colour routes.

Each member level maps to a default marker colour. Changing a level's
colour recolours every city of that level.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2026-02-10
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from audit_service import ACTION_UPDATE, ENTITY_LEVELS, AuditLogger
from database import City, LevelColor, get_db
from logic.validation import validate_level_payload
from user_context import actor_name, require_role

router = APIRouter()


@router.get("/api/levels")
def list_levels(db: Session = Depends(get_db)):
    """List level colours ordered by level."""
    return [lc.to_dict() for lc in db.query(LevelColor).order_by(LevelColor.level).all()]


@router.post("/api/levels")
def set_level_color(
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    user=Depends(require_role("admin")),
):
    """Set a level's colour and apply it to the cities of that level.

    Args:
        payload: Dictionary with 'level' and 'color'.

    Returns:
        Dictionary with success flag and number of recoloured cities.
    """
    level, color = validate_level_payload(payload)

    entry = db.get(LevelColor, level)
    if entry is None:
        db.add(LevelColor(level=level, color=color))
    else:
        entry.color = color

    recoloured = (
        db.query(City)
        .filter(City.level == level)
        .update({City.color: color}, synchronize_session=False)
    )

    actor = actor_name(user)
    AuditLogger.log(
        db,
        ENTITY_LEVELS,
        ACTION_UPDATE,
        str(level),
        user=actor,
        details=f"{actor} level {level} color {color} ({recoloured} cities)",
    )
    db.commit()
    return {"success": True, "updated_cities": recoloured}
