"""
Bear trap management API routes.

Traps occupy a fixed square footprint and are keyed by slot (1..3); only
admins may place, move or remove them.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2025-12-17
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException
from sqlalchemy.orm import Session

from audit_service import (
    ACTION_CREATE,
    ACTION_DELETE,
    ACTION_UPDATE,
    ENTITY_TRAPS,
    AuditLogger,
)
from database import Trap, get_db
from logic.validation import check_trap_overlap, validate_trap_payload
from user_context import actor_name, require_role

router = APIRouter()

require_admin = require_role("admin")


def ensure_trap_placement(db: Session, data: Dict[str, Any]) -> None:
    """Check slot ownership and footprint collisions for a trap write.

    Args:
        db: Database session.
        data: Validated trap record.

    Raises:
        HTTPException: 409 if another trap holds the slot or overlaps the footprint.
    """
    others = db.query(Trap).filter(Trap.id != data["id"]).all()
    if any(t.slot == data["slot"] for t in others):
        raise HTTPException(409, "Slot already taken")
    has_overlap, _ = check_trap_overlap(data["x"], data["y"], [t.to_dict() for t in others])
    if has_overlap:
        raise HTTPException(409, "Trap overlaps another trap")


def apply_trap(trap: Trap, data: Dict[str, Any]) -> None:
    for key in ("slot", "x", "y", "color", "notes"):
        setattr(trap, key, data[key])


@router.get("/api/traps")
def list_traps(db: Session = Depends(get_db)):
    """List all traps ordered by slot."""
    return [t.to_dict() for t in db.query(Trap).order_by(Trap.slot).all()]


@router.post("/api/traps")
def create_trap(
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    user=Depends(require_admin),
):
    """Place a trap, or replace the trap with the same id.

    Returns:
        Dictionary with the trap id and success flag.
    """
    data = validate_trap_payload(payload)
    ensure_trap_placement(db, data)

    trap = db.get(Trap, data["id"])
    action = ACTION_UPDATE if trap else ACTION_CREATE
    if trap is None:
        trap = Trap(id=data["id"])
        db.add(trap)
    apply_trap(trap, data)

    actor = actor_name(user)
    AuditLogger.log(
        db,
        ENTITY_TRAPS,
        action,
        data["id"],
        user=actor,
        details=f"{actor} trap {action} ({data['x']}, {data['y']}) slot {data['slot']}",
    )
    db.commit()
    return {"id": data["id"], "success": True}


@router.put("/api/traps/{trap_id}")
def update_trap(
    trap_id: str,
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    user=Depends(require_admin),
):
    """Move or recolour an existing trap."""
    data = validate_trap_payload(payload, trap_id=trap_id)

    trap = db.get(Trap, trap_id)
    if trap is None:
        raise HTTPException(404, "Trap not found")
    ensure_trap_placement(db, data)
    apply_trap(trap, data)

    actor = actor_name(user)
    AuditLogger.log(
        db,
        ENTITY_TRAPS,
        ACTION_UPDATE,
        trap_id,
        user=actor,
        details=f"{actor} trap update ({data['x']}, {data['y']}) slot {data['slot']}",
    )
    db.commit()
    return {"success": True}


@router.delete("/api/traps/{trap_id}")
def delete_trap(trap_id: str, db: Session = Depends(get_db), user=Depends(require_admin)):
    """Remove a trap."""
    trap = db.get(Trap, trap_id)
    if trap is None:
        raise HTTPException(404, "Trap not found")

    actor = actor_name(user)
    AuditLogger.log(
        db,
        ENTITY_TRAPS,
        ACTION_DELETE,
        trap_id,
        user=actor,
        details=f"{actor} trap deleted ({trap.x}, {trap.y}) slot {trap.slot}",
    )
    db.delete(trap)
    db.commit()
    return {"success": True}
