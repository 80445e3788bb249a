"""
Map import and export module.

Exports the whole board as a versioned JSON document and imports such a
document back, replacing the current cities and traps in one transaction.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2025-12-18
"""

import logging
from typing import Any, Dict, List, Tuple

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from audit_service import ACTION_IMPORT, ENTITY_CITIES, AuditLogger
from database import City, LevelColor, Trap, get_db
from logic.config import DEFAULT_CITY_COLOR, MANAGER_ROLES
from logic.validation import check_trap_overlap, validate_city_payload, validate_trap_payload
from user_context import actor_name, require_auth, require_role

logger = logging.getLogger(__name__)

router = APIRouter()

EXPORT_VERSION = 2
EXPORT_FILENAME = "wos-spots.json"


def parse_import_payload(payload: Any) -> Tuple[List[Dict], List[Dict], bool]:
    """Split an import document into validated cities and traps.

    A bare list is a legacy export holding only cities; it leaves the
    current traps in place. Older releases cleared the traps on every
    import, which lost trap placements when restoring a cities-only file.

    Args:
        payload: Decoded JSON body.

    Returns:
        Tuple of (cities, traps, replace_traps).

    Raises:
        HTTPException: If the document or any record is invalid.
    """
    if isinstance(payload, list):
        raw_cities, raw_traps, replace_traps = payload, [], False
    elif (
        isinstance(payload, dict)
        and payload.get("version") == EXPORT_VERSION
        and isinstance(payload.get("cities"), list)
        and isinstance(payload.get("traps"), list)
    ):
        raw_cities, raw_traps, replace_traps = payload["cities"], payload["traps"], True
    else:
        raise HTTPException(400, "Invalid data format")

    cities = []
    for index, raw in enumerate(raw_cities):
        try:
            cities.append(validate_city_payload(raw))
        except HTTPException as e:
            raise HTTPException(400, f"Invalid city at index {index}: {e.detail}")
    if len({c["id"] for c in cities}) != len(cities):
        raise HTTPException(400, "Duplicate city id")

    traps = []
    for index, raw in enumerate(raw_traps):
        try:
            trap = validate_trap_payload(raw)
        except HTTPException as e:
            raise HTTPException(400, f"Invalid trap at index {index}: {e.detail}")
        if any(t["slot"] == trap["slot"] for t in traps):
            raise HTTPException(400, f"Duplicate trap slot {trap['slot']}")
        has_overlap, _ = check_trap_overlap(trap["x"], trap["y"], traps, exclude_id=trap["id"])
        if has_overlap:
            raise HTTPException(400, f"Invalid trap at index {index}: overlaps another trap")
        traps.append(trap)
    if len({t["id"] for t in traps}) != len(traps):
        raise HTTPException(400, "Duplicate trap id")

    return cities, traps, replace_traps


@router.get("/api/export")
def export_map(db: Session = Depends(get_db), user=Depends(require_auth)):
    """Download all cities and traps as JSON.

    Returns:
        JSONResponse served as an attachment.
    """
    cities = [c.to_dict() for c in db.query(City).order_by(City.name, City.id).all()]
    traps = [t.to_dict() for t in db.query(Trap).order_by(Trap.slot).all()]
    return JSONResponse(
        {"version": EXPORT_VERSION, "cities": cities, "traps": traps},
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )


@router.post("/api/import")
def import_map(
    payload: Any = Body(...),
    db: Session = Depends(get_db),
    user=Depends(require_role(*MANAGER_ROLES)),
):
    """Replace the board with an exported document.

    Args:
        payload: Version 2 export object, or a legacy list of cities.

    Returns:
        Dictionary with success flag and imported counts.
    """
    cities, traps, replace_traps = parse_import_payload(payload)
    level_colors = {lc.level: lc.color for lc in db.query(LevelColor).all()}

    db.query(City).delete(synchronize_session=False)
    if replace_traps:
        db.query(Trap).delete(synchronize_session=False)

    for data in cities:
        color = data.pop("color") or level_colors.get(data["level"], DEFAULT_CITY_COLOR)
        db.add(City(color=color, **data))
    for data in traps:
        db.add(Trap(**data))

    actor = actor_name(user)
    AuditLogger.log(
        db,
        ENTITY_CITIES,
        ACTION_IMPORT,
        None,
        user=actor,
        details=f"{actor} import {len(cities)} cities, {len(traps)} traps",
    )
    db.commit()
    logger.info("Imported %d cities and %d traps", len(cities), len(traps))
    return {"success": True, "cities": len(cities), "traps": len(traps)}
