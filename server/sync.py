"""
Snapshot synchronization module.

Clients poll /api/snapshot for the combined cities and traps. The response
carries an ETag; a client sending it back in If-None-Match gets a bodiless
304 until something changes.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2025-12-17
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse, Response
from sqlalchemy.orm import Session

from database import City, Trap, get_db
from logic.snapshot import compute_etag, etag_matches

router = APIRouter()


def build_snapshot(db: Session) -> Dict[str, Any]:
    """Load cities (by name) and traps (by slot) and tag them.

    Returns:
        Dictionary with etag, cities, traps and updated_at.
    """
    cities = [c.to_dict() for c in db.query(City).order_by(City.name, City.id).all()]
    traps = [t.to_dict() for t in db.query(Trap).order_by(Trap.slot).all()]
    return {
        "etag": compute_etag(cities, traps),
        "cities": cities,
        "traps": traps,
        "updated_at": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/api/snapshot")
def get_snapshot(
    db: Session = Depends(get_db),
    if_none_match: Optional[str] = Header(None),
):
    """Get the current cities and traps, or 304 if the client is up to date."""
    snapshot = build_snapshot(db)
    headers = {"ETag": f'"{snapshot["etag"]}"', "Cache-Control": "no-cache"}

    if etag_matches(if_none_match, snapshot["etag"]):
        return Response(status_code=304, headers=headers)

    return JSONResponse(snapshot, headers=headers)
