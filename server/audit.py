"""
Audit log routes.

Read access to the change history for any logged-in user, plus a CSV
download of the log.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2026-02-10
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from audit_service import AuditLogger
from database import get_db
from user_context import require_auth

router = APIRouter()


@router.get("/api/audit")
def get_audit_logs(
    entity: Optional[str] = None,
    entity_id: Optional[str] = None,
    action: Optional[str] = None,
    user: Optional[str] = None,
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    _=Depends(require_auth),
):
    """List audit entries, newest first.

    Args:
        entity: Filter by entity table.
        entity_id: Filter by entity ID.
        action: Filter by action.
        user: Filter by acting user.
        limit: Page size (1..1000).
        offset: Entries to skip.

    Returns:
        List of audit entries.
    """
    return AuditLogger.get_logs(
        db,
        entity=entity,
        entity_id=entity_id,
        action=action,
        user=user,
        limit=limit,
        offset=offset,
    )


@router.get("/api/audit/export")
def export_audit_logs(
    entity: Optional[str] = None,
    action: Optional[str] = None,
    user: Optional[str] = None,
    db: Session = Depends(get_db),
    _=Depends(require_auth),
):
    """Download the audit log as CSV."""
    content = AuditLogger.export_logs_csv(db, entity=entity, action=action, user=user)
    filename = f"audit-{datetime.now().strftime('%Y%m%d-%H%M%S')}.csv"

    def iter_csv():
        yield content

    return StreamingResponse(
        iter_csv(),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get("/api/audit/{entity}/{entity_id}")
def get_entity_history(
    entity: str,
    entity_id: str,
    limit: int = Query(50, ge=1, le=1000),
    db: Session = Depends(get_db),
    _=Depends(require_auth),
):
    """Get the history of a single entity."""
    return AuditLogger.get_entity_history(db, entity, entity_id, limit=limit)
