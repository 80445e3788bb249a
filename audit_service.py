"""Audit logging service for tracking changes to entities.

This module provides utilities for logging every change to cities,
bear traps, users and level colours, and for reading the log back.
"""

import csv
import io
import logging
from typing import Any, Optional, Dict, List

from sqlalchemy.orm import Session

from database import AuditLog

logger = logging.getLogger(__name__)

ENTITY_CITIES = "cities"
ENTITY_TRAPS = "traps"
ENTITY_USERS = "users"
ENTITY_LEVELS = "level_colors"

ACTION_CREATE = "create"
ACTION_UPDATE = "update"
ACTION_DELETE = "delete"
ACTION_IMPORT = "import"

CSV_FIELDS = ["id", "timestamp", "user", "entity", "action", "entity_id", "details"]


class AuditLogger:
    """Service for logging audit events.

    Entries are added to the caller's session so they commit (or roll back)
    together with the change they describe.
    """

    @staticmethod
    def log(
        db: Session,
        entity: str,
        action: str,
        entity_id: Optional[str],
        user: Optional[str] = None,
        details: Optional[str] = None,
    ) -> AuditLog:
        """Append an audit entry.

        Args:
            db: Active database session.
            entity: Entity table (cities, traps, users, level_colors).
            action: Action performed (create, update, delete, import).
            entity_id: ID of the affected entity.
            user: Username of the actor. Defaults to 'system'.
            details: Human-readable summary of the change.

        Returns:
            The pending AuditLog row.
        """
        entry = AuditLog(
            entity=entity,
            action=action,
            entity_id=entity_id,
            user=user or "system",
            details=details,
        )
        db.add(entry)
        logger.info("%s %s %s by %s", action, entity, entity_id, entry.user)
        return entry

    @staticmethod
    def get_logs(
        db: Session,
        entity: Optional[str] = None,
        entity_id: Optional[str] = None,
        action: Optional[str] = None,
        user: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        """Retrieve audit logs with optional filtering, newest first.

        Args:
            db: Active database session.
            entity: Filter by entity table.
            entity_id: Filter by entity ID.
            action: Filter by action.
            user: Filter by user.
            limit: Maximum number of logs to return.
            offset: Number of logs to skip.

        Returns:
            List of audit log entries as dictionaries.
        """
        query = db.query(AuditLog)

        if entity:
            query = query.filter(AuditLog.entity == entity)
        if entity_id:
            query = query.filter(AuditLog.entity_id == entity_id)
        if action:
            query = query.filter(AuditLog.action == action)
        if user:
            query = query.filter(AuditLog.user == user)

        query = query.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
        query = query.offset(offset).limit(limit)

        return [log.to_dict() for log in query.all()]

    @staticmethod
    def get_entity_history(
        db: Session, entity: str, entity_id: str, limit: int = 50
    ) -> List[Dict[str, Any]]:
        """Get complete history for a specific entity."""
        return AuditLogger.get_logs(db, entity=entity, entity_id=entity_id, limit=limit)

    @staticmethod
    def export_logs_csv(
        db: Session,
        entity: Optional[str] = None,
        action: Optional[str] = None,
        user: Optional[str] = None,
    ) -> str:
        """Export audit logs as CSV format.

        Args:
            db: Active database session.
            entity: Filter by entity table.
            action: Filter by action.
            user: Filter by user.

        Returns:
            CSV formatted string of audit logs.
        """
        logs = AuditLogger.get_logs(db, entity=entity, action=action, user=user, limit=10000)

        output = io.StringIO()
        writer = csv.DictWriter(output, fieldnames=CSV_FIELDS)
        writer.writeheader()
        for log in logs:
            writer.writerow(log)

        return output.getvalue()
