"""
User management routes.

Admins and moderators manage accounts here. Moderators cannot touch admin
accounts or hand out the admin role.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2026-02-10
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException
from sqlalchemy.orm import Session

from audit_service import (
    ACTION_CREATE,
    ACTION_DELETE,
    ACTION_UPDATE,
    ENTITY_USERS,
    AuditLogger,
)
from database import User, get_db
from logic.config import MANAGER_ROLES
from logic.security import hash_password
from logic.validation import validate_user_payload
from user_context import actor_name, require_role

router = APIRouter()

require_manager = require_role(*MANAGER_ROLES)


def ensure_can_manage(actor: User, target_role: str) -> None:
    """Reject moderators acting on admin accounts or granting admin.

    Raises:
        HTTPException: 403 when the actor may not act on the role.
    """
    if target_role == "admin" and actor.role != "admin":
        raise HTTPException(403, "Only admins can manage admin accounts")


def ensure_username_free(db: Session, username: str, user_id: str) -> None:
    taken = db.query(User).filter(User.username == username, User.id != user_id).first()
    if taken:
        raise HTTPException(409, "Username already taken")


def ensure_admin_remains(db: Session, account: User, new_role: str) -> None:
    """Reject a role change that would leave the board without an admin.

    Raises:
        HTTPException: 400 when account is the only admin and loses the role.
    """
    if account.role != "admin" or new_role == "admin":
        return
    admins = db.query(User).filter(User.role == "admin").count()
    if admins <= 1:
        raise HTTPException(400, "Cannot remove the last admin")


@router.get("/api/users")
def list_users(db: Session = Depends(get_db), user=Depends(require_manager)):
    """List accounts ordered by username, without password hashes."""
    return [u.to_dict() for u in db.query(User).order_by(User.username).all()]


@router.post("/api/users")
def create_user(
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    user=Depends(require_manager),
):
    """Create an account, or replace the account with the same id.

    Returns:
        Dictionary with the user id and success flag.
    """
    data = validate_user_payload(payload)
    ensure_can_manage(user, data["role"])

    account = db.get(User, data["id"])
    if account is not None:
        ensure_can_manage(user, account.role)
        ensure_admin_remains(db, account, data["role"])
    ensure_username_free(db, data["username"], data["id"])

    action = ACTION_UPDATE if account else ACTION_CREATE
    if account is None:
        account = User(id=data["id"])
        db.add(account)
    account.username = data["username"]
    account.password = hash_password(data["password"])
    account.role = data["role"]

    actor = actor_name(user)
    AuditLogger.log(
        db,
        ENTITY_USERS,
        action,
        data["id"],
        user=actor,
        details=f"{actor} user {action} {data['username']}",
    )
    db.commit()
    return {"id": data["id"], "success": True}


@router.put("/api/users/{user_id}")
def update_user(
    user_id: str,
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    user=Depends(require_manager),
):
    """Update an account. An empty or missing password keeps the current one."""
    data = validate_user_payload(payload, user_id=user_id, require_password=False)

    account = db.get(User, user_id)
    if account is None:
        raise HTTPException(404, "User not found")
    ensure_can_manage(user, account.role)
    ensure_can_manage(user, data["role"])
    ensure_username_free(db, data["username"], user_id)

    ensure_admin_remains(db, account, data["role"])

    account.username = data["username"]
    account.role = data["role"]
    if data["password"]:
        account.password = hash_password(data["password"])

    actor = actor_name(user)
    AuditLogger.log(
        db,
        ENTITY_USERS,
        ACTION_UPDATE,
        user_id,
        user=actor,
        details=f"{actor} user update {data['username']}",
    )
    db.commit()
    return {"success": True}


@router.delete("/api/users/{user_id}")
def delete_user(user_id: str, db: Session = Depends(get_db), user=Depends(require_manager)):
    """Delete an account. Users cannot delete themselves."""
    account = db.get(User, user_id)
    if account is None:
        raise HTTPException(404, "User not found")
    if account.id == user.id:
        raise HTTPException(400, "Cannot delete your own account")
    ensure_can_manage(user, account.role)

    actor = actor_name(user)
    AuditLogger.log(
        db,
        ENTITY_USERS,
        ACTION_DELETE,
        user_id,
        user=actor,
        details=f"{actor} user deleted {account.username}",
    )
    db.delete(account)
    db.commit()
    return {"success": True}
