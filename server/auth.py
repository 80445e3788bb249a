"""Username/password authentication module.

This module handles login, logout and the current-user endpoint. Sessions
live server-side (see user_context) and are referenced by a cookie signed
with itsdangerous.
"""

import logging
import time
from collections import defaultdict, deque
from typing import Deque, Dict, Optional

from fastapi import APIRouter, Cookie, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from database import User, get_db
from logic.config import (
    COOKIE_NAME,
    COOKIE_SECURE,
    LOGIN_RATE_LIMIT,
    LOGIN_RATE_WINDOW,
    SESSION_MAX_AGE,
)
from logic.security import verify_and_update
from user_context import create_session, delete_session, get_current_user, require_auth

logger = logging.getLogger(__name__)

router = APIRouter()

# Login attempt timestamps per client address
login_attempts: Dict[str, Deque[float]] = defaultdict(deque)


class LoginRequest(BaseModel):
    """Request model for logging in."""

    username: str = ""
    password: str = ""


def check_login_rate(client: str, now: Optional[float] = None) -> bool:
    """Record a login attempt and report whether it is within the limit.

    Args:
        client: Client address.
        now: Current time in seconds (injectable for tests).

    Returns:
        True if the attempt is allowed, False once the client has made more
        than LOGIN_RATE_LIMIT attempts inside LOGIN_RATE_WINDOW seconds.
    """
    now = time.monotonic() if now is None else now
    attempts = login_attempts[client]
    while attempts and attempts[0] <= now - LOGIN_RATE_WINDOW:
        attempts.popleft()
    attempts.append(now)
    return len(attempts) <= LOGIN_RATE_LIMIT


def reset_login_attempts() -> None:
    login_attempts.clear()


@router.post("/api/login")
def login(data: LoginRequest, request: Request, db: Session = Depends(get_db)):
    """Log in with username and password.

    Args:
        data: Credentials.
        request: FastAPI request object, used for the client address.
        db: Database session.

    Returns:
        JSONResponse with the user and a session cookie.

    Raises:
        HTTPException: 429 when rate limited, 401 on bad credentials.
    """
    client = request.client.host if request.client else "unknown"
    if not check_login_rate(client):
        logger.warning("Login rate limit hit for %s", client)
        raise HTTPException(429, "Too many login attempts, try again later")

    user = db.query(User).filter(User.username == data.username).first()
    valid, new_hash = verify_and_update(data.password, user.password if user else None)
    if not valid:
        logger.info("Failed login for '%s' from %s", data.username, client)
        raise HTTPException(401, "Invalid credentials")
    if new_hash:
        user.password = new_hash
        db.commit()
        logger.info("Upgraded password hash for '%s'", user.username)

    logger.info("User '%s' logged in", user.username)
    response = JSONResponse({"success": True, "user": user.to_dict()})
    response.set_cookie(
        key=COOKIE_NAME,
        value=create_session(user),
        max_age=SESSION_MAX_AGE,
        httponly=True,
        secure=COOKIE_SECURE,
        samesite="lax",
    )
    return response


@router.post("/api/logout")
def logout(
    user: User = Depends(require_auth),
    session: Optional[str] = Cookie(None, alias=COOKIE_NAME),
):
    """Log out the current user.

    Deletes the user session and clears the session cookie.
    """
    delete_session(session)
    logger.info("User '%s' logged out", user.username)

    response = JSONResponse({"success": True})
    response.delete_cookie(key=COOKIE_NAME)
    return response


@router.get("/api/me")
def me(user: Optional[User] = Depends(get_current_user)):
    """Get current authenticated user information.

    Returns:
        JSON with user data if authenticated, or null user if not.
    """
    return {"user": user.to_dict() if user else None}
