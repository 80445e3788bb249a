"""User context management.

This module keeps the server-side session store and provides the FastAPI
dependencies that resolve the logged-in user and enforce roles.
"""

import secrets
from datetime import datetime
from typing import Optional

from fastapi import Cookie, Depends, HTTPException
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired
from sqlalchemy.orm import Session

from database import User, get_db
from logic.config import COOKIE_NAME, SESSION_MAX_AGE, SESSION_SECRET_KEY

# Session serializer for secure cookie signing
serializer = URLSafeTimedSerializer(SESSION_SECRET_KEY)

# In-memory session storage: session id -> {"user_id", "created_at"}
user_sessions: dict[str, dict] = {}


def create_session(user: User) -> str:
    """Create a session for the user.

    Args:
        user: Authenticated user.

    Returns:
        Signed session token string for the cookie.
    """
    session_id = secrets.token_urlsafe(32)
    user_sessions[session_id] = {
        "user_id": user.id,
        "created_at": datetime.now().isoformat(),
    }
    return serializer.dumps(session_id)


def _session_id(session_cookie: Optional[str]) -> Optional[str]:
    if not session_cookie:
        return None
    try:
        return serializer.loads(session_cookie, max_age=SESSION_MAX_AGE)
    except (BadSignature, SignatureExpired):
        return None


def get_session_from_cookie(session_cookie: Optional[str]) -> Optional[dict]:
    """Validate and retrieve session data from signed cookie.

    Args:
        session_cookie: Signed session cookie value.

    Returns:
        Session data if valid, None otherwise.
    """
    session_id = _session_id(session_cookie)
    if session_id is None:
        return None
    return user_sessions.get(session_id)


def delete_session(session_cookie: Optional[str]) -> None:
    """Delete a user session.

    Args:
        session_cookie: Signed session cookie value to delete.
    """
    session_id = _session_id(session_cookie)
    if session_id is not None:
        user_sessions.pop(session_id, None)


def clear_sessions() -> None:
    user_sessions.clear()


def get_current_user(
    session: Optional[str] = Cookie(None, alias=COOKIE_NAME),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Resolve the logged-in user from the session cookie.

    The user row is loaded on every request so role changes and deleted
    accounts take effect immediately.

    Returns:
        The User, or None for anonymous requests.
    """
    session_data = get_session_from_cookie(session)
    if not session_data:
        return None
    return db.get(User, session_data["user_id"])


def require_auth(user: Optional[User] = Depends(get_current_user)) -> User:
    """Dependency rejecting anonymous requests with 401."""
    if user is None:
        raise HTTPException(401, "Authentication required")
    return user


def require_role(*roles: str):
    """Build a dependency that only admits the given roles.

    Args:
        *roles: Accepted role names.

    Returns:
        Dependency returning the User; raises 401 when anonymous and 403
        when the user's role is not accepted.
    """

    def dependency(user: User = Depends(require_auth)) -> User:
        if user.role not in roles:
            raise HTTPException(403, "Forbidden")
        return user

    return dependency


def actor_name(user: Optional[User]) -> str:
    """Name recorded in audit entries for the acting user."""
    return user.username if user else "system"
