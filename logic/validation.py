"""
Validation and sanitization utilities.

This module contains functions for validating request payloads, checking
trap footprints, and sanitizing user input data.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2025-12-17
"""

import math
import re
from typing import Any, List, Dict, Tuple, Optional

from fastapi import HTTPException

from logic.config import (
    BEAR_TRAP_COUNT,
    BEAR_TRAP_SIZE,
    CITY_STATUSES,
    DEFAULT_TRAP_COLOR,
    GRID_SIZE,
    ROLES,
    grid_bounds,
)
from logic.grid import pixel_to_tile, trap_tiles

HEX_COLOR_RE = re.compile(r"^#([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
MAX_CITY_NAME_LEN = 100
MAX_USERNAME_LEN = 50
MIN_PASSWORD_LEN = 2
MAX_NOTES_LEN = 1000
MAX_LEVEL = 1_000_000


def is_hex_color(value: Any) -> bool:
    """Check for a #rgb or #rrggbb colour string."""
    return isinstance(value, str) and bool(HEX_COLOR_RE.match(value))


def sanitise_int(
        value: Any, *, allow_none: bool = False, message: str = "Invalid numeric value"
) -> Optional[int]:
    """Sanitize and validate integer values.

    Accepts ints, integral floats and numeric strings.

    Args:
        value: Value to convert to integer.
        allow_none: Whether None (or an empty string) is an acceptable value.
        message: Error detail used when validation fails.

    Returns:
        Integer value or None if allowed.

    Raises:
        HTTPException: If value cannot be converted to integer.
    """
    if allow_none and (value is None or value == ""):
        return None
    if isinstance(value, bool):
        raise HTTPException(400, message)
    if isinstance(value, float):
        if not value.is_integer():
            raise HTTPException(400, message)
        return int(value)
    if isinstance(value, str):
        value = value.strip()
    try:
        return int(value)
    except (TypeError, ValueError):
        raise HTTPException(400, message)


def sanitise_optional_number(value: Any, message: str) -> Optional[float]:
    """Sanitize an optional finite number such as a pixel offset.

    Args:
        value: Number, numeric string, or None.
        message: Error detail used when validation fails.

    Returns:
        Float value or None.

    Raises:
        HTTPException: If value is not a finite number.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise HTTPException(400, message)
    if isinstance(value, str):
        if not value.strip():
            raise HTTPException(400, message)
        try:
            value = float(value)
        except ValueError:
            raise HTTPException(400, message)
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        raise HTTPException(400, message)
    return float(value)


def sanitise_text(
        value: Any, message: str, *, max_len: Optional[int] = None, required: bool = False
) -> Optional[str]:
    """Sanitize a text field.

    Args:
        value: Incoming value.
        message: Error detail used when validation fails.
        max_len: Maximum length after stripping.
        required: Whether an empty value is rejected.

    Returns:
        Stripped string, or None for an absent optional value.

    Raises:
        HTTPException: If value is not a string or breaks the constraints.
    """
    if value is None:
        if required:
            raise HTTPException(400, message)
        return None
    if not isinstance(value, str):
        raise HTTPException(400, message)
    value = value.strip()
    if required and not value:
        raise HTTPException(400, message)
    if max_len is not None and len(value) > max_len:
        raise HTTPException(400, message)
    return value


def is_within_bounds(
        x: int, y: int, width: int = 1, height: int = 1, grid_size: int = GRID_SIZE
) -> bool:
    """Check if an entity at (x, y) with given dimensions is within grid bounds.

    Args:
        x: X coordinate of the top-left tile.
        y: Y coordinate of the top-left tile.
        width: Width of the entity (default 1).
        height: Height of the entity (default 1).
        grid_size: Number of tiles per side of the centred grid.

    Returns:
        True if entity is within bounds, False otherwise.
    """
    lo, hi = grid_bounds(grid_size)
    return lo <= x <= hi - width + 1 and lo <= y <= hi - height + 1


def rectangles_overlap(x1, y1, w1, h1, x2, y2, w2, h2):
    """Check if two rectangles overlap.

    Args:
        x1, y1: Top-left of first rectangle
        w1, h1: Width and height of first rectangle
        x2, y2: Top-left of second rectangle
        w2, h2: Width and height of second rectangle

    Returns:
        True if they overlap, False otherwise
    """
    return not (x1 + w1 <= x2 or x2 + w2 <= x1 or y1 + h1 <= y2 or y2 + h2 <= y1)


def trap_covers_tile(trap: Dict, x: int, y: int, size: int = BEAR_TRAP_SIZE) -> bool:
    """Check whether a trap footprint contains tile (x, y)."""
    tx, ty = trap.get("x"), trap.get("y")
    if tx is None or ty is None:
        return False
    return (x, y) in trap_tiles(tx, ty, size)


def find_trap_at(
        traps: List[Dict], x: int, y: int, size: int = BEAR_TRAP_SIZE
) -> Optional[Dict]:
    """Find the trap whose footprint covers tile (x, y).

    Args:
        traps: List of trap dictionaries.
        x: Tile X coordinate.
        y: Tile Y coordinate.
        size: Trap footprint side length.

    Returns:
        The covering trap dictionary, or None.
    """
    return next((t for t in traps if trap_covers_tile(t, x, y, size)), None)


def check_trap_overlap(
        x: int,
        y: int,
        traps: List[Dict],
        exclude_id: Optional[str] = None,
        size: int = BEAR_TRAP_SIZE,
) -> Tuple[bool, Optional[str]]:
    """Check if a trap at (x, y) overlaps with any other trap.

    Args:
        x: X coordinate of trap.
        y: Y coordinate of trap.
        traps: List of trap dictionaries.
        exclude_id: Trap ID to exclude from overlap check (for moving an existing trap).
        size: Trap footprint side length.

    Returns:
        Tuple of (has_overlap, overlapping_trap_id).
    """
    for trap in traps:
        if exclude_id and trap.get("id") == exclude_id:
            continue
        tx, ty = trap.get("x"), trap.get("y")
        if tx is None or ty is None:
            continue
        if rectangles_overlap(x, y, size, size, tx, ty, size, size):
            return True, trap.get("id")
    return False, None


def validate_city_payload(payload: Dict[str, Any], city_id: Optional[str] = None) -> Dict[str, Any]:
    """Validate a city payload and return the cleaned record.

    When the payload carries only an absolute pixel position (px/py), the
    tile is derived from it.

    Args:
        payload: Raw request body.
        city_id: ID from the URL, overriding any id in the body.

    Returns:
        Dictionary with id, name, level, status, x, y, px, py, notes, color.
        color is None when the caller should fall back to the level colour.

    Raises:
        HTTPException: On the first invalid field.
    """
    if not isinstance(payload, dict):
        raise HTTPException(400, "Invalid payload")

    cid = city_id if city_id is not None else payload.get("id")
    if not cid or not isinstance(cid, str):
        raise HTTPException(400, "Invalid id")

    name = sanitise_text(
        payload.get("name"), "Invalid name", max_len=MAX_CITY_NAME_LEN, required=True
    )
    level = sanitise_int(payload.get("level"), allow_none=True, message="Invalid level")
    if level is not None and not 1 <= level <= MAX_LEVEL:
        raise HTTPException(400, "Invalid level")

    status = payload.get("status") or "occupied"
    if status not in CITY_STATUSES:
        raise HTTPException(400, "Invalid status")

    px = sanitise_optional_number(payload.get("px"), "Invalid px")
    py = sanitise_optional_number(payload.get("py"), "Invalid py")

    x, y = payload.get("x"), payload.get("y")
    if x is None and y is None and px is not None and py is not None:
        x, y = pixel_to_tile(px, py)
    else:
        x = sanitise_int(x, message="Invalid coordinates")
        y = sanitise_int(y, message="Invalid coordinates")
    if not is_within_bounds(x, y):
        raise HTTPException(400, "Coordinates out of bounds")

    color = payload.get("color")
    if color in (None, ""):
        color = None
    elif not is_hex_color(color):
        raise HTTPException(400, "Invalid color")

    notes = sanitise_text(payload.get("notes"), "Invalid notes", max_len=MAX_NOTES_LEN)

    return {
        "id": cid,
        "name": name,
        "level": level,
        "status": status,
        "x": x,
        "y": y,
        "px": px,
        "py": py,
        "notes": notes,
        "color": color,
    }


def validate_trap_payload(payload: Dict[str, Any], trap_id: Optional[str] = None) -> Dict[str, Any]:
    """Validate a bear trap payload and return the cleaned record.

    Args:
        payload: Raw request body.
        trap_id: ID from the URL, overriding any id in the body.

    Returns:
        Dictionary with id, slot, x, y, color, notes.

    Raises:
        HTTPException: On the first invalid field.
    """
    if not isinstance(payload, dict):
        raise HTTPException(400, "Invalid payload")

    tid = trap_id if trap_id is not None else payload.get("id")
    if not tid or not isinstance(tid, str):
        raise HTTPException(400, "Invalid id")

    slot = sanitise_int(payload.get("slot"), message="Invalid slot")
    if not 1 <= slot <= BEAR_TRAP_COUNT:
        raise HTTPException(400, "Invalid slot")

    x = sanitise_int(payload.get("x"), message="Invalid coordinates")
    y = sanitise_int(payload.get("y"), message="Invalid coordinates")
    if not is_within_bounds(x, y, BEAR_TRAP_SIZE, BEAR_TRAP_SIZE):
        raise HTTPException(400, "Coordinates out of bounds")

    color = payload.get("color")
    if color in (None, ""):
        color = DEFAULT_TRAP_COLOR
    elif not is_hex_color(color):
        raise HTTPException(400, "Invalid color")

    notes = sanitise_text(payload.get("notes"), "Invalid notes", max_len=MAX_NOTES_LEN)

    return {"id": tid, "slot": slot, "x": x, "y": y, "color": color, "notes": notes}


def validate_user_payload(
        payload: Dict[str, Any],
        user_id: Optional[str] = None,
        *,
        require_password: bool = True,
) -> Dict[str, Any]:
    """Validate a user payload.

    Args:
        payload: Raw request body.
        user_id: ID from the URL, overriding any id in the body.
        require_password: Whether a password must be supplied. When False an
            empty password means "keep the current one".

    Returns:
        Dictionary with id, username, password (None when omitted), role.

    Raises:
        HTTPException: On the first invalid field.
    """
    if not isinstance(payload, dict):
        raise HTTPException(400, "Invalid payload")

    uid = user_id if user_id is not None else payload.get("id")
    if not uid or not isinstance(uid, str):
        raise HTTPException(400, "Invalid id")

    username = sanitise_text(
        payload.get("username"), "Invalid username", max_len=MAX_USERNAME_LEN, required=True
    )

    password = payload.get("password")
    if password in (None, "") and not require_password:
        password = None
    elif not isinstance(password, str) or len(password) < MIN_PASSWORD_LEN:
        raise HTTPException(400, f"Invalid password (min {MIN_PASSWORD_LEN} chars)")

    role = payload.get("role")
    if role not in ROLES:
        raise HTTPException(400, "Invalid role")

    return {"id": uid, "username": username, "password": password, "role": role}


def validate_level_payload(payload: Dict[str, Any]) -> Tuple[int, str]:
    """Validate a level colour mapping.

    Returns:
        Tuple of (level, color).

    Raises:
        HTTPException: If the level is outside 1..MAX_LEVEL or the colour is invalid.
    """
    if not isinstance(payload, dict):
        raise HTTPException(400, "Invalid level or color")
    level = sanitise_int(payload.get("level"), message="Invalid level or color")
    color = payload.get("color")
    if not 1 <= level <= MAX_LEVEL or not is_hex_color(color):
        raise HTTPException(400, "Invalid level or color")
    return level, color
