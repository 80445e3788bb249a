"""
Configuration management module.

This module loads settings from the environment (and an optional .env file)
and exposes the grid constants shared by the API and the browser client.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2025-12-17
"""

import logging
import os
import secrets
from typing import Dict, Any

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %s", name, value, default)
        return default


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def resolve_db_path(path: str) -> str:
    """Append the .db extension when the configured path has none.

    Args:
        path: Database file path from the environment.

    Returns:
        Path to the SQLite file.
    """
    if path == ":memory:":
        return path
    _, ext = os.path.splitext(path)
    return path if ext else f"{path}.db"


def resolve_db_url(path: str) -> str:
    """Build the SQLAlchemy URL for a SQLite database path."""
    return f"sqlite:///{resolve_db_path(path)}"


# Storage
DB_PATH = resolve_db_path(os.getenv("DB_PATH", "wos.db"))
DATABASE_URL = resolve_db_url(DB_PATH)

# Sessions
SESSION_SECRET_KEY = os.getenv("SESSION_SECRET_KEY")
if not SESSION_SECRET_KEY:
    SESSION_SECRET_KEY = secrets.token_urlsafe(32)
    logger.warning(
        "SESSION_SECRET_KEY not set. Using temporary key. Set this in .env for production."
    )
SESSION_MAX_AGE = _env_int("SESSION_MAX_AGE", 60 * 60 * 24 * 7)  # 7 days in seconds
COOKIE_NAME = "sid"
COOKIE_SECURE = _env_bool("COOKIE_SECURE")

# HTTP
CORS_ORIGIN = os.getenv("CORS_ORIGIN") or None
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Seeded account, created when the database has no admin
ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin")

# Login throttling
LOGIN_RATE_LIMIT = _env_int("LOGIN_RATE_LIMIT", 20)
LOGIN_RATE_WINDOW = _env_int("LOGIN_RATE_WINDOW", 15 * 60)

# Grid
GRID_SIZE = _env_int("GRID_SIZE", 41)
BEAR_TRAP_SIZE = _env_int("BEAR_TRAP_SIZE", 2)
BEAR_TRAP_COUNT = 3
CELL_SIZE_PX = _env_int("CELL_SIZE_PX", 28)

CITY_STATUSES = ("occupied", "reserved")
ROLES = ("viewer", "moderator", "admin")
MANAGER_ROLES = ("admin", "moderator")

DEFAULT_CITY_COLOR = "#ec4899"
DEFAULT_TRAP_COLOR = "#f59e0b"
DEFAULT_LEVEL_COLORS = {
    1: "#22c55e",
    2: "#3b82f6",
    3: "#a855f7",
    4: "#f59e0b",
    5: "#ef4444",
}


def grid_bounds(grid_size: int = GRID_SIZE) -> tuple:
    """Get the inclusive coordinate range of a centred grid.

    Args:
        grid_size: Number of tiles per side.

    Returns:
        Tuple of (min_coord, max_coord).
    """
    half = grid_size // 2
    return -half, grid_size - 1 - half


def get_grid_config() -> Dict[str, Any]:
    """Get the grid settings the browser client renders with.

    Returns:
        Dictionary of grid constants.
    """
    lo, hi = grid_bounds()
    return {
        "grid_size": GRID_SIZE,
        "min_coord": lo,
        "max_coord": hi,
        "bear_trap_size": BEAR_TRAP_SIZE,
        "bear_trap_count": BEAR_TRAP_COUNT,
        "cell_size_px": CELL_SIZE_PX,
        "default_city_color": DEFAULT_CITY_COLOR,
        "default_trap_color": DEFAULT_TRAP_COLOR,
        "statuses": list(CITY_STATUSES),
        "roles": list(ROLES),
    }
