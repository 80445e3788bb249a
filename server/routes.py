"""
Page routes.

This module serves the HTML pages (map, list, history, users, levels) and
the grid configuration the client renders with. The map page embeds the
current snapshot so the grid draws before the first poll.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2025-12-17
"""

import os

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from database import get_db
from logic.config import BASE_DIR, MANAGER_ROLES, get_grid_config
from server.sync import build_snapshot
from user_context import get_current_user

router = APIRouter()

TEMPLATE_DIR = os.path.join(BASE_DIR, "templates")
templates = Jinja2Templates(directory=TEMPLATE_DIR)


def render_page(request: Request, name: str, user=None, **context):
    """Render a page template with the shared context."""
    return templates.TemplateResponse(
        request,
        name,
        {"user": user.to_dict() if user else None, "grid": get_grid_config(), **context},
    )


def render_gated_page(request: Request, name: str, user, roles):
    """Render a management page, or send the browser back to the map.

    Anonymous visitors and users without one of the roles get a 303 to /map.
    """
    if user is None or user.role not in roles:
        return RedirectResponse(url="/map", status_code=303)
    return render_page(request, name, user)


@router.get("/")
def index():
    return RedirectResponse(url="/map")


@router.get("/api/config")
def get_config():
    """Get the grid constants for the client."""
    return get_grid_config()


@router.get("/map")
def map_page(request: Request, db: Session = Depends(get_db), user=Depends(get_current_user)):
    """Render the grid with the current snapshot embedded."""
    return render_page(request, "map.html", user, snapshot=build_snapshot(db))


@router.get("/list")
def list_page(request: Request, user=Depends(get_current_user)):
    return render_page(request, "list.html", user)


@router.get("/history")
def history_page(request: Request, user=Depends(get_current_user)):
    return render_page(request, "history.html", user)


@router.get("/users")
def users_page(request: Request, user=Depends(get_current_user)):
    return render_gated_page(request, "users.html", user, MANAGER_ROLES)


@router.get("/levels")
def levels_page(request: Request, user=Depends(get_current_user)):
    return render_gated_page(request, "levels.html", user, ("admin",))
