"""
Alliance Map FastAPI Application

Main entry point for the Alliance Map application, serving the REST API
and the shared city / bear trap coordination board.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2025-12-17
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from database import init_db
from logic.config import BASE_DIR, CORS_ORIGIN, DB_PATH, LOG_LEVEL
from server.audit import router as audit_router
from server.auth import router as auth_router
from server.cities import router as cities_router
from server.export import router as export_router
from server.levels import router as levels_router
from server.routes import router as routes_router
from server.sync import router as sync_router
from server.traps import router as traps_router
from server.users import router as users_router

logging.basicConfig(
    level=LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "same-origin",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Database ready at %s", DB_PATH)
    yield


app = FastAPI(title="Alliance Map", lifespan=lifespan)

app.add_middleware(GZipMiddleware, minimum_size=1000)
if CORS_ORIGIN:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[CORS_ORIGIN],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response


# ============================================================
# Error Handling
# ============================================================


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    """Unique constraint violations that slipped past validation."""
    logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    return JSONResponse(status_code=409, content={"detail": "Conflict with existing data"})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    """Unexpected store failures."""
    logger.error(
        "Database error on %s %s", request.method, request.url.path, exc_info=exc
    )
    return JSONResponse(status_code=500, content={"detail": "Database error"})


# Include all routers
app.include_router(auth_router)
app.include_router(sync_router)
app.include_router(cities_router)
app.include_router(traps_router)
app.include_router(levels_router)
app.include_router(users_router)
app.include_router(audit_router)
app.include_router(export_router)
app.include_router(routes_router)

# ============================================================
# Static Files
# ============================================================

app.mount("/static", StaticFiles(directory=os.path.join(BASE_DIR, "static")), name="static")
