"""Database setup and models.

This module provides the database connection, ORM models, and utilities
for cities, bear traps, users, level colours and the audit log, using
SQLAlchemy with SQLite.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    Float,
    Integer,
    String,
    Text,
    create_engine,
    inspect,
    text,
)
from sqlalchemy.orm import declarative_base, sessionmaker

from logic.config import (
    ADMIN_PASSWORD,
    ADMIN_USERNAME,
    DATABASE_URL,
    DEFAULT_CITY_COLOR,
    DEFAULT_LEVEL_COLORS,
    DEFAULT_TRAP_COLOR,
)
from logic.security import hash_password

logger = logging.getLogger(__name__)

# Database setup
engine = create_engine(DATABASE_URL, connect_args={"check_same_thread": False})
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the way SQLite stores it."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class City(Base):
    """A member city placed on the grid.

    Attributes:
        id: Opaque string identifier chosen by the client.
        name: Member name shown on the map.
        level: Optional member level, used to pick a default colour.
        status: Either "occupied" or "reserved".
        x: Tile X coordinate.
        y: Tile Y coordinate.
        px: Optional absolute pixel X for free placement.
        py: Optional absolute pixel Y for free placement.
        notes: Free text notes.
        color: Hex colour of the marker.
    """

    __tablename__ = "cities"

    id = Column(String(100), primary_key=True)
    name = Column(String(100), nullable=False, index=True)
    level = Column(Integer, nullable=True, index=True)
    status = Column(String(20), nullable=False, default="occupied")
    x = Column(Integer, nullable=False)
    y = Column(Integer, nullable=False)
    px = Column(Float, nullable=True)
    py = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)
    color = Column(String(7), nullable=True, default=DEFAULT_CITY_COLOR)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "level": self.level,
            "status": self.status,
            "x": self.x,
            "y": self.y,
            "px": self.px,
            "py": self.py,
            "notes": self.notes,
            "color": self.color,
        }


class Trap(Base):
    """A bear trap occupying a square footprint whose top-left tile is (x, y)."""

    __tablename__ = "traps"

    id = Column(String(100), primary_key=True)
    slot = Column(Integer, nullable=False, unique=True)
    x = Column(Integer, nullable=False)
    y = Column(Integer, nullable=False)
    color = Column(String(7), nullable=True, default=DEFAULT_TRAP_COLOR)
    notes = Column(Text, nullable=True)

    def to_dict(self):
        return {
            "id": self.id,
            "slot": self.slot,
            "x": self.x,
            "y": self.y,
            "color": self.color,
            "notes": self.notes,
        }


class User(Base):
    """An account able to log in. The role gates mutation endpoints."""

    __tablename__ = "users"

    id = Column(String(100), primary_key=True)
    username = Column(String(50), nullable=False, unique=True, index=True)
    password = Column(String(255), nullable=True)
    role = Column(String(20), nullable=False)

    def to_dict(self):
        """Public representation; never includes the password hash."""
        return {"id": self.id, "username": self.username, "role": self.role}


class LevelColor(Base):
    """Default marker colour for cities of a given level."""

    __tablename__ = "level_colors"

    level = Column(Integer, primary_key=True)
    color = Column(String(7), nullable=False)

    def to_dict(self):
        return {"level": self.level, "color": self.color}


class AuditLog(Base):
    """Audit log model for tracking all changes to entities.

    Attributes:
        id: Primary key auto-incrementing ID.
        entity: Table the change applies to (cities, traps, users, level_colors).
        action: Type of action (create, update, delete, import).
        entity_id: ID of the specific entity that was changed.
        user: Username of the user who made the change.
        details: Human-readable description of the change.
        timestamp: When the change occurred.
    """

    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    entity = Column(String(50), nullable=False, index=True)
    action = Column(String(50), nullable=False, index=True)
    entity_id = Column(String(100), nullable=True, index=True)
    user = Column(String(100), nullable=True, index=True)
    details = Column(Text, nullable=True)
    timestamp = Column(DateTime, default=utcnow, nullable=False, index=True)

    def to_dict(self):
        """Convert audit log entry to dictionary.

        Returns:
            Dictionary representation of the audit log entry.
        """
        return {
            "id": self.id,
            "entity": self.entity,
            "action": self.action,
            "entity_id": self.entity_id,
            "user": self.user,
            "details": self.details,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }


# Columns added after the first release, per table: (name, DDL type)
MIGRATED_COLUMNS = {
    "users": [("password", "VARCHAR(255)")],
    "cities": [("px", "FLOAT"), ("py", "FLOAT")],
    "audit_logs": [("user", "VARCHAR(100)"), ("details", "TEXT")],
}


def get_db():
    """Dependency for getting database session.

    Yields:
        Database session that will be closed after use.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def migrate_schema(bind=None):
    """Add columns missing from databases created by older releases.

    Args:
        bind: Engine to migrate. Defaults to the application engine.

    Returns:
        List of "table.column" names that were added.
    """
    bind = bind or engine
    inspector = inspect(bind)
    existing_tables = set(inspector.get_table_names())
    added = []

    with bind.begin() as conn:
        for table, columns in MIGRATED_COLUMNS.items():
            if table not in existing_tables:
                continue
            present = {c["name"] for c in inspector.get_columns(table)}
            for name, ddl in columns:
                if name in present:
                    continue
                conn.execute(text(f'ALTER TABLE {table} ADD COLUMN "{name}" {ddl}'))
                added.append(f"{table}.{name}")

    for column in added:
        logger.info("Added missing column %s", column)
    return added


def seed_defaults(bind=None):
    """Insert default level colours and the admin account when absent."""
    Session = sessionmaker(bind=bind or engine)
    db = Session()
    try:
        known_levels = {row.level for row in db.query(LevelColor).all()}
        for level, color in DEFAULT_LEVEL_COLORS.items():
            if level not in known_levels:
                db.add(LevelColor(level=level, color=color))

        has_admin = db.query(User).filter(User.role == "admin").first() is not None
        if not has_admin:
            existing = db.query(User).filter(User.username == ADMIN_USERNAME).first()
            if existing:
                existing.role = "admin"
                if not existing.password:
                    existing.password = hash_password(ADMIN_PASSWORD)
            else:
                db.add(
                    User(
                        id="admin",
                        username=ADMIN_USERNAME,
                        password=hash_password(ADMIN_PASSWORD),
                        role="admin",
                    )
                )
            logger.info("Seeded admin account '%s'", ADMIN_USERNAME)
        db.commit()
    finally:
        db.close()


def init_db(bind=None):
    """Initialize the database: create tables, migrate old ones, seed defaults."""
    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    migrate_schema(bind)
    seed_defaults(bind)


def reset_db(bind=None):
    """Drop every table and initialize a fresh database."""
    bind = bind or engine
    Base.metadata.drop_all(bind=bind)
    init_db(bind)
