#!/usr/bin/env python3
"""Maintenance commands for the Alliance Map database.

Usage:
    python scripts/manage.py init
    python scripts/manage.py set-password <username> <password>
    python scripts/manage.py create-user <username> <password> [--role viewer]
    python scripts/manage.py backup <path>
"""

import argparse
import json
import os
import sys
import uuid

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import City, SessionLocal, Trap, User, init_db  # noqa: E402
from logic.config import DB_PATH, ROLES  # noqa: E402
from logic.security import hash_password  # noqa: E402
from server.export import EXPORT_VERSION  # noqa: E402


def set_password(username: str, password: str) -> bool:
    """Reset a user's password.

    Returns:
        True if the user exists and was updated.
    """
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.username == username).first()
        if user is None:
            return False
        user.password = hash_password(password)
        db.commit()
        return True
    finally:
        db.close()


def create_user(username: str, password: str, role: str = "viewer") -> str:
    """Create a user and return its id.

    Raises:
        ValueError: If the role is unknown or the username is taken.
    """
    if role not in ROLES:
        raise ValueError(f"Unknown role '{role}'")
    db = SessionLocal()
    try:
        if db.query(User).filter(User.username == username).first():
            raise ValueError(f"Username '{username}' already taken")
        user = User(id=str(uuid.uuid4()), username=username, password=hash_password(password), role=role)
        db.add(user)
        db.commit()
        return user.id
    finally:
        db.close()


def backup(path: str) -> dict:
    """Write the export document for the current board to a file.

    Returns:
        The exported document.
    """
    db = SessionLocal()
    try:
        document = {
            "version": EXPORT_VERSION,
            "cities": [c.to_dict() for c in db.query(City).order_by(City.name, City.id).all()],
            "traps": [t.to_dict() for t in db.query(Trap).order_by(Trap.slot).all()],
        }
    finally:
        db.close()
    with open(path, "w", encoding="utf-8") as f:
        json.dump(document, f, indent=2, ensure_ascii=False)
    return document


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Alliance Map maintenance")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init", help="Create or migrate the database and seed defaults")

    p = sub.add_parser("set-password", help="Reset a user's password")
    p.add_argument("username")
    p.add_argument("password")

    p = sub.add_parser("create-user", help="Create a user")
    p.add_argument("username")
    p.add_argument("password")
    p.add_argument("--role", default="viewer", choices=ROLES)

    p = sub.add_parser("backup", help="Export cities and traps to a JSON file")
    p.add_argument("path")

    args = parser.parse_args(argv)
    init_db()

    if args.command == "init":
        print(f"Database ready at {DB_PATH}")
    elif args.command == "set-password":
        if not set_password(args.username, args.password):
            print(f"Error: user '{args.username}' not found")
            return 1
        print(f"Password updated for {args.username}")
    elif args.command == "create-user":
        try:
            user_id = create_user(args.username, args.password, args.role)
        except ValueError as e:
            print(f"Error: {e}")
            return 1
        print(f"Created {args.role} {args.username} ({user_id})")
    elif args.command == "backup":
        document = backup(args.path)
        print(f"Wrote {len(document['cities'])} cities and {len(document['traps'])} traps to {args.path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
