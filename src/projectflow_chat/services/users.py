"""CRUD-style helpers for the user directory."""
from __future__ import annotations

from typing import Sequence

from sqlalchemy.orm import Session

from projectflow_chat.models.user import ROLE_ADMIN, ROLE_USER, User

__all__ = [
    "get_user_by_email",
    "get_users",
    "list_user_ids_except",
    "create_user",
    "set_role",
]


def get_user_by_email(db: Session, email: str) -> User | None:
    """Return the user registered under ``email`` (case-insensitive)."""
    return db.query(User).filter(User.email == email.strip().lower()).first()


def get_users(db: Session, skip: int = 0, limit: int = 100) -> Sequence[User]:
    """Return users with simple offset-based pagination."""
    return db.query(User).order_by(User.id).offset(skip).limit(limit).all()


def list_user_ids_except(db: Session, user_id: int) -> list[int]:
    """Return the ids of every user in the directory other than ``user_id``."""
    rows = db.query(User.id).filter(User.id != user_id).order_by(User.id).all()
    return [row.id for row in rows]


def create_user(db: Session, name: str, email: str, *, admin: bool = False) -> User:
    """Persist a new directory entry."""
    db_user = User(
        name=name.strip(),
        email=email.strip().lower(),
        role=ROLE_ADMIN if admin else ROLE_USER,
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def set_role(db: Session, db_user: User, role: str) -> User:
    """Change a user's role."""
    if role not in (ROLE_ADMIN, ROLE_USER):
        raise ValueError(f"Unknown role: {role}")
    db_user.role = role
    db.commit()
    db.refresh(db_user)
    return db_user
