"""User directory lookups. Unknown users are a normal None result, not an exception."""
from __future__ import annotations

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.user import User


def find_by_id(db: Session, user_id: int | None) -> User | None:
    if user_id is None:
        return None
    return db.get(User, user_id)


def find_by_email(db: Session, email: str | None) -> User | None:
    email_clean = (email or "").strip().lower()
    if not email_clean:
        return None
    return db.query(User).filter(func.lower(User.email) == email_clean).first()


def find_by_login(db: Session, login: str | None) -> User | None:
    """Login accepts either the email address or the username."""
    value = (login or "").strip()
    if not value:
        return None
    if "@" in value:
        return find_by_email(db, value)
    return db.query(User).filter(User.username == value).first()
