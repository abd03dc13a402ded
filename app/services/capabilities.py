"""Share-link capability tokens.

A token is a signed JWT naming one document. It is only honoured while it is the
token currently stored on that document and the stored expiry is in the future,
so minting a new one invalidates the previous link immediately.
"""
from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone

import jwt

from app.config import get_settings
from app.models.document import Document

SHARE_TOKEN_TYPE = "share"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def mint_share_token(document_id: int, now: datetime | None = None) -> tuple[str, datetime]:
    """Return (token, expires_at) for a new share link."""
    settings = get_settings()
    issued = now or utcnow()
    expires_at = issued + timedelta(hours=settings.share_token_expire_hours)
    payload = {
        "doc": document_id,
        "typ": SHARE_TOKEN_TYPE,
        # Two links minted within the same second must still differ
        "jti": secrets.token_urlsafe(12),
        "iat": int(issued.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    raw = jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
    token = raw if isinstance(raw, str) else raw.decode("utf-8")
    return token, expires_at


def decode_share_token(token: str | None, now: datetime | None = None) -> dict | None:
    """Verify signature, expiry and token type. Returns claims or None."""
    if not token or not isinstance(token, str):
        return None
    settings = get_settings()
    when = now or utcnow()
    try:
        claims = jwt.decode(
            token.strip(),
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"verify_exp": False, "verify_iat": False},
        )
    except jwt.PyJWTError:
        return None
    if claims.get("typ") != SHARE_TOKEN_TYPE:
        return None
    exp = claims.get("exp")
    if not isinstance(exp, (int, float)) or exp <= when.timestamp():
        return None
    if not isinstance(claims.get("doc"), int):
        return None
    return claims


def validate_share_token(document: Document, token: str | None, now: datetime | None = None) -> bool:
    when = now or utcnow()
    claims = decode_share_token(token, now=when)
    if not claims or claims["doc"] != document.id:
        return False
    if not document.share_token or document.share_token != token.strip():
        return False
    expires_at = as_utc(document.share_token_expires_at)
    return expires_at is not None and expires_at > when
