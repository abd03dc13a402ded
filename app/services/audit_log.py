"""Audit recorder: one append-only row per core mutation or download.

Recording never blocks the primary operation. Callers commit their own work first,
so a failed audit write is rolled back on its own and only logged.
"""
from __future__ import annotations

import enum
import logging
from datetime import date, datetime, timedelta
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.models.audit_log import AuditLog
from app.services.capabilities import utcnow

logger = logging.getLogger("uvicorn.error")

ACTION_UPLOADED = "uploaded"
ACTION_VIEWED = "viewed"
ACTION_DOWNLOADED = "downloaded"
ACTION_SHARED = "shared"
ACTION_SIGNATURE_CREATED = "signature_created"
ACTION_SIGNATURE_UPDATED = "signature_updated"
ACTION_SIGNATURE_STATUS_CHANGED = "signature_status_changed"
ACTION_SIGNATURE_DELETED = "signature_deleted"
ACTION_DOCUMENT_DELETED = "document_deleted"

# Column limits (match model)
_ACTION_LEN = 32
_IP_LEN = 64


def _sanitize_meta_value(v: Any) -> Any:
    """Convert to JSON-serializable value so meta never raises on INSERT."""
    if v is None:
        return None
    if isinstance(v, (str, int, float, bool)):
        return v
    if isinstance(v, (datetime, date)):
        return v.isoformat()
    if isinstance(v, enum.Enum):
        return getattr(v, "value", str(v))
    if isinstance(v, dict):
        return {str(k): _sanitize_meta_value(x) for k, x in v.items()}
    if isinstance(v, (list, tuple)):
        return [_sanitize_meta_value(x) for x in v]
    return str(v)


def _sanitize_meta(meta: dict[str, Any] | None) -> dict[str, Any] | None:
    if meta is None:
        return None
    return {str(k): _sanitize_meta_value(v) for k, v in meta.items()}


def record(
    db: Session,
    document_id: int | None,
    actor_user_id: int | None,
    action: str,
    meta: dict[str, Any] | None = None,
    *,
    ip_address: str | None = None,
) -> AuditLog | None:
    """Append one audit row and commit it. Returns None (and logs) if recording failed."""
    entry = AuditLog(
        document_id=document_id,
        actor_user_id=actor_user_id,
        action=(action or "")[:_ACTION_LEN],
        meta=_sanitize_meta(meta),
        ip_address=(ip_address[:_IP_LEN] if ip_address else None),
    )
    try:
        db.add(entry)
        db.commit()
    except SQLAlchemyError:
        logger.exception("Audit record failed: document_id=%s action=%s", document_id, action)
        db.rollback()
        return None
    return entry


def list_for_document(db: Session, document_id: int) -> list[AuditLog]:
    """Visible trail, newest first. Rows marked for deletion are hidden."""
    return (
        db.query(AuditLog)
        .filter(AuditLog.document_id == document_id, AuditLog.marked_for_deletion_at.is_(None))
        .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .all()
    )


def mark_trail_for_deletion(db: Session, document_id: int, now: datetime | None = None) -> datetime:
    """Hide the trail now; the cleanup job purges it after the retention window."""
    deletion_at = (now or utcnow()) + timedelta(days=get_settings().audit_retention_days)
    db.query(AuditLog).filter(
        AuditLog.document_id == document_id,
        AuditLog.marked_for_deletion_at.is_(None),
    ).update({AuditLog.marked_for_deletion_at: deletion_at}, synchronize_session=False)
    db.commit()
    return deletion_at


def purge_marked(db: Session, now: datetime | None = None) -> int:
    deleted = (
        db.query(AuditLog)
        .filter(
            AuditLog.marked_for_deletion_at.isnot(None),
            AuditLog.marked_for_deletion_at <= (now or utcnow()),
        )
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted
