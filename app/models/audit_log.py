"""Append-only audit log of document activity.
Rows are never updated except to mark them for deferred deletion when the owner clears a trail."""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from app.database import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)

    # ON DELETE SET NULL so document deletion does not fail; meta preserves the filename
    document_id = Column(Integer, ForeignKey("documents.id", ondelete="SET NULL"), nullable=True, index=True)

    # uploaded | viewed | downloaded | shared | signature_created | signature_updated |
    # signature_status_changed | signature_deleted | document_deleted
    action = Column(String(32), nullable=False, index=True)

    # Optional structured data (e.g. signature_id, old_status, new_status)
    meta = Column(JSON().with_variant(JSONB, "postgresql"), nullable=True)

    # Who did it; null for anonymous share-link holders
    actor_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    ip_address = Column(String(64), nullable=True)

    # UTC only - server_default
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Set when the owner clears the trail; the cleanup job purges rows past this time
    marked_for_deletion_at = Column(DateTime(timezone=True), nullable=True, index=True)
