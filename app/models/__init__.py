"""
All SQLAlchemy models. Schema is the source of truth for new DBs.
Base.metadata.create_all() creates every table.
"""
from app.models.user import User
from app.models.document import Document, DocumentShare
from app.models.signature import Signature, SignatureStatus
from app.models.audit_log import AuditLog

__all__ = [
    "User",
    "Document",
    "DocumentShare",
    "Signature",
    "SignatureStatus",
    "AuditLog",
]
