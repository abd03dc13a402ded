"""Audit trail schemas."""
from datetime import datetime
from typing import Any
from pydantic import BaseModel


class AuditLogResponse(BaseModel):
    id: int
    document_id: int | None = None
    action: str
    actor_user_id: int | None = None
    ip_address: str | None = None
    meta: dict[str, Any] | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class AuditClearResponse(BaseModel):
    message: str
    deletion_at: datetime
