"""Per-document audit trail (owner only)."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.audit import AuditClearResponse, AuditLogResponse
from app.services import audit_log
from app.services.policy import Operation, UserActor, authorize
from app.services.signatures import get_document

router = APIRouter(prefix="/documents", tags=["audit"])


@router.get("/{document_id}/audit", response_model=list[AuditLogResponse])
def list_audit_trail(
    document_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    document = get_document(db, document_id)
    authorize(UserActor(current_user.id), Operation.manage, document)
    return audit_log.list_for_document(db, document.id)


@router.delete("/{document_id}/audit", response_model=AuditClearResponse)
def clear_audit_trail(
    document_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Hide the trail now; rows are purged once the retention window has passed."""
    document = get_document(db, document_id)
    authorize(UserActor(current_user.id), Operation.manage, document)
    deletion_at = audit_log.mark_trail_for_deletion(db, document.id)
    return AuditClearResponse(
        message="Audit trail cleared. Records will be permanently deleted after the retention period.",
        deletion_at=deletion_at,
    )
