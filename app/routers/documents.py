"""Documents: upload, list, view, download, share, delete."""
from fastapi import APIRouter, Depends, File, Request, UploadFile
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.config import get_settings
from app.database import get_db
from app.dependencies import client_ip, get_actor, get_current_user
from app.models.user import User
from app.schemas.documents import (
    DocumentDetailResponse,
    DocumentResponse,
    ShareLinkRequest,
    ShareLinkResponse,
    ShareUserRequest,
    ShareUserResponse,
)
from app.services import compositor, documents, sharing
from app.services.notifications import get_notifier
from app.services.policy import Actor, UserActor, is_owner
from app.services.storage import get_storage

router = APIRouter(prefix="/documents", tags=["documents"])


def _pdf_response(content: bytes, filename: str, disposition: str) -> Response:
    safe_name = filename.replace('"', "")
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'{disposition}; filename="{safe_name}"'},
    )


@router.post("/upload", response_model=DocumentResponse, status_code=201)
async def upload_document(
    req: Request,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    storage=Depends(get_storage),
):
    contents = await file.read()
    return documents.upload_document(
        db,
        current_user.id,
        contents,
        file.filename or "",
        file.content_type,
        storage,
        get_settings().max_upload_bytes,
        ip_address=client_ip(req),
    )


@router.get("", response_model=list[DocumentResponse])
def list_my_documents(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return documents.list_owned(db, current_user.id)


@router.get("/shared", response_model=list[DocumentResponse])
def list_shared_with_me(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return sharing.list_shared_with(db, current_user.id)


@router.get("/{document_id}", response_model=DocumentDetailResponse)
def get_document(
    document_id: int,
    req: Request,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    doc = documents.open_document(db, document_id, actor, ip_address=client_ip(req))
    owner = is_owner(actor, doc)
    return DocumentDetailResponse(
        id=doc.id,
        filename=doc.filename,
        file_size=doc.file_size,
        owner_id=doc.owner_id,
        created_at=doc.created_at,
        is_owner=owner,
        shared_with=[s.user_id for s in doc.shares] if owner else [],
        share_link_expires_at=doc.share_token_expires_at if owner else None,
    )


@router.get("/{document_id}/file")
def get_original_file(
    document_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    storage=Depends(get_storage),
):
    """The unmodified upload, for the viewer to render."""
    doc, content = documents.read_original(db, document_id, actor, storage)
    return _pdf_response(content, doc.filename, "inline")


@router.get("/{document_id}/download")
def download_signed_document(
    document_id: int,
    req: Request,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    storage=Depends(get_storage),
):
    """PDF with every signed mark burned in. Pending and rejected marks are left out."""
    filename, content = compositor.export_document(db, document_id, actor, storage, ip_address=client_ip(req))
    return _pdf_response(content, filename, "attachment")


@router.post("/{document_id}/share", response_model=ShareUserResponse)
def share_with_user(
    document_id: int,
    data: ShareUserRequest,
    req: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    notifier=Depends(get_notifier),
):
    share, notified = sharing.share_with_user(
        db, document_id, UserActor(current_user.id), str(data.email), notifier, ip_address=client_ip(req)
    )
    return ShareUserResponse(document_id=share.document_id, user_id=share.user_id, notified=notified)


@router.delete("/{document_id}/share/{user_id}", status_code=204)
def unshare_with_user(
    document_id: int,
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    sharing.remove_share(db, document_id, UserActor(current_user.id), user_id)
    return Response(status_code=204)


@router.post("/{document_id}/share-link", response_model=ShareLinkResponse)
def create_share_link(
    document_id: int,
    req: Request,
    data: ShareLinkRequest | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    notifier=Depends(get_notifier),
):
    """New signing link valid for 24 hours. Any earlier link stops working immediately."""
    link = sharing.issue_share_link(
        db,
        document_id,
        UserActor(current_user.id),
        notifier,
        recipient_email=str(data.email) if data and data.email else None,
        ip_address=client_ip(req),
    )
    return ShareLinkResponse(token=link.token, sign_url=link.sign_url, expires_at=link.expires_at, notified=link.notified)


@router.delete("/{document_id}/share-link", status_code=204)
def revoke_share_link(
    document_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    sharing.revoke_share_link(db, document_id, UserActor(current_user.id))
    return Response(status_code=204)


@router.delete("/{document_id}", status_code=204)
def delete_document(
    document_id: int,
    req: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    storage=Depends(get_storage),
):
    documents.delete_document(db, document_id, UserActor(current_user.id), storage, ip_address=client_ip(req))
    return Response(status_code=204)
