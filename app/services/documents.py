"""Document upload, lookup and deletion."""
from __future__ import annotations

import io

from PyPDF2 import PdfReader
from PyPDF2.errors import PdfReadError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.audit_log import AuditLog
from app.models.document import Document, DocumentShare
from app.models.signature import Signature
from app.services import audit_log
from app.services.errors import InvalidArgument
from app.services.policy import Actor, Operation, actor_user_id, authorize
from app.services.signatures import get_document

PDF_CONTENT_TYPE = "application/pdf"


def validate_pdf_upload(file_contents: bytes, filename: str, content_type: str | None, max_file_size: int) -> int:
    """Reject non-PDF, empty, oversized or unreadable uploads. Returns the page count."""
    if content_type != PDF_CONTENT_TYPE:
        raise InvalidArgument("Invalid file type. Only PDF files are allowed.")
    if not (filename or "").lower().endswith(".pdf"):
        raise InvalidArgument("The file extension must be .pdf")
    if not file_contents:
        raise InvalidArgument("The uploaded file is empty.")
    if len(file_contents) > max_file_size:
        raise InvalidArgument(f"The maximum file size is {max_file_size // (1024 * 1024)} MB")
    try:
        reader = PdfReader(io.BytesIO(file_contents))
        page_count = len(reader.pages)
    except (PdfReadError, ValueError, KeyError, TypeError) as e:
        raise InvalidArgument("Invalid or damaged PDF") from e
    if page_count < 1:
        raise InvalidArgument("The PDF has no pages")
    return page_count


def upload_document(
    db: Session,
    owner_id: int,
    file_contents: bytes,
    filename: str,
    content_type: str | None,
    storage,
    max_file_size: int,
    *,
    ip_address: str | None = None,
) -> Document:
    page_count = validate_pdf_upload(file_contents, filename, content_type, max_file_size)
    locator = storage.put(file_contents, filename)

    document = Document(
        filename=filename,
        storage_locator=locator,
        file_size=len(file_contents),
        owner_id=owner_id,
    )
    db.add(document)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        # Orphaned blob from a failed insert
        storage.delete(locator)
        raise
    db.refresh(document)

    audit_log.record(
        db,
        document.id,
        owner_id,
        audit_log.ACTION_UPLOADED,
        {"filename": filename, "file_size": len(file_contents), "pages": page_count},
        ip_address=ip_address,
    )
    return document


def list_owned(db: Session, owner_id: int) -> list[Document]:
    return (
        db.query(Document)
        .filter(Document.owner_id == owner_id)
        .order_by(Document.created_at.desc(), Document.id.desc())
        .all()
    )


def open_document(db: Session, document_id: int, actor: Actor, *, ip_address: str | None = None) -> Document:
    """Document metadata for anyone with READ access; records a view."""
    document = get_document(db, document_id)
    authorize(actor, Operation.read, document)
    audit_log.record(db, document.id, actor_user_id(actor), audit_log.ACTION_VIEWED, None, ip_address=ip_address)
    return document


def read_original(db: Session, document_id: int, actor: Actor, storage) -> tuple[Document, bytes]:
    document = get_document(db, document_id)
    authorize(actor, Operation.read, document)
    return document, storage.get(document.storage_locator)


def delete_document(db: Session, document_id: int, actor: Actor, storage, *, ip_address: str | None = None) -> None:
    """Owner only. Signatures, shares and the blob go first; each may already be gone."""
    document = get_document(db, document_id)
    authorize(actor, Operation.manage, document)

    filename = document.filename
    locator = document.storage_locator

    db.query(Signature).filter(Signature.document_id == document.id).delete(synchronize_session=False)
    db.query(DocumentShare).filter(DocumentShare.document_id == document.id).delete(synchronize_session=False)
    # Same as ON DELETE SET NULL, which SQLite does not enforce by default
    db.query(AuditLog).filter(AuditLog.document_id == document.id).update(
        {AuditLog.document_id: None}, synchronize_session=False
    )
    db.commit()

    storage.delete(locator)

    db.expire(document)
    db.delete(document)
    db.commit()

    audit_log.record(
        db,
        None,
        actor_user_id(actor),
        audit_log.ACTION_DOCUMENT_DELETED,
        {"document_id": document_id, "filename": filename},
        ip_address=ip_address,
    )
