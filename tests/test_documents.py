import os
from datetime import timedelta

import pytest

from app.models.audit_log import AuditLog
from app.models.document import Document, DocumentShare
from app.models.signature import Signature
from app.services import audit_log, documents, sharing, signatures
from app.services.capabilities import utcnow
from app.services.errors import Forbidden, InvalidArgument, NotFound
from app.services.policy import UserActor

MAX = 10 * 1024 * 1024


@pytest.mark.parametrize(
    "contents, filename, content_type",
    [
        (b"%PDF-1.4", "a.pdf", "text/plain"),
        (b"%PDF-1.4", "a.txt", "application/pdf"),
        (b"", "a.pdf", "application/pdf"),
        (b"this is not a pdf at all", "a.pdf", "application/pdf"),
    ],
)
def test_upload_validation(contents, filename, content_type):
    with pytest.raises(InvalidArgument):
        documents.validate_pdf_upload(contents, filename, content_type, MAX)


def test_upload_size_limit(pdf_bytes):
    with pytest.raises(InvalidArgument):
        documents.validate_pdf_upload(pdf_bytes, "a.pdf", "application/pdf", len(pdf_bytes) - 1)
    assert documents.validate_pdf_upload(pdf_bytes, "a.pdf", "application/pdf", len(pdf_bytes)) == 2


def test_upload_stores_blob_and_audits(db, owner, storage, pdf_bytes):
    doc = documents.upload_document(db, owner.id, pdf_bytes, "lease.pdf", "application/pdf", storage, MAX)
    assert doc.filename == "lease.pdf"
    assert doc.file_size == len(pdf_bytes)
    assert storage.get(doc.storage_locator) == pdf_bytes
    entry = db.query(AuditLog).filter(AuditLog.document_id == doc.id).one()
    assert entry.action == "uploaded"
    assert entry.meta["pages"] == 2


def test_list_owned_newest_first(db, owner, storage, pdf_bytes):
    first = documents.upload_document(db, owner.id, pdf_bytes, "a.pdf", "application/pdf", storage, MAX)
    second = documents.upload_document(db, owner.id, pdf_bytes, "b.pdf", "application/pdf", storage, MAX)
    assert [d.id for d in documents.list_owned(db, owner.id)] == [second.id, first.id]


def test_stranger_cannot_open(db, document, stranger, storage):
    with pytest.raises(Forbidden):
        documents.open_document(db, document.id, UserActor(stranger.id))
    with pytest.raises(Forbidden):
        documents.read_original(db, document.id, UserActor(stranger.id), storage)


def test_delete_removes_signatures_shares_and_blob(db, document, owner, signer, storage, notifier):
    actor = UserActor(owner.id)
    signatures.create_signature(db, document.id, actor, page=1, x=1, y=1)
    sharing.share_with_user(db, document.id, actor, signer.email, notifier)
    path = os.path.join(storage.root, document.storage_locator)
    doc_id = document.id

    documents.delete_document(db, doc_id, actor, storage)

    assert db.get(Document, doc_id) is None
    assert db.query(Signature).filter(Signature.document_id == doc_id).count() == 0
    assert db.query(DocumentShare).filter(DocumentShare.document_id == doc_id).count() == 0
    assert not os.path.exists(path)
    entry = db.query(AuditLog).filter(AuditLog.action == "document_deleted").one()
    assert entry.meta == {"document_id": doc_id, "filename": "contract.pdf"}


def test_delete_tolerates_missing_blob(db, document, owner, storage):
    storage.delete(document.storage_locator)
    documents.delete_document(db, document.id, UserActor(owner.id), storage)
    with pytest.raises(NotFound):
        documents.delete_document(db, document.id, UserActor(owner.id), storage)


def test_only_owner_deletes(db, document, stranger, storage):
    with pytest.raises(Forbidden):
        documents.delete_document(db, document.id, UserActor(stranger.id), storage)
    assert storage.get(document.storage_locator)


def test_audit_trail_clear_then_purge(db, document, owner):
    documents.open_document(db, document.id, UserActor(owner.id))
    assert [e.action for e in audit_log.list_for_document(db, document.id)] == ["viewed", "uploaded"]

    now = utcnow()
    deletion_at = audit_log.mark_trail_for_deletion(db, document.id, now=now)
    assert deletion_at == now + timedelta(days=15)
    assert audit_log.list_for_document(db, document.id) == []

    assert audit_log.purge_marked(db, now=now + timedelta(days=14)) == 0
    assert audit_log.purge_marked(db, now=now + timedelta(days=15, seconds=1)) == 2
    assert db.query(AuditLog).count() == 0


def test_audit_failure_does_not_break_the_operation(db, document, owner, monkeypatch):
    from sqlalchemy.exc import OperationalError

    def broken_commit():
        raise OperationalError("INSERT", {}, Exception("disk full"))

    actor = UserActor(owner.id)
    sig = signatures.create_signature(db, document.id, actor, page=1, x=1, y=1)
    monkeypatch.setattr(db, "commit", broken_commit)
    assert audit_log.record(db, document.id, owner.id, "viewed") is None
    monkeypatch.undo()
    assert db.get(Signature, sig.id) is not None
