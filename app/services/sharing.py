"""Sharing gate: grant-list shares with registered users and single-slot share links."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.models.document import Document, DocumentShare
from app.models.user import User
from app.services import audit_log, users
from app.services.capabilities import decode_share_token, mint_share_token, validate_share_token
from app.services.errors import Conflict, DependencyFailure, ExpiredCapability, InvalidArgument, NotFound
from app.services.notifications import document_shared_message, share_invitation_message
from app.services.policy import Actor, Operation, actor_user_id, authorize
from app.services.signatures import get_document

logger = logging.getLogger("uvicorn.error")


@dataclass(frozen=True)
class ShareLink:
    token: str
    expires_at: datetime
    sign_url: str
    notified: bool


def _notify(notifier, recipient: str, subject: str, body: str) -> bool:
    """Notification after a committed share. Failure is logged, never rolled back."""
    try:
        notifier.send(recipient, subject, body)
        return True
    except DependencyFailure:
        logger.warning("Share notification to %s failed; share stays in place", recipient)
        return False


def share_with_user(
    db: Session,
    document_id: int,
    actor: Actor,
    email: str,
    notifier,
    *,
    ip_address: str | None = None,
) -> tuple[DocumentShare, bool]:
    """Add a registered user to the grant list. Returns (share, notified)."""
    document = get_document(db, document_id)
    authorize(actor, Operation.manage, document)

    target = users.find_by_email(db, email)
    if not target:
        raise NotFound("No user with that email address.")
    if target.id == document.owner_id:
        raise InvalidArgument("You cannot share a document with yourself.")
    if any(share.user_id == target.id for share in document.shares):
        raise Conflict("Document is already shared with this user.")

    share = DocumentShare(document_id=document.id, user_id=target.id)
    db.add(share)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Document is already shared with this user.")
    db.refresh(share)

    audit_log.record(
        db,
        document.id,
        actor_user_id(actor),
        audit_log.ACTION_SHARED,
        {"mechanism": "grant", "shared_with_user_id": target.id},
        ip_address=ip_address,
    )

    owner: User | None = users.find_by_id(db, document.owner_id)
    owner_name = (owner.full_name if owner else None) or "A user"
    subject, body = document_shared_message(document.filename, owner_name, get_settings().frontend_url)
    notified = _notify(notifier, target.email, subject, body)
    return share, notified


def issue_share_link(
    db: Session,
    document_id: int,
    actor: Actor,
    notifier=None,
    recipient_email: str | None = None,
    *,
    now: datetime | None = None,
    ip_address: str | None = None,
) -> ShareLink:
    """Mint a new link, replacing (and so invalidating) any previous one."""
    document = get_document(db, document_id)
    authorize(actor, Operation.manage, document, now=now)

    token, expires_at = mint_share_token(document.id, now=now)
    document.share_token = token
    document.share_token_expires_at = expires_at
    db.commit()

    settings = get_settings()
    sign_url = f"{settings.frontend_url}/sign/{token}"

    audit_log.record(
        db,
        document.id,
        actor_user_id(actor),
        audit_log.ACTION_SHARED,
        {"mechanism": "link", "recipient": recipient_email, "expires_at": expires_at.isoformat()},
        ip_address=ip_address,
    )

    notified = False
    if recipient_email and notifier is not None:
        subject, body = share_invitation_message(document.filename, sign_url, settings.share_token_expire_hours)
        notified = _notify(notifier, recipient_email, subject, body)
    return ShareLink(token=token, expires_at=expires_at, sign_url=sign_url, notified=notified)


def revoke_share_link(db: Session, document_id: int, actor: Actor) -> None:
    document = get_document(db, document_id)
    authorize(actor, Operation.manage, document)
    document.share_token = None
    document.share_token_expires_at = None
    db.commit()


def remove_share(db: Session, document_id: int, actor: Actor, user_id: int) -> None:
    document = get_document(db, document_id)
    authorize(actor, Operation.manage, document)
    share = (
        db.query(DocumentShare)
        .filter(DocumentShare.document_id == document.id, DocumentShare.user_id == user_id)
        .first()
    )
    if not share:
        raise NotFound("Document is not shared with this user.")
    db.delete(share)
    db.commit()


def resolve_share_token(db: Session, token: str, now: datetime | None = None) -> Document:
    """Document a link points at. Any invalid, expired or superseded link is ExpiredCapability."""
    claims = decode_share_token(token, now=now)
    if not claims:
        raise ExpiredCapability()
    document = db.get(Document, claims["doc"])
    if not document or not validate_share_token(document, token, now=now):
        raise ExpiredCapability()
    return document


def list_shared_with(db: Session, user_id: int) -> list[Document]:
    return (
        db.query(Document)
        .join(DocumentShare, DocumentShare.document_id == Document.id)
        .filter(DocumentShare.user_id == user_id)
        .order_by(Document.created_at.desc(), Document.id.desc())
        .all()
    )
