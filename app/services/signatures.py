"""Signature store: create, list, patch, status transitions and delete.

Every mutation loads the document and signature first (NotFound), then asks the policy
(Forbidden / ExpiredCapability), then validates input (InvalidArgument), and only then
writes. One audit record follows each committed mutation.
"""
from __future__ import annotations

import math
import re

from sqlalchemy.orm import Session

from app.models.document import Document
from app.models.signature import (
    DEFAULT_COLOR,
    DEFAULT_FONT,
    DEFAULT_FONT_SIZE,
    DEFAULT_TEXT,
    Signature,
    SignatureStatus,
)
from app.schemas.signatures import DragDelta, ScreenPlacement
from app.services import audit_log
from app.services.coordinates import ContainerRect, apply_drag, screen_to_document
from app.services.errors import InvalidArgument, NotFound
from app.services.policy import Actor, Operation, actor_user_id, authorize

_HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")

# Undo goes back through pending; signed and rejected never swap directly
ALLOWED_TRANSITIONS = {
    SignatureStatus.pending: {SignatureStatus.signed, SignatureStatus.rejected},
    SignatureStatus.signed: {SignatureStatus.pending},
    SignatureStatus.rejected: {SignatureStatus.pending},
}

EDITABLE_FIELDS = ("x", "y", "text", "font", "font_size", "color")


def _coordinate(value, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise InvalidArgument(f"{name} must be a number")
    return float(value)


def _page(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgument("Page must be a whole number")
    if value < 1:
        raise InvalidArgument("Page number must be 1 or greater.")
    return value


def _font_size(value) -> float:
    size = _coordinate(value, "font_size")
    if size <= 0:
        raise InvalidArgument("font_size must be greater than zero")
    return size


def _color(value: str) -> str:
    if not isinstance(value, str) or not _HEX_COLOR.match(value.strip()):
        raise InvalidArgument("Color must be a hex value like #1a2b3c")
    return value.strip().lower()


def _text(value: str) -> str:
    text = (value or "").strip()
    if not text:
        raise InvalidArgument("Signature text cannot be empty")
    return text


def _font(value: str) -> str:
    font = (value or "").strip()
    if not font:
        raise InvalidArgument("Font cannot be empty")
    return font


_VALIDATORS = {
    "x": lambda v: _coordinate(v, "x"),
    "y": lambda v: _coordinate(v, "y"),
    "text": _text,
    "font": _font,
    "font_size": _font_size,
    "color": _color,
}


def get_document(db: Session, document_id: int) -> Document:
    document = db.get(Document, document_id)
    if not document:
        raise NotFound("Document not found.")
    return document


def get_signature(db: Session, signature_id: int) -> Signature:
    signature = db.get(Signature, signature_id)
    if not signature:
        raise NotFound("Signature not found.")
    return signature


def create_signature(
    db: Session,
    document_id: int,
    actor: Actor,
    *,
    page: int,
    x: float | None = None,
    y: float | None = None,
    screen: ScreenPlacement | None = None,
    text: str | None = None,
    font: str | None = None,
    font_size: float | None = None,
    color: str | None = None,
    ip_address: str | None = None,
) -> Signature:
    document = get_document(db, document_id)
    authorize(actor, Operation.create, document)

    if screen is not None:
        x, y = screen_to_document(
            screen.pointer_x,
            screen.pointer_y,
            ContainerRect(left=screen.container_left, top=screen.container_top),
            screen.rendered_page_width,
            screen.intrinsic_page_width,
        )

    signature = Signature(
        document_id=document.id,
        user_id=actor_user_id(actor),
        page=_page(page),
        x=_coordinate(x, "x"),
        y=_coordinate(y, "y"),
        text=_text(text) if text else DEFAULT_TEXT,
        font=_font(font) if font else DEFAULT_FONT,
        font_size=_font_size(font_size) if font_size is not None else DEFAULT_FONT_SIZE,
        color=_color(color) if color else DEFAULT_COLOR,
        status=SignatureStatus.pending,
        rejection_reason=None,
    )
    db.add(signature)
    db.commit()
    db.refresh(signature)

    audit_log.record(
        db,
        document.id,
        actor_user_id(actor),
        audit_log.ACTION_SIGNATURE_CREATED,
        {"signature_id": signature.id, "page": signature.page},
        ip_address=ip_address,
    )
    return signature


def list_signatures(db: Session, document_id: int, actor: Actor) -> list[Signature]:
    document = get_document(db, document_id)
    authorize(actor, Operation.read, document)
    return (
        db.query(Signature)
        .filter(Signature.document_id == document.id)
        .order_by(Signature.id.asc())
        .all()
    )


def list_signed(db: Session, document_id: int) -> list[Signature]:
    """Snapshot of marks eligible for compositing. No authorization: callers check READ first."""
    return (
        db.query(Signature)
        .filter(Signature.document_id == document_id, Signature.status == SignatureStatus.signed)
        .order_by(Signature.id.asc())
        .all()
    )


def update_signature(
    db: Session,
    signature_id: int,
    actor: Actor,
    changes: dict,
    drag: DragDelta | None = None,
    *,
    ip_address: str | None = None,
) -> Signature:
    """Apply only the supplied fields. Absent and null fields leave stored values untouched."""
    signature = get_signature(db, signature_id)
    document = get_document(db, signature.document_id)
    authorize(actor, Operation.update, document, signature)

    if signature.status != SignatureStatus.pending:
        raise InvalidArgument("Only pending signatures can be edited. Revert to pending first.")

    unknown = set(changes) - set(EDITABLE_FIELDS)
    if unknown:
        raise InvalidArgument(f"Unsupported fields: {', '.join(sorted(unknown))}")

    validated = {name: _VALIDATORS[name](value) for name, value in changes.items() if value is not None}

    if drag is not None:
        if "x" in validated or "y" in validated:
            raise InvalidArgument("Send either an absolute position or a drag, not both")
        validated["x"], validated["y"] = apply_drag(
            signature.x,
            signature.y,
            drag.delta_x,
            drag.delta_y,
            drag.rendered_page_width,
            drag.intrinsic_page_width,
        )

    if not validated:
        return signature

    for name, value in validated.items():
        setattr(signature, name, value)
    db.commit()
    db.refresh(signature)

    audit_log.record(
        db,
        document.id,
        actor_user_id(actor),
        audit_log.ACTION_SIGNATURE_UPDATED,
        {"signature_id": signature.id, "fields": sorted(validated)},
        ip_address=ip_address,
    )
    return signature


def set_status(
    db: Session,
    signature_id: int,
    actor: Actor,
    new_status: SignatureStatus,
    reason: str | None = None,
    *,
    ip_address: str | None = None,
) -> Signature:
    signature = get_signature(db, signature_id)
    document = get_document(db, signature.document_id)
    authorize(actor, Operation.set_status, document, signature)

    try:
        new_status = SignatureStatus(new_status)
    except ValueError:
        raise InvalidArgument("Status must be one of pending, signed, rejected")

    reason_clean = (reason or "").strip()
    if new_status == SignatureStatus.rejected and not reason_clean:
        raise InvalidArgument("A rejection reason is required.")

    old_status = signature.status
    if new_status not in ALLOWED_TRANSITIONS[old_status]:
        raise InvalidArgument(f"Cannot change a {old_status.value} signature to {new_status.value}.")

    signature.status = new_status
    signature.rejection_reason = reason_clean if new_status == SignatureStatus.rejected else None
    db.commit()
    db.refresh(signature)

    audit_log.record(
        db,
        document.id,
        actor_user_id(actor),
        audit_log.ACTION_SIGNATURE_STATUS_CHANGED,
        {"signature_id": signature.id, "old_status": old_status, "new_status": new_status},
        ip_address=ip_address,
    )
    return signature


def delete_signature(db: Session, signature_id: int, actor: Actor, *, ip_address: str | None = None) -> None:
    signature = get_signature(db, signature_id)
    document = get_document(db, signature.document_id)
    authorize(actor, Operation.delete, document, signature)

    db.delete(signature)
    db.commit()

    audit_log.record(
        db,
        document.id,
        actor_user_id(actor),
        audit_log.ACTION_SIGNATURE_DELETED,
        {"signature_id": signature_id},
        ip_address=ip_address,
    )
