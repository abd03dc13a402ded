"""Signature marks: place, list, move/edit, sign/reject, delete."""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import client_ip, get_actor
from app.schemas.signatures import (
    SignatureCreate,
    SignatureResponse,
    SignatureStatusUpdate,
    SignatureUpdate,
)
from app.services import signatures
from app.services.policy import Actor

router = APIRouter(tags=["signatures"])


@router.post("/documents/{document_id}/signatures", response_model=SignatureResponse, status_code=201)
def create_signature(
    document_id: int,
    data: SignatureCreate,
    req: Request,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """Place a pending mark. Position is document space (x, y) or a screen click (screen)."""
    return signatures.create_signature(
        db,
        document_id,
        actor,
        page=data.page,
        x=data.x,
        y=data.y,
        screen=data.screen,
        text=data.text,
        font=data.font,
        font_size=data.font_size,
        color=data.color,
        ip_address=client_ip(req),
    )


@router.get("/documents/{document_id}/signatures", response_model=list[SignatureResponse])
def list_signatures(
    document_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return signatures.list_signatures(db, document_id, actor)


@router.patch("/signatures/{signature_id}", response_model=SignatureResponse)
def update_signature(
    signature_id: int,
    data: SignatureUpdate,
    req: Request,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return signatures.update_signature(
        db, signature_id, actor, data.changes(), data.drag, ip_address=client_ip(req)
    )


@router.put("/signatures/{signature_id}/status", response_model=SignatureResponse)
def set_signature_status(
    signature_id: int,
    data: SignatureStatusUpdate,
    req: Request,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return signatures.set_status(db, signature_id, actor, data.status, data.reason, ip_address=client_ip(req))


@router.delete("/signatures/{signature_id}", status_code=204)
def delete_signature(
    signature_id: int,
    req: Request,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    signatures.delete_signature(db, signature_id, actor, ip_address=client_ip(req))
    return Response(status_code=204)
