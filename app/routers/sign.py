"""Public entry point for share-link holders (no login)."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.documents import DocumentResponse, SigningSessionResponse
from app.schemas.signatures import SignatureResponse
from app.services.policy import LinkActor
from app.services.sharing import resolve_share_token
from app.services.signatures import list_signatures

router = APIRouter(prefix="/sign", tags=["sign"])


@router.get("/{token}", response_model=SigningSessionResponse)
def open_signing_link(token: str, db: Session = Depends(get_db)):
    """Document and its marks for a share link. Follow-up calls send the token as X-Share-Token."""
    document = resolve_share_token(db, token)
    marks = list_signatures(db, document.id, LinkActor(share_token=token))
    return SigningSessionResponse(
        document=DocumentResponse.model_validate(document),
        signatures=[SignatureResponse.model_validate(m) for m in marks],
        expires_at=document.share_token_expires_at,
    )
