"""Document + sharing schemas."""
from datetime import datetime
from pydantic import BaseModel, EmailStr

from app.schemas.signatures import SignatureResponse


class DocumentResponse(BaseModel):
    id: int
    filename: str
    file_size: int
    owner_id: int
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class DocumentDetailResponse(DocumentResponse):
    is_owner: bool = False
    shared_with: list[int] = []
    share_link_expires_at: datetime | None = None


class ShareUserRequest(BaseModel):
    email: EmailStr


class ShareUserResponse(BaseModel):
    document_id: int
    user_id: int
    notified: bool


class ShareLinkRequest(BaseModel):
    # Optional: email the link to this address
    email: EmailStr | None = None


class ShareLinkResponse(BaseModel):
    token: str
    sign_url: str
    expires_at: datetime
    notified: bool = False


class SigningSessionResponse(BaseModel):
    """What a share-link holder sees when opening the link."""
    document: DocumentResponse
    signatures: list[SignatureResponse]
    expires_at: datetime | None = None
