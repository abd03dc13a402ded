from app.schemas.auth import Token, UserCreate, UserLogin, UserResponse
from app.schemas.documents import DocumentResponse, ShareLinkRequest, ShareLinkResponse, ShareUserRequest, ShareUserResponse
from app.schemas.signatures import SignatureCreate, SignatureResponse, SignatureStatusUpdate, SignatureUpdate
from app.schemas.audit import AuditLogResponse
