"""Shared dependencies: DB session, current user, acting party."""
from fastapi import Depends, Header, HTTPException, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from app.database import get_db
from app.models.user import User
from app.services.auth import ACCESS_TOKEN_TYPE, decode_token_with_error
from app.services.policy import Actor, LinkActor, UserActor

security = HTTPBearer(auto_error=False)

SHARE_TOKEN_HEADER = "X-Share-Token"


def _user_from_credentials(db: Session, credentials: HTTPAuthorizationCredentials | None) -> User:
    if not credentials:
        raise HTTPException(status_code=401, detail="Not authenticated")
    token_str = (credentials.credentials or "").strip()
    payload, _ = decode_token_with_error(token_str)
    if not payload or payload.get("typ") != ACCESS_TOKEN_TYPE:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token")
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return user


def get_current_user(
    db: Session = Depends(get_db),
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> User:
    return _user_from_credentials(db, credentials)


def get_actor(
    db: Session = Depends(get_db),
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    share_token: str | None = Header(None, alias=SHARE_TOKEN_HEADER),
) -> Actor:
    """Authenticated user (optionally also holding a share link), or an anonymous link holder."""
    link = (share_token or "").strip() or None
    if credentials:
        user = _user_from_credentials(db, credentials)
        return UserActor(user_id=user.id, share_token=link)
    if link:
        return LinkActor(share_token=link)
    raise HTTPException(status_code=401, detail="Not authenticated")


def client_ip(req: Request) -> str | None:
    return (req.client.host if req.client else None) or None
