"""Auth service (JWT, password hashing)."""
from datetime import datetime, timedelta, timezone
import bcrypt
import jwt
from app.config import get_settings

ACCESS_TOKEN_TYPE = "access"


def _pwd_bytes(password: str, max_len: int = 72) -> bytes:
    return password.encode("utf-8")[:max_len]


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(_pwd_bytes(plain), hashed.encode("utf-8"))
    except ValueError:
        return False


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(_pwd_bytes(password), bcrypt.gensalt()).decode("utf-8")


def create_access_token(user_id: int, email: str) -> str:
    settings = get_settings()
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_access_token_expire_minutes)
    # PyJWT expects "sub" to be a string
    payload = {"sub": str(user_id), "email": email, "typ": ACCESS_TOKEN_TYPE, "exp": expire}
    raw = jwt.encode(
        payload,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return raw if isinstance(raw, str) else raw.decode("utf-8")


def decode_token_with_error(token: str) -> tuple[dict | None, str | None]:
    """Decode JWT; returns (payload, error_message)."""
    if not token or not isinstance(token, str):
        return None, "empty token"
    settings = get_settings()
    token = token.strip()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
        return payload, None
    except jwt.ExpiredSignatureError as e:
        return None, str(e)
    except jwt.PyJWTError as e:
        return None, str(e)
