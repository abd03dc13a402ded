"""Auth schemas."""
import re
from datetime import datetime
from pydantic import BaseModel, EmailStr, field_validator

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{3,64}$")
PASSWORD_MIN_LENGTH = 6


class UserCreate(BaseModel):
    username: str
    full_name: str
    email: EmailStr
    password: str

    @field_validator("username")
    @classmethod
    def username_valid(cls, v: str) -> str:
        v = (v or "").strip()
        if not USERNAME_PATTERN.match(v):
            raise ValueError("Username must be 3-64 characters: letters, digits, '.', '_' or '-'.")
        return v

    @field_validator("full_name")
    @classmethod
    def name_present(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("Name is required.")
        return v

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str) -> str:
        if len(v or "") < PASSWORD_MIN_LENGTH:
            raise ValueError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long")
        return v


class UserLogin(BaseModel):
    # Email address or username
    login: str
    password: str


class UserResponse(BaseModel):
    id: int
    username: str
    full_name: str
    email: str
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
