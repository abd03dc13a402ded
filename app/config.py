"""Application configuration from environment."""
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings
from functools import lru_cache

# Load .env from project root (parent of app/) so env vars are available everywhere
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=_env_path)


class Settings(BaseSettings):
    app_name: str = "PDF Sign"
    app_env: str = "development"
    debug: bool = True

    database_url: str = "sqlite:///./pdfsign.db"

    jwt_secret_key: str = "jwt-secret-change-me"
    jwt_algorithm: str = "HS256"

    @field_validator("jwt_secret_key")
    @classmethod
    def strip_jwt_secret(cls, v: str) -> str:
        return (v or "").strip()

    jwt_access_token_expire_minutes: int = 60 * 24

    # Share links: one active link per document, replaced on every share action
    share_token_expire_hours: int = 24
    frontend_url: str = "http://localhost:3000"

    upload_dir: str = "uploads"
    max_upload_bytes: int = 10 * 1024 * 1024

    sendgrid_api_key: str = ""
    sendgrid_from_email: str = "noreply@pdfsign.demo"
    sendgrid_from_name: str = "PDF Sign"

    mailgun_api_key: str = ""
    mailgun_domain: str = ""
    mailgun_base_url: str = "https://api.mailgun.net"
    mailgun_from_email: str = "noreply@pdfsign.demo"
    mailgun_from_name: str = "PDF Sign"

    @field_validator("mailgun_api_key", "mailgun_domain", "mailgun_base_url", "mailgun_from_email", mode="before")
    @classmethod
    def strip_mailgun(cls, v: str) -> str:
        return (v or "").strip()

    @field_validator("frontend_url", mode="before")
    @classmethod
    def strip_frontend_url(cls, v: str) -> str:
        return (v or "").strip().rstrip("/")

    audit_retention_days: int = 15
    audit_cleanup_enabled: bool = True

    cors_origins: list[str] = ["*"]

    class Config:
        env_file = str(_env_path)
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    return Settings()
