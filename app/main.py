"""PDF Sign – FastAPI application."""
# Load .env before any app code that might read config
from dotenv import load_dotenv
from pathlib import Path
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.database import Base, engine
# Import models so Base.metadata has all tables before create_all (schema source of truth)
from app.models import User, Document, DocumentShare, Signature, AuditLog  # noqa: F401
from app.routers import audit, auth, documents, sign, signatures
from app.services.errors import ServiceError

logger = logging.getLogger("uvicorn.error")

settings = get_settings()
app = FastAPI(title=settings.app_name, debug=settings.debug)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(documents.router)
app.include_router(signatures.router)
app.include_router(sign.router)
app.include_router(audit.router)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.__cause__ or exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "error": exc.kind})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    # Malformed bodies are the same class of error as a rejected value
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg") or "Invalid request"
    detail = f"{field}: {message}" if field else message
    return JSONResponse(status_code=400, content={"detail": detail, "error": "invalid_argument"})


@app.on_event("startup")
def startup():
    if settings.mailgun_api_key and settings.mailgun_domain:
        logger.info("[Mailgun] Using domain=%s from=%s", settings.mailgun_domain, settings.mailgun_from_email or "(none)")
    elif settings.sendgrid_api_key:
        logger.info("[SendGrid] Using from=%s", settings.sendgrid_from_email)
    else:
        logger.info("No mail provider configured - share notifications will fail and be reported as not sent")
    try:
        Base.metadata.create_all(bind=engine)
    except Exception as e:
        logger.warning("Database startup failed (tables skipped). Check DATABASE_URL. Error: %s", e)

    if settings.audit_cleanup_enabled:
        try:
            from apscheduler.schedulers.background import BackgroundScheduler
            from app.services.audit_cleanup import run_audit_cleanup_job
            scheduler = BackgroundScheduler()
            scheduler.add_job(run_audit_cleanup_job, "cron", hour=3, minute=0)
            scheduler.start()
        except Exception:
            logger.exception("Audit cleanup scheduler failed to start")


@app.get("/")
def root():
    return {"app": settings.app_name, "status": "ok"}


@app.get("/health")
def health():
    return {"status": "healthy"}
