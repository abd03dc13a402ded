"""Purge audit rows whose deferred-deletion time has passed."""
import logging

from sqlalchemy.orm import Session

from app.database import SessionLocal
from app.services.audit_log import purge_marked


def run_audit_cleanup_job() -> None:
    db: Session = SessionLocal()
    try:
        deleted = purge_marked(db)
        if deleted:
            logging.getLogger("uvicorn.error").info("Audit cleanup: purged %d cleared audit record(s).", deleted)
    finally:
        db.close()
