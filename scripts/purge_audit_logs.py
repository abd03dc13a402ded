"""
Purge audit records whose deferred-deletion time has passed (same as the nightly job).
Run once: python scripts/purge_audit_logs.py (from project root)
"""
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.database import SessionLocal
from app.services.audit_log import purge_marked


def main():
    db = SessionLocal()
    try:
        deleted = purge_marked(db)
        print(f"Purged {deleted} cleared audit record(s).")
    finally:
        db.close()


if __name__ == "__main__":
    main()
