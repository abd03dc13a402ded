"""
Create a demo document owner and a demo signer so the app can be tried without registering.

Run from project root:
  python scripts/create_test_users.py

Credentials are printed at the end. Log in with either email or username.
"""
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.database import Base, SessionLocal, engine
from app.models.user import User
from app.services.auth import get_password_hash

# Default credentials (change if you want)
DEMO_USERS = [
    ("owner", "owner@pdfsign.demo", "Test Owner", "Password123!"),
    ("signer", "signer@pdfsign.demo", "Test Signer", "Password123!"),
]


def main():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        for username, email, full_name, password in DEMO_USERS:
            existing = db.query(User).filter((User.email == email) | (User.username == username)).first()
            if existing:
                print(f"User already exists: {email}")
                continue
            db.add(User(
                username=username,
                email=email,
                full_name=full_name,
                hashed_password=get_password_hash(password),
            ))
            print(f"Created user: {email}")
        db.commit()

        print("\n--- Demo users ---")
        for username, email, _, password in DEMO_USERS:
            print(f"  {username:<8} {email:<24} {password}")
        print("\nDone.")
    finally:
        db.close()


if __name__ == "__main__":
    main()
