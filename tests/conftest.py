import os

# Must be set before app.config is first imported
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-that-is-long-enough-for-hs256")
os.environ.setdefault("AUDIT_CLEANUP_ENABLED", "false")
os.environ.setdefault("FRONTEND_URL", "http://frontend.test")

from io import BytesIO

import pytest
from fastapi.testclient import TestClient
from reportlab.pdfgen import canvas
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.main import app
from app.models.user import User
from app.services import documents as documents_service
from app.services.auth import create_access_token, get_password_hash
from app.services.errors import DependencyFailure
from app.services.notifications import get_notifier
from app.services.storage import LocalFileStorage, get_storage

PAGE_WIDTH = 1200
PAGE_HEIGHT = 1600


def make_pdf(pages: int = 2, size: tuple[float, float] = (PAGE_WIDTH, PAGE_HEIGHT)) -> bytes:
    buf = BytesIO()
    c = canvas.Canvas(buf, pagesize=size, invariant=1)
    for n in range(1, pages + 1):
        c.setFont("Helvetica", 12)
        c.drawString(50, size[1] - 50, f"Page {n}")
        c.showPage()
    c.save()
    return buf.getvalue()


class FakeNotifier:
    def __init__(self):
        self.sent = []
        self.fail = False

    def send(self, recipient, subject, body):
        if self.fail:
            raise DependencyFailure("mail down")
        self.sent.append((recipient, subject, body))


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def storage(tmp_path):
    return LocalFileStorage(str(tmp_path / "uploads"))


@pytest.fixture
def notifier():
    return FakeNotifier()


def _make_user(db, username, email, full_name):
    user = User(
        username=username,
        email=email,
        full_name=full_name,
        hashed_password=get_password_hash("Password123!"),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def owner(db):
    return _make_user(db, "owner", "owner@example.com", "Olivia Owner")


@pytest.fixture
def signer(db):
    return _make_user(db, "signer", "signer@example.com", "Sam Signer")


@pytest.fixture
def stranger(db):
    return _make_user(db, "stranger", "stranger@example.com", "Stan Stranger")


@pytest.fixture
def pdf_bytes():
    return make_pdf()


@pytest.fixture
def document(db, owner, storage, pdf_bytes):
    return documents_service.upload_document(
        db, owner.id, pdf_bytes, "contract.pdf", "application/pdf", storage, 10 * 1024 * 1024
    )


@pytest.fixture
def client(engine, storage, notifier):
    TestSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        session = TestSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_notifier] = lambda: notifier
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.email)}"}
