# tests/conftest.py

import os

# must be in place before anything under app/ is imported
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret-for-unalone-api-0123456789"
os.environ["OTP_BACKEND"] = "memory"
os.environ["RESEND_API_KEY"] = "test-resend-key"
os.environ["MAX_SESSIONS_PER_USER"] = "3"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.main import app
from app.models.user import User
from app.services import mailer
from app.services.otp_store import MemoryOtpStore, get_otp_store
from app.services.passwords import hash_password
from app.utils.constants import VERIFICATION_EMAIL_VERIFIED

DEFAULT_PASSWORD = "pw123456"


@pytest.fixture
def engine():
    """In-memory sqlite shared by the test and the request handlers."""
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    yield db
    db.close()


@pytest.fixture
def otp_store():
    return MemoryOtpStore(ttl_seconds=600)


@pytest.fixture
def outbox(monkeypatch):
    """Captures (email, code) pairs instead of calling the mail API."""
    sent = []

    async def fake_send_otp_email(to, code):
        sent.append((to, code))

    monkeypatch.setattr(mailer, "send_otp_email", fake_send_otp_email)
    return sent


@pytest.fixture
def client(session_factory, otp_store, outbox):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_otp_store] = lambda: otp_store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def create_user(db_session):
    def _create(
        email="member@unalone.app",
        password=DEFAULT_PASSWORD,
        name="Test Member",
        verification_status=VERIFICATION_EMAIL_VERIFIED,
    ):
        user = User(
            name=name,
            email=email,
            password_hash=hash_password(password),
            verification_status=verification_status,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _create


@pytest.fixture
def login(client):
    def _login(email, password=DEFAULT_PASSWORD):
        client.cookies.clear()
        resp = client.post("/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        return resp

    return _login
