import os

# Settings validate required env vars at import time, so set them before importing app.*.
os.environ.setdefault("JWT_SECRET", "test_jwt_secret")
os.environ.setdefault("APP_URL", "http://localhost:5173")
os.environ.setdefault("API_URL", "http://localhost:8000")
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("EMAIL_PROVIDER", "smtp")
os.environ.setdefault("SMTP_HOST", "smtp.example.test")
os.environ.setdefault("SMTP_USER", "mailer")
os.environ.setdefault("SMTP_PASS", "mailer-password")
os.environ.setdefault("MAIL_FROM", "Turnos <no-reply@example.test>")
os.environ.setdefault("CLEANUP_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.base import Base
from app.core.security import hash_password

# Import models so they register with SQLAlchemy metadata.
from app.models.user import User  # noqa: F401
from app.models.verification_token import VerificationToken  # noqa: F401
from app.models.turno import Turno  # noqa: F401

from app.core.database import get_db

TEST_PASSWORD = "secreto123"


@pytest.fixture(scope="session")
def db_engine():
    # In-memory SQLite for fast, isolated tests.
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture()
def db_session(db_engine):
    # Important: because we use an in-memory SQLite DB with StaticPool, the DB
    # persists across tests. Reset schema per test to avoid cross-test coupling.
    Base.metadata.drop_all(bind=db_engine)
    Base.metadata.create_all(bind=db_engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def app(db_session):
    from app.main import app as fastapi_app

    def override_get_db():
        yield db_session

    fastapi_app.dependency_overrides[get_db] = override_get_db
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def sent_emails(monkeypatch):
    """
    Captures verification emails instead of sending them. Each entry is
    {"email": ..., "token": ...}; the token is the raw one from the link.
    """
    sent: list[dict[str, str]] = []

    def _fake_send(settings, to_email, token):  # noqa: ARG001
        sent.append({"email": to_email, "token": token})
        return "msg_test_123"

    monkeypatch.setattr("app.services.accounts.send_verification_email", _fake_send)
    return sent


@pytest.fixture()
def verified_user(db_session):
    user = User(
        name="Ana",
        email="ana@example.com",
        password_hash=hash_password(TEST_PASSWORD),
        verified=True,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture()
def user_password():
    return TEST_PASSWORD
