"""
Pytest configuration and fixtures for phoneverify tests.

Every test gets its own in-memory SQLite database, so committed rows never
leak between tests and no test touches a dev or prod database.
"""
import itertools
import os
from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Keep a developer's Twilio credentials out of the suite
for _var in ("TWILIO_ACCOUNT_SID", "TWILIO_AUTH_TOKEN", "TWILIO_VERIFY_SERVICE_SID"):
    os.environ.pop(_var, None)
os.environ.setdefault("ENV", "test")

from phoneverify.db import Base  # noqa: E402
from phoneverify.models import User  # noqa: E402
from phoneverify.services.issuers import LocalCodeIssuer, reset_code_issuer  # noqa: E402
from phoneverify.services.phone_verification import PhoneVerificationService  # noqa: E402

TEST_DATABASE_URL = "sqlite://"


@pytest.fixture(scope="function")
def engine():
    """Fresh in-memory schema per test. StaticPool keeps one shared connection."""
    test_engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    try:
        yield test_engine
    finally:
        Base.metadata.drop_all(bind=test_engine)
        test_engine.dispose()


@pytest.fixture(scope="function")
def db(engine):
    """
    Database session for one test.

    The service commits, so isolation comes from the per-test engine rather
    than an outer transaction.
    """
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def issuer():
    return LocalCodeIssuer()


@pytest.fixture
def service(db, issuer):
    return PhoneVerificationService(db, issuer, request_id="test-request")


class FrozenClock:
    """Callable stand-in for utcnow that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def frozen_clock(monkeypatch):
    clock = FrozenClock(datetime(2025, 1, 15, 12, 0, 0))
    monkeypatch.setattr("phoneverify.services.phone_verification.utcnow", clock)
    return clock


@pytest.fixture
def make_user(db):
    """Factory for users; emails are unique unless given."""
    counter = itertools.count(1)

    def _make(email=None, first_name="Test", phone_number=None, phone_verified=False):
        user = User(
            email=email or f"user{next(counter)}@example.com",
            first_name=first_name,
            phone_number=phone_number,
            phone_verified=phone_verified,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def user(make_user):
    return make_user(email="test@example.com")


def override_get_db(db_session):
    """Dependency override that hands every request the test session."""
    def _override():
        yield db_session
    return _override


@pytest.fixture(scope="function")
def client(db, issuer):
    """
    FastAPI TestClient bound to the test database and a local issuer.

    Not entered as a context manager, so the lifespan hook (config validation
    and init_db against the configured database) does not run.
    """
    from fastapi.testclient import TestClient
    from phoneverify.main import app
    from phoneverify.db import get_db
    from phoneverify.dependencies import get_issuer

    app.dependency_overrides[get_db] = override_get_db(db)
    app.dependency_overrides[get_issuer] = lambda: issuer

    try:
        # raise_server_exceptions=False so unhandled errors become 500 responses
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def _reset_issuer_cache():
    reset_code_issuer()
    yield
    reset_code_issuer()
