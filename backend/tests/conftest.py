# backend/tests/conftest.py
"""
Pytest configuration for the Tutorbook reservation engine.

Environment variables are set BEFORE any tutorbook import so the module-level
engine and settings never point at a real database or payment account.
"""

import os

os.environ["ENVIRONMENT"] = "test"
os.environ["CI"] = "true"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["STRIPE_SECRET_KEY"] = ""
os.environ["LOCAL_TIMEZONE"] = "America/New_York"

from datetime import date

from fastapi.testclient import TestClient
import pytest
from sqlalchemy.orm import Session, sessionmaker

from tests.factories.payment_gateway import FakePaymentGateway
from tests.factories.schedule_builders import create_schedule
from tutorbook.api.dependencies.services import get_payment_gateway
from tutorbook.core.ulid_helper import generate_ulid
from tutorbook.database import Base, create_db_engine, get_db
from tutorbook.main import app
from tutorbook.models.schedule import Schedule
from tutorbook.services.payment_handoff_service import revoked_handoffs


@pytest.fixture
def engine():
    """Fresh in-memory database per test."""
    test_engine = create_db_engine("sqlite:///:memory:")
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def db(engine) -> Session:
    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=engine, expire_on_commit=False
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def payment_gateway() -> FakePaymentGateway:
    return FakePaymentGateway()


@pytest.fixture(autouse=True)
def _reset_revoked_handoffs():
    revoked_handoffs.clear()
    yield
    revoked_handoffs.clear()


@pytest.fixture
def march_mondays(db) -> Schedule:
    """One-to-one Mondays throughout March 2024 at 40.00."""
    return create_schedule(db, from_date=date(2024, 3, 1), to_date=date(2024, 3, 31))


@pytest.fixture
def student_id() -> str:
    return generate_ulid()


@pytest.fixture
def client(db, payment_gateway):
    def _override_get_db():
        yield db
        db.commit()

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: payment_gateway
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()
