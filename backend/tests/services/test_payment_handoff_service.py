# backend/tests/services/test_payment_handoff_service.py
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import jwt
import pytest

from tutorbook.core.config import settings
from tutorbook.core.exceptions import ValidationException
from tutorbook.core.ulid_helper import generate_ulid
from tutorbook.services.payment_handoff_service import (
    HANDOFF_ALGORITHM,
    PaymentHandoff,
    PaymentHandoffService,
    RevokedHandoffStore,
)


@pytest.fixture
def service():
    return PaymentHandoffService(store=RevokedHandoffStore())


def _handoff(student_id):
    return PaymentHandoff(
        client_secret="pi_123_secret_abc",
        payment_intent_id="pi_123",
        amount=Decimal("25.00"),
        points_to_use=15,
        slot={"schedule_id": "sched", "scheduled_date": "2024-03-04", "price": "40.00"},
        student_id=student_id,
    )


def test_issue_and_read_round_trip(service, student_id):
    token = service.issue(_handoff(student_id))

    handoff = service.read(token, student_id=student_id)

    assert handoff.client_secret == "pi_123_secret_abc"
    assert handoff.payment_intent_id == "pi_123"
    assert handoff.amount == Decimal("25.00")
    assert handoff.points_to_use == 15
    assert handoff.slot["scheduled_date"] == "2024-03-04"
    assert handoff.token_id
    assert handoff.expires_at > datetime.now(timezone.utc).timestamp()


def test_cleared_token_cannot_be_read(service, student_id):
    token = service.issue(_handoff(student_id))

    service.clear(token)

    with pytest.raises(ValidationException) as exc_info:
        service.read(token)
    assert exc_info.value.code == "HANDOFF_CLEARED"


def test_clear_is_idempotent(service, student_id):
    token = service.issue(_handoff(student_id))
    service.clear(token)
    service.clear(token)


def test_other_student_cannot_read(service, student_id):
    token = service.issue(_handoff(student_id))
    with pytest.raises(ValidationException) as exc_info:
        service.read(token, student_id=generate_ulid())
    assert exc_info.value.code == "INVALID_HANDOFF"


def test_tampered_token_rejected(service, student_id):
    token = service.issue(_handoff(student_id))
    forged = jwt.encode(
        jwt.decode(token, options={"verify_signature": False}),
        "some-other-secret",
        algorithm=HANDOFF_ALGORITHM,
    )
    with pytest.raises(ValidationException) as exc_info:
        service.read(forged)
    assert exc_info.value.code == "INVALID_HANDOFF"


def test_expired_token(service, student_id):
    now = datetime.now(timezone.utc)
    expired = jwt.encode(
        {
            "typ": "payment_handoff",
            "sub": student_id,
            "iss": settings.handoff_token_issuer,
            "iat": now - timedelta(hours=2),
            "exp": now - timedelta(hours=1),
            "jti": generate_ulid(),
        },
        settings.handoff_secret_key.get_secret_value(),
        algorithm=HANDOFF_ALGORITHM,
    )

    with pytest.raises(ValidationException) as exc_info:
        service.read(expired)
    assert exc_info.value.code == "HANDOFF_EXPIRED"

    # Clearing an expired token is a no-op
    service.clear(expired)


def test_wrong_token_type_rejected(service, student_id):
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {
            "typ": "access",
            "sub": student_id,
            "iss": settings.handoff_token_issuer,
            "exp": now + timedelta(minutes=5),
            "jti": generate_ulid(),
        },
        settings.handoff_secret_key.get_secret_value(),
        algorithm=HANDOFF_ALGORITHM,
    )
    with pytest.raises(ValidationException):
        service.read(token)


def test_garbage_token_rejected(service):
    with pytest.raises(ValidationException):
        service.read("not-a-token")


def test_revoked_store_forgets_expired_entries():
    store = RevokedHandoffStore()
    store.revoke("old", expires_at=datetime.now(timezone.utc).timestamp() - 1)
    store.revoke("fresh", expires_at=datetime.now(timezone.utc).timestamp() + 60)

    assert not store.is_revoked("old")
    assert store.is_revoked("fresh")
