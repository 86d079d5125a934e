# backend/tests/unit/core/test_exceptions.py
from datetime import date

from tutorbook.core.exceptions import (
    AvailabilityConflictException,
    CommitReconciliationException,
    InsufficientPointsException,
    PaymentDeclinedException,
    PaymentIndeterminateException,
    booking_context,
)


def test_booking_context_drops_empty_values():
    context = booking_context(
        schedule_id="sched",
        scheduled_date=date(2024, 3, 4),
        payment_reference=None,
        student_id=None,
        attempt=2,
    )
    assert context == {"schedule_id": "sched", "scheduled_date": "2024-03-04", "attempt": 2}


def test_conflict_maps_to_409():
    http_exc = AvailabilityConflictException(details={"schedule_id": "sched"}).to_http_exception()
    assert http_exc.status_code == 409
    assert http_exc.detail["code"] == "AVAILABILITY_CONFLICT"
    assert http_exc.detail["details"] == {"schedule_id": "sched"}


def test_declined_carries_processor_reason():
    exc = PaymentDeclinedException("Card expired")
    assert exc.reason == "Card expired"
    assert exc.to_http_exception().status_code == 402


def test_indeterminate_is_retryable():
    exc = PaymentIndeterminateException()
    http_exc = exc.to_http_exception()
    assert exc.retryable
    assert http_exc.status_code == 503
    assert http_exc.headers == {"Retry-After": "2"}


def test_reconciliation_is_a_server_side_error():
    exc = CommitReconciliationException("commit failed")
    assert exc.code == "COMMIT_RECONCILIATION_REQUIRED"
    assert exc.to_http_exception().status_code == 500


def test_insufficient_points_details():
    exc = InsufficientPointsException(requested=25, available=10)
    assert exc.details == {"requested": 25, "available": 10}
    assert exc.to_http_exception().status_code == 422
