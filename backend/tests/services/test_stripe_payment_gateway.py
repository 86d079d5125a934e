# backend/tests/services/test_stripe_payment_gateway.py
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import patch

import pytest
import stripe

from tutorbook.core.enums import AuthorizationOutcome
from tutorbook.core.exceptions import (
    PaymentIndeterminateException,
    ServiceException,
    ValidationException,
)
from tutorbook.services.payment_gateway import (
    StripePaymentGateway,
    from_minor_units,
    is_points_only_reference,
    to_minor_units,
)

METADATA = {
    "schedule_id": "sched",
    "scheduled_date": "2024-03-04",
    "student_id": "student",
    "points_applied": 15,
    "base_price": "40.00",
}


@pytest.fixture
def gateway():
    return StripePaymentGateway()


def _intent(status, **extra):
    payload = {
        "id": "pi_123",
        "status": status,
        "amount": 2500,
        "client_secret": "pi_123_secret",
        "metadata": {"schedule_id": "sched", "scheduled_date": "2024-03-04"},
    }
    payload.update(extra)
    return payload


def test_minor_unit_conversion():
    assert to_minor_units(Decimal("25.00")) == 2500
    assert to_minor_units(Decimal("0.995")) == 100
    assert from_minor_units(2599) == Decimal("25.99")


class TestAuthorize:
    def test_creates_manual_payment_intent(self, gateway):
        created = SimpleNamespace(id="pi_123", client_secret="pi_123_secret")
        with patch("stripe.PaymentIntent.create", return_value=created) as create:
            authorization = gateway.authorize(Decimal("25.00"), METADATA)

        kwargs = create.call_args.kwargs
        assert kwargs["amount"] == 2500
        assert kwargs["confirmation_method"] == "manual"
        assert kwargs["metadata"]["points_applied"] == "15"
        assert authorization.reference == "pi_123"
        assert authorization.client_secret == "pi_123_secret"
        assert authorization.amount == Decimal("25.00")

    def test_zero_amount_never_calls_stripe(self, gateway):
        with patch("stripe.PaymentIntent.create") as create:
            authorization = gateway.authorize(Decimal("0"), METADATA)
        create.assert_not_called()
        assert is_points_only_reference(authorization.reference)
        assert authorization.client_secret is None

    def test_negative_amount_rejected(self, gateway):
        with pytest.raises(ValidationException):
            gateway.authorize(Decimal("-1"), METADATA)

    def test_connection_error_is_indeterminate(self, gateway):
        with patch(
            "stripe.PaymentIntent.create", side_effect=stripe.APIConnectionError("timeout")
        ):
            with pytest.raises(PaymentIndeterminateException):
                gateway.authorize(Decimal("25.00"), METADATA)

    def test_other_stripe_errors_become_service_errors(self, gateway):
        with patch(
            "stripe.PaymentIntent.create", side_effect=stripe.AuthenticationError("bad key")
        ):
            with pytest.raises(ServiceException):
                gateway.authorize(Decimal("25.00"), METADATA)


class TestGetAuthorization:
    @pytest.mark.parametrize("status", ["succeeded", "requires_capture"])
    def test_authorized_statuses(self, gateway, status):
        with patch("stripe.PaymentIntent.retrieve", return_value=_intent(status)):
            result = gateway.get_authorization("pi_123")
        assert result.outcome is AuthorizationOutcome.AUTHORIZED
        assert result.amount == Decimal("25.00")
        assert result.metadata["scheduled_date"] == "2024-03-04"

    def test_failed_card_is_declined_with_reason(self, gateway):
        intent = _intent(
            "requires_payment_method",
            last_payment_error={"message": "Your card has insufficient funds."},
        )
        with patch("stripe.PaymentIntent.retrieve", return_value=intent):
            result = gateway.get_authorization("pi_123")
        assert result.outcome is AuthorizationOutcome.DECLINED
        assert result.reason == "Your card has insufficient funds."

    def test_canceled_is_declined(self, gateway):
        with patch("stripe.PaymentIntent.retrieve", return_value=_intent("canceled")):
            result = gateway.get_authorization("pi_123")
        assert result.outcome is AuthorizationOutcome.DECLINED

    @pytest.mark.parametrize("status", ["processing", "requires_action", "mystery"])
    def test_pending_statuses_are_indeterminate(self, gateway, status):
        with patch("stripe.PaymentIntent.retrieve", return_value=_intent(status)):
            result = gateway.get_authorization("pi_123")
        assert result.outcome is AuthorizationOutcome.INDETERMINATE

    def test_network_failure_is_indeterminate(self, gateway):
        with patch(
            "stripe.PaymentIntent.retrieve", side_effect=stripe.APIConnectionError("reset")
        ):
            result = gateway.get_authorization("pi_123")
        assert result.outcome is AuthorizationOutcome.INDETERMINATE

    def test_unknown_reference(self, gateway):
        with patch(
            "stripe.PaymentIntent.retrieve",
            side_effect=stripe.InvalidRequestError("No such payment_intent", "intent"),
        ):
            with pytest.raises(ValidationException) as exc_info:
                gateway.get_authorization("pi_missing")
        assert exc_info.value.code == "UNKNOWN_PAYMENT"

    def test_points_only_reference_is_local(self, gateway):
        with patch("stripe.PaymentIntent.retrieve") as retrieve:
            result = gateway.get_authorization("points_only_01HX0000000000000000000000")
        retrieve.assert_not_called()
        assert result.outcome is AuthorizationOutcome.AUTHORIZED
