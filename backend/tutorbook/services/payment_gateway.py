# backend/tutorbook/services/payment_gateway.py
"""
Payment processor boundary.

The booking services only talk to ``PaymentGateway``. ``StripePaymentGateway``
creates manual-confirmation PaymentIntents (the client confirms the card
step) and later reads back their outcome.

Amounts fully covered by loyalty points never reach Stripe: the gateway hands
out a local ``points_only_`` reference and reports it as authorized.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
import logging
from typing import Any, Dict, Mapping, Optional

import stripe
import ulid

from ..core.config import settings
from ..core.enums import AuthorizationOutcome
from ..core.exceptions import (
    PaymentIndeterminateException,
    ServiceException,
    ValidationException,
)

logger = logging.getLogger(__name__)

POINTS_ONLY_PREFIX = "points_only_"

_AUTHORIZED_STATUSES = frozenset({"succeeded", "requires_capture"})
_DECLINED_STATUSES = frozenset({"requires_payment_method", "canceled"})
_PENDING_STATUSES = frozenset({"processing", "requires_action", "requires_confirmation"})


def is_points_only_reference(reference: str) -> bool:
    return reference.startswith(POINTS_ONLY_PREFIX)


def to_minor_units(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_minor_units(cents: int) -> Decimal:
    return (Decimal(int(cents)) / 100).quantize(Decimal("0.01"))


@dataclass(frozen=True)
class PaymentAuthorization:
    """A payment the client still has to complete."""

    reference: str
    client_secret: Optional[str]
    amount: Decimal
    currency: str


@dataclass(frozen=True)
class AuthorizationResult:
    """What the processor says happened to a payment."""

    outcome: AuthorizationOutcome
    reference: str
    amount: Decimal = Decimal("0")
    reason: Optional[str] = None
    processor_status: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)


class PaymentGateway(ABC):
    @abstractmethod
    def authorize(self, amount: Decimal, metadata: Mapping[str, Any]) -> PaymentAuthorization:
        """Request an authorization for ``amount``; zero amounts stay local."""

    @abstractmethod
    def get_authorization(self, reference: str) -> AuthorizationResult:
        """Read back the processor outcome for ``reference``."""

    @staticmethod
    def points_only_authorization(metadata: Mapping[str, Any]) -> PaymentAuthorization:
        reference = f"{POINTS_ONLY_PREFIX}{ulid.ULID()}"
        logger.info(
            "Points-only booking for schedule %s on %s; skipping processor",
            metadata.get("schedule_id"),
            metadata.get("scheduled_date"),
        )
        return PaymentAuthorization(
            reference=reference,
            client_secret=None,
            amount=Decimal("0.00"),
            currency=settings.stripe_currency,
        )


def _field(obj: Any, name: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


class StripePaymentGateway(PaymentGateway):
    def __init__(self) -> None:
        self.logger = logging.getLogger(self.__class__.__name__)
        self.stripe_configured = settings.stripe_configured
        if self.stripe_configured:
            stripe.api_key = settings.stripe_secret_key.get_secret_value()
            stripe.max_network_retries = settings.stripe_max_network_retries
            stripe.default_http_client = stripe.RequestsClient(
                timeout=settings.stripe_timeout_seconds
            )
        else:
            self.logger.warning("Stripe secret key not configured - card payments will fail")

    def authorize(self, amount: Decimal, metadata: Mapping[str, Any]) -> PaymentAuthorization:
        amount = Decimal(amount)
        if amount < 0:
            raise ValidationException("Payment amount cannot be negative", code="INVALID_AMOUNT")
        if amount == 0:
            return self.points_only_authorization(metadata)

        cents = to_minor_units(amount)
        stripe_kwargs: Dict[str, Any] = {
            "amount": cents,
            "currency": settings.stripe_currency,
            "confirmation_method": "manual",
            "metadata": {key: str(value) for key, value in metadata.items()},
            "description": (
                f"Tutorbook session {metadata.get('schedule_id')} on "
                f"{metadata.get('scheduled_date')}"
            ),
        }
        try:
            intent = stripe.PaymentIntent.create(**stripe_kwargs)
        except stripe.APIConnectionError as exc:
            self.logger.warning("Stripe unreachable while creating PaymentIntent: %s", exc)
            raise PaymentIndeterminateException(
                "Payment processor is unreachable. Please try again.",
                details={"schedule_id": metadata.get("schedule_id")},
            ) from exc
        except stripe.StripeError as exc:
            self.logger.error("Stripe error creating PaymentIntent: %s", exc)
            raise ServiceException(f"Failed to create payment: {str(exc)}") from exc

        self.logger.info("Created PaymentIntent %s for %s cents", intent.id, cents)
        return PaymentAuthorization(
            reference=intent.id,
            client_secret=_field(intent, "client_secret"),
            amount=amount.quantize(Decimal("0.01")),
            currency=settings.stripe_currency,
        )

    def get_authorization(self, reference: str) -> AuthorizationResult:
        if is_points_only_reference(reference):
            return AuthorizationResult(outcome=AuthorizationOutcome.AUTHORIZED, reference=reference)

        try:
            intent = stripe.PaymentIntent.retrieve(reference)
        except stripe.CardError as exc:
            return AuthorizationResult(
                outcome=AuthorizationOutcome.DECLINED,
                reference=reference,
                reason=exc.user_message or "Your card was declined.",
            )
        except (stripe.APIConnectionError, stripe.RateLimitError, stripe.APIError) as exc:
            self.logger.warning("Stripe outcome unknown for %s: %s", reference, exc)
            return AuthorizationResult(
                outcome=AuthorizationOutcome.INDETERMINATE,
                reference=reference,
                reason=str(exc),
            )
        except stripe.InvalidRequestError as exc:
            raise ValidationException(
                "Unknown payment reference",
                code="UNKNOWN_PAYMENT",
                details={"payment_reference": reference},
            ) from exc
        except stripe.StripeError as exc:
            self.logger.error("Stripe error retrieving PaymentIntent %s: %s", reference, exc)
            raise ServiceException(f"Failed to read payment: {str(exc)}") from exc

        return self._result_from_intent(reference, intent)

    def _result_from_intent(self, reference: str, intent: Any) -> AuthorizationResult:
        status = _field(intent, "status") or ""
        raw_metadata = _field(intent, "metadata") or {}
        metadata = {str(key): str(value) for key, value in dict(raw_metadata).items()}
        amount = from_minor_units(_field(intent, "amount") or 0)

        if status in _AUTHORIZED_STATUSES:
            outcome = AuthorizationOutcome.AUTHORIZED
            reason = None
        elif status in _DECLINED_STATUSES:
            outcome = AuthorizationOutcome.DECLINED
            error = _field(intent, "last_payment_error")
            reason = _field(error, "message") or (
                "The payment was canceled." if status == "canceled" else "Your payment was declined."
            )
        else:
            if status not in _PENDING_STATUSES:
                self.logger.warning("Unrecognized PaymentIntent status %r for %s", status, reference)
            outcome = AuthorizationOutcome.INDETERMINATE
            reason = f"Payment is {status or 'pending'}"

        return AuthorizationResult(
            outcome=outcome,
            reference=reference,
            amount=amount,
            reason=reason,
            processor_status=status,
            metadata=metadata,
        )
