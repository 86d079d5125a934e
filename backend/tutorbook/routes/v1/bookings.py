# backend/tutorbook/routes/v1/bookings.py
"""
Student booking routes - API v1

Endpoints:
    POST /intent - Price a date (after points) and start the payment
    POST /confirm - Confirm a completed payment and claim the seat
    GET /handoff - Resume an in-flight payment from its handoff token
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from ...api.dependencies import (
    get_booking_commit_service,
    get_booking_intent_service,
    get_current_user_id,
    get_payment_handoff_service,
)
from ...core.enums import BookingOutcome
from ...core.exceptions import (
    DomainException,
    PaymentIndeterminateException,
    ValidationException,
)
from ...core.timezone_utils import to_date_key
from ...domain.booking import BookingConfirmation
from ...schemas.booking import (
    BookingConfirmationResponse,
    BookingConfirmRequest,
    BookingIntentRequest,
    BookingIntentResponse,
    PaymentHandoffResponse,
    SlotSummary,
)
from ...services.booking_commit_service import BookingCommitService
from ...services.booking_intent_service import BookingIntentService
from ...services.payment_handoff_service import PaymentHandoff, PaymentHandoffService

logger = logging.getLogger(__name__)

# V1 router - mounted at /api/v1/bookings
router = APIRouter(tags=["bookings-v1"])

CONFIRMED_MESSAGE = "Booking confirmed"
POINTS_ONLY_MESSAGE = "Booking confirmed using loyalty points"
PENDING_FINALIZATION_MESSAGE = "Payment received. Your booking is being finalized."


def _confirmation_response(confirmation: BookingConfirmation) -> BookingConfirmationResponse:
    message = (
        CONFIRMED_MESSAGE
        if confirmation.outcome is BookingOutcome.COMMITTED
        else PENDING_FINALIZATION_MESSAGE
    )
    return BookingConfirmationResponse(
        outcome=confirmation.outcome,
        message=message,
        schedule_id=confirmation.schedule_id,
        scheduled_date=to_date_key(confirmation.scheduled_date),
        payment_reference=confirmation.payment_reference,
        points_redeemed=confirmation.points_redeemed,
        amount_paid=confirmation.amount_paid,
        booked_slot_id=confirmation.booked_slot_id,
        session_id=confirmation.session_id,
    )


def _token_slot(slot: Dict[str, Any]) -> Dict[str, Any]:
    return {**slot, "price": str(slot["price"])}


def _clear_handoff(handoff_service: PaymentHandoffService, token: Optional[str]) -> None:
    if not token:
        return
    try:
        handoff_service.clear(token)
    except ValidationException as exc:
        logger.info("Ignoring unusable handoff token on clear: %s", exc.code)


def _check_handoff(
    handoff_service: PaymentHandoffService,
    token: str,
    student_id: str,
    payment_intent_id: str,
) -> None:
    try:
        handoff = handoff_service.read(token, student_id=student_id)
    except ValidationException as exc:
        if exc.code != "HANDOFF_CLEARED":
            raise
        # Retried confirm; the commit is idempotent on the payment reference
        logger.info("Handoff token already cleared; re-confirming payment %s", payment_intent_id)
        return
    if handoff.payment_intent_id != payment_intent_id:
        raise ValidationException(
            "Payment session does not match this payment",
            code="HANDOFF_MISMATCH",
        )


@router.post("/intent", response_model=BookingIntentResponse)
def create_booking_intent(
    payload: BookingIntentRequest,
    student_id: str = Depends(get_current_user_id),
    intent_service: BookingIntentService = Depends(get_booking_intent_service),
    commit_service: BookingCommitService = Depends(get_booking_commit_service),
    handoff_service: PaymentHandoffService = Depends(get_payment_handoff_service),
) -> BookingIntentResponse:
    """
    Start a booking.

    Returns a client secret and handoff token when a card payment is needed.
    When loyalty points cover the full price the seat is committed right away
    and the confirmation is returned in ``booking``.
    """
    try:
        intent = intent_service.create_intent(
            payload.schedule_id,
            payload.scheduled_date,
            student_id,
            payload.points_to_use,
        )
        slot = intent_service.slot_summary(intent)

        if not intent.requires_payment:
            confirmation = commit_service.finalize_intent(intent)
            return BookingIntentResponse(
                requires_payment=False,
                amount=intent.final_amount,
                points_applied=intent.points_applied,
                slot=SlotSummary(**slot),
                message=POINTS_ONLY_MESSAGE,
                booking=_confirmation_response(confirmation),
            )
    except DomainException as exc:
        raise exc.to_http_exception() from exc

    handoff_token = handoff_service.issue(
        PaymentHandoff(
            client_secret=intent.client_secret or "",
            payment_intent_id=intent.payment_reference or "",
            amount=intent.final_amount,
            points_to_use=intent.points_applied,
            slot=_token_slot(slot),
            student_id=student_id,
        )
    )
    return BookingIntentResponse(
        requires_payment=True,
        amount=intent.final_amount,
        points_applied=intent.points_applied,
        slot=SlotSummary(**slot),
        client_secret=intent.client_secret,
        payment_intent_id=intent.payment_reference,
        handoff_token=handoff_token,
    )


@router.post("/confirm", response_model=BookingConfirmationResponse)
def confirm_booking(
    payload: BookingConfirmRequest,
    student_id: str = Depends(get_current_user_id),
    commit_service: BookingCommitService = Depends(get_booking_commit_service),
    handoff_service: PaymentHandoffService = Depends(get_payment_handoff_service),
) -> BookingConfirmationResponse:
    """
    Confirm a payment the client completed and commit the seat.

    409 when the date filled up, 402 when the payment was declined, 503 when
    the processor outcome is not known yet (retry). The handoff token is
    cleared after every outcome except 503; retrying with a cleared token
    returns the already committed booking.
    """
    try:
        if payload.handoff_token:
            _check_handoff(
                handoff_service, payload.handoff_token, student_id, payload.payment_intent_id
            )
        confirmation = commit_service.confirm_booking(
            student_id,
            payload.schedule_id,
            payload.scheduled_date,
            payload.payment_intent_id,
        )
    except PaymentIndeterminateException as exc:
        raise exc.to_http_exception() from exc
    except DomainException as exc:
        _clear_handoff(handoff_service, payload.handoff_token)
        raise exc.to_http_exception() from exc

    _clear_handoff(handoff_service, payload.handoff_token)
    return _confirmation_response(confirmation)


@router.get("/handoff", response_model=PaymentHandoffResponse)
def get_payment_handoff(
    token: str = Query(..., min_length=1),
    student_id: str = Depends(get_current_user_id),
    handoff_service: PaymentHandoffService = Depends(get_payment_handoff_service),
) -> PaymentHandoffResponse:
    """Resume an in-flight payment on the payment page."""
    try:
        handoff = handoff_service.read(token, student_id=student_id)
    except DomainException as exc:
        raise exc.to_http_exception() from exc
    return PaymentHandoffResponse(
        client_secret=handoff.client_secret,
        payment_intent_id=handoff.payment_intent_id,
        amount=handoff.amount,
        points_to_use=handoff.points_to_use,
        slot=SlotSummary(**handoff.slot),
        expires_at=handoff.expires_at,
    )
