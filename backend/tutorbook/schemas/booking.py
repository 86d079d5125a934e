# backend/tutorbook/schemas/booking.py
"""
Booking schemas for Tutorbook.

Covers the two-step purchase: creating an intent (price after points plus
a processor client secret) and confirming it once the client-side payment
step finished.
"""

from typing import Optional

from pydantic import Field, field_validator

from ..core.enums import BookingOutcome, SlotType
from .base import Money, StrictModel, StrictRequestModel, ensure_date_only


class BookingIntentRequest(StrictRequestModel):
    schedule_id: str = Field(..., min_length=1)
    scheduled_date: str = Field(..., description="Date to book, YYYY-MM-DD")
    points_to_use: int = Field(0, description="Loyalty points the student wants to redeem")

    @field_validator("scheduled_date", mode="before")
    @classmethod
    def _enforce_date_only(cls, v: object) -> object:
        return ensure_date_only(v, "scheduled_date")


class BookingConfirmRequest(StrictRequestModel):
    schedule_id: str = Field(..., min_length=1)
    scheduled_date: str = Field(..., description="Date being booked, YYYY-MM-DD")
    payment_intent_id: str = Field(..., min_length=1)
    handoff_token: Optional[str] = None

    @field_validator("scheduled_date", mode="before")
    @classmethod
    def _enforce_date_only(cls, v: object) -> object:
        return ensure_date_only(v, "scheduled_date")


class SlotSummary(StrictModel):
    """What the student is buying."""

    schedule_id: str
    scheduled_date: str
    subject: str
    title: str
    slot_type: SlotType
    price: Money
    points_applied: int = 0


class BookingConfirmationResponse(StrictModel):
    outcome: BookingOutcome
    message: str
    schedule_id: str
    scheduled_date: str
    payment_reference: str
    points_redeemed: int
    amount_paid: Money
    booked_slot_id: Optional[str] = None
    session_id: Optional[str] = None


class BookingIntentResponse(StrictModel):
    """
    Either a pending payment (``requires_payment=True`` with a client secret
    and handoff token) or, when points covered the full price, a direct
    confirmation in ``booking``.
    """

    requires_payment: bool
    amount: Money
    points_applied: int
    slot: SlotSummary
    client_secret: Optional[str] = None
    payment_intent_id: Optional[str] = None
    handoff_token: Optional[str] = None
    message: Optional[str] = None
    booking: Optional[BookingConfirmationResponse] = None


class PaymentHandoffResponse(StrictModel):
    client_secret: str
    payment_intent_id: str
    amount: Money
    points_to_use: int
    slot: SlotSummary
    expires_at: int
