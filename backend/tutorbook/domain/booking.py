"""Booking intent and confirmation values passed between booking services."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from typing import Optional

from ..core.enums import BookingOutcome, IntentStatus


@dataclass(frozen=True)
class BookingIntent:
    """
    An in-flight request to buy one seat.

    Intents are never persisted and hold no seat. Abandoning one leaves no
    footprint; the processor authorization simply lapses.
    """

    schedule_id: str
    scheduled_date: date
    student_id: str
    base_price: Decimal
    points_requested: int
    points_applied: int
    final_amount: Decimal
    payment_reference: Optional[str] = None
    client_secret: Optional[str] = None
    status: IntentStatus = IntentStatus.CREATED

    @property
    def requires_payment(self) -> bool:
        return self.final_amount > 0

    def with_status(self, status: IntentStatus) -> "BookingIntent":
        return replace(self, status=status)


@dataclass(frozen=True)
class BookingConfirmation:
    """Successful result of confirming an intent, as returned to the student."""

    outcome: BookingOutcome
    schedule_id: str
    scheduled_date: date
    student_id: str
    payment_reference: str
    points_redeemed: int
    amount_paid: Decimal
    booked_slot_id: Optional[str] = None
    session_id: Optional[str] = None
    reconciliation_id: Optional[str] = None

    @property
    def committed(self) -> bool:
        return self.outcome is BookingOutcome.COMMITTED
