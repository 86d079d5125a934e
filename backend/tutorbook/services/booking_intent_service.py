# backend/tutorbook/services/booking_intent_service.py
"""
Booking Intent Service for Tutorbook

Turns "student S wants date D of schedule X using P points" into a priced,
processor-backed BookingIntent. Nothing is persisted and no seat is held;
capacity is only claimed by the commit step.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from decimal import Decimal
import logging
from typing import Any, Dict, Optional, Union

from sqlalchemy.orm import Session

from ..core.enums import IntentStatus
from ..core.exceptions import NotFoundException, ValidationException, booking_context
from ..core.timezone_utils import local_today, to_date_key, to_local_date
from ..domain.booking import BookingIntent
from ..models.schedule import Schedule
from ..repositories.factory import RepositoryFactory
from .availability_service import AvailabilityService
from .base import BaseService
from .loyalty_service import LoyaltyService
from .payment_gateway import PaymentGateway

logger = logging.getLogger(__name__)


class BookingIntentService(BaseService):
    def __init__(
        self,
        db: Session,
        payment_gateway: PaymentGateway,
        availability_service: Optional[AvailabilityService] = None,
        loyalty_service: Optional[LoyaltyService] = None,
    ):
        super().__init__(db)
        self.payment_gateway = payment_gateway
        self.availability_service = availability_service or AvailabilityService(db)
        self.loyalty_service = loyalty_service or LoyaltyService(db)
        self.schedule_repository = RepositoryFactory.create_schedule_repository(db)

    def _get_schedule(self, schedule_id: str) -> Schedule:
        schedule = self.schedule_repository.get_by_id(schedule_id)
        if schedule is None:
            raise NotFoundException(
                "Schedule not found",
                code="SCHEDULE_NOT_FOUND",
                details={"schedule_id": schedule_id},
            )
        return schedule

    @BaseService.measure_operation("create_intent")
    def create_intent(
        self,
        schedule_id: str,
        requested_date: Union[date, str],
        student_id: str,
        points_requested: int = 0,
        *,
        today: Optional[date] = None,
    ) -> BookingIntent:
        """
        Price a booking and request a payment authorization for it.

        Args:
            schedule_id: Schedule being booked
            requested_date: Concrete date (``date`` or ``YYYY-MM-DD``)
            student_id: Acting student
            points_requested: Loyalty points the student wants to redeem
            today: Local today; computed when omitted

        Returns:
            BookingIntent with the processor reference and client secret

        Raises:
            ValidationException: Date not bookable, or negative points
            NotFoundException: Unknown schedule
        """
        if points_requested < 0:
            raise ValidationException(
                "points_to_use cannot be negative",
                code="INVALID_POINTS",
                details={"points_requested": points_requested},
            )
        scheduled_date = to_local_date(requested_date)
        date_key = to_date_key(scheduled_date)
        schedule = self._get_schedule(schedule_id)

        availability = self.availability_service.get_availability(
            schedule_id,
            window_start=scheduled_date,
            window_end=scheduled_date,
            today=today or local_today(),
        )
        if date_key not in availability:
            raise ValidationException(
                "The selected date is not available for booking",
                code="DATE_NOT_AVAILABLE",
                details=booking_context(schedule_id=schedule_id, scheduled_date=date_key),
            )

        price = Decimal(str(schedule.price))
        discount = self.loyalty_service.quote(student_id, price, points_requested)

        intent = BookingIntent(
            schedule_id=schedule_id,
            scheduled_date=scheduled_date,
            student_id=student_id,
            base_price=price,
            points_requested=points_requested,
            points_applied=discount.points_applied,
            final_amount=discount.final_amount,
        )

        authorization = self.payment_gateway.authorize(
            intent.final_amount, self.payment_metadata(intent)
        )
        intent = replace(
            intent,
            payment_reference=authorization.reference,
            client_secret=authorization.client_secret,
            status=IntentStatus.AUTHORIZING if intent.requires_payment else IntentStatus.AUTHORIZED,
        )

        self.log_operation(
            "create_intent",
            schedule_id=schedule_id,
            scheduled_date=date_key,
            student_id=student_id,
            points_applied=intent.points_applied,
            final_amount=str(intent.final_amount),
            payment_reference=intent.payment_reference,
        )
        return intent

    @staticmethod
    def payment_metadata(intent: BookingIntent) -> Dict[str, Any]:
        """Metadata stored on the processor record so confirmation can rebuild the intent."""
        return {
            "schedule_id": intent.schedule_id,
            "scheduled_date": to_date_key(intent.scheduled_date),
            "student_id": intent.student_id,
            "points_applied": intent.points_applied,
            "base_price": str(intent.base_price),
        }

    def slot_summary(self, intent: BookingIntent) -> Dict[str, Any]:
        schedule = self._get_schedule(intent.schedule_id)
        return {
            "schedule_id": schedule.id,
            "scheduled_date": to_date_key(intent.scheduled_date),
            "subject": schedule.subject,
            "title": schedule.title,
            "slot_type": schedule.slot_type,
            "price": intent.base_price,
            "points_applied": intent.points_applied,
        }
