# backend/tutorbook/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ...services.availability_service import AvailabilityService
from ...services.booking_commit_service import BookingCommitService
from ...services.booking_intent_service import BookingIntentService
from ...services.payment_gateway import PaymentGateway, StripePaymentGateway
from ...services.payment_handoff_service import PaymentHandoffService
from ...services.schedule_service import ScheduleService


@lru_cache(maxsize=1)
def _payment_gateway_singleton() -> PaymentGateway:
    return StripePaymentGateway()


def get_payment_gateway() -> PaymentGateway:
    return _payment_gateway_singleton()


def get_schedule_service(db: Session = Depends(get_db)) -> ScheduleService:
    return ScheduleService(db)


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    return AvailabilityService(db)


def get_booking_intent_service(
    db: Session = Depends(get_db),
    payment_gateway: PaymentGateway = Depends(get_payment_gateway),
) -> BookingIntentService:
    return BookingIntentService(db, payment_gateway)


def get_booking_commit_service(
    db: Session = Depends(get_db),
    payment_gateway: PaymentGateway = Depends(get_payment_gateway),
) -> BookingCommitService:
    return BookingCommitService(db, payment_gateway)


def get_payment_handoff_service() -> PaymentHandoffService:
    return PaymentHandoffService()
