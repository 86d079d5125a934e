"""
FastAPI dependencies for Tutorbook.
"""

from ...database import get_db
from .auth import get_current_user_id
from .services import (
    get_availability_service,
    get_booking_commit_service,
    get_booking_intent_service,
    get_payment_gateway,
    get_payment_handoff_service,
    get_schedule_service,
)

__all__ = [
    "get_availability_service",
    "get_booking_commit_service",
    "get_booking_intent_service",
    "get_current_user_id",
    "get_db",
    "get_payment_gateway",
    "get_payment_handoff_service",
    "get_schedule_service",
]
