# backend/tests/factories/schedule_builders.py
"""Builders for schedules, loyalty balances and committed seats."""

from datetime import date, time
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from tutorbook.core.enums import SlotType, Weekday
from tutorbook.core.ulid_helper import generate_ulid
from tutorbook.models.booked_slot import BookedSlot
from tutorbook.models.schedule import Schedule
from tutorbook.repositories.booked_slot_repository import BookedSlotRepository
from tutorbook.repositories.loyalty_repository import LoyaltyRepository
from tutorbook.repositories.schedule_repository import ScheduleRepository


def create_schedule(
    db: Session,
    *,
    from_date: date,
    to_date: date,
    weekdays: Iterable[Weekday] = (Weekday.MONDAY,),
    slot_type: SlotType = SlotType.ONE_TO_ONE,
    capacity: int = 1,
    price: Decimal = Decimal("40.00"),
    teacher_id: Optional[str] = None,
    location: Optional[str] = None,
) -> Schedule:
    """Persist a schedule with one 17:00-18:00 window on each weekday."""
    schedule = ScheduleRepository(db).create_schedule(
        teacher_id=teacher_id or generate_ulid(),
        subject="Mathematics",
        title="Algebra II",
        description=None,
        from_date=from_date,
        to_date=to_date,
        slot_type=slot_type.value,
        capacity=capacity,
        price=price,
        location=location,
        days=[
            {
                "weekday": weekday,
                "time_windows": [
                    {"start": time(17, 0), "end": time(18, 0), "meeting_link": None}
                ],
            }
            for weekday in weekdays
        ],
    )
    db.commit()
    return schedule


def credit_points(db: Session, student_id: str, points: int) -> None:
    LoyaltyRepository(db).credit_points(student_id, points)
    db.commit()


def commit_seat(
    db: Session,
    schedule: Schedule,
    scheduled_date: date,
    *,
    student_id: Optional[str] = None,
    payment_reference: Optional[str] = None,
    points_applied: int = 0,
    amount_paid: Decimal = Decimal("40.00"),
) -> BookedSlot:
    slot = BookedSlotRepository(db).commit_booking(
        schedule_id=schedule.id,
        scheduled_date=scheduled_date,
        student_id=student_id or generate_ulid(),
        payment_reference=payment_reference or f"pi_seed_{generate_ulid()}",
        points_applied=points_applied,
        amount_paid=amount_paid,
    )
    db.commit()
    return slot
