# backend/tutorbook/repositories/booked_slot_repository.py
"""
BookedSlot Repository for Tutorbook

Implements the seat commit: the single place where capacity is enforced.

commit_booking() runs inside the caller's transaction and:
1. Bumps ``schedules.version`` (row lock on PostgreSQL, write lock on SQLite)
2. Returns the existing slot if the payment reference was already committed
3. Re-checks the date against the schedule's range and weekdays
4. Re-counts committed slots for the date and refuses when full
5. Inserts the BookedSlot and redeems the loyalty points
"""

from datetime import date
from decimal import Decimal
import logging
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import BookedSlotStatus
from ..core.exceptions import (
    AvailabilityConflictException,
    NotFoundException,
    RepositoryException,
    booking_context,
)
from ..domain.schedule import ScheduleDefinition
from ..models.booked_slot import BookedSlot
from .base_repository import BaseRepository
from .loyalty_repository import LoyaltyRepository
from .schedule_repository import ScheduleRepository

logger = logging.getLogger(__name__)


class BookedSlotRepository(BaseRepository[BookedSlot]):
    def __init__(self, db: Session):
        super().__init__(db, BookedSlot)
        self.schedule_repository = ScheduleRepository(db)
        self.loyalty_repository = LoyaltyRepository(db)

    def count_committed_by_date(
        self,
        schedule_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Dict[date, int]:
        """Committed seat counts per date for a schedule."""
        try:
            query = self.db.query(BookedSlot.scheduled_date, func.count(BookedSlot.id)).filter(
                BookedSlot.schedule_id == schedule_id,
                BookedSlot.status == BookedSlotStatus.COMMITTED.value,
            )
            if start_date is not None:
                query = query.filter(BookedSlot.scheduled_date >= start_date)
            if end_date is not None:
                query = query.filter(BookedSlot.scheduled_date <= end_date)
            rows = query.group_by(BookedSlot.scheduled_date).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error counting booked slots for schedule {schedule_id}: {str(e)}")
            raise RepositoryException(f"Failed to count booked slots: {str(e)}") from e
        return {row[0]: int(row[1]) for row in rows}

    def count_committed_on(self, schedule_id: str, scheduled_date: date) -> int:
        return (
            self.db.query(func.count(BookedSlot.id))
            .filter(
                BookedSlot.schedule_id == schedule_id,
                BookedSlot.scheduled_date == scheduled_date,
                BookedSlot.status == BookedSlotStatus.COMMITTED.value,
            )
            .scalar()
            or 0
        )

    def list_for_schedule(
        self,
        schedule_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[BookedSlot]:
        try:
            query = self.db.query(BookedSlot).filter(BookedSlot.schedule_id == schedule_id)
            if start_date is not None:
                query = query.filter(BookedSlot.scheduled_date >= start_date)
            if end_date is not None:
                query = query.filter(BookedSlot.scheduled_date <= end_date)
            return query.order_by(BookedSlot.scheduled_date, BookedSlot.created_at).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing booked slots for schedule {schedule_id}: {str(e)}")
            raise RepositoryException(f"Failed to list booked slots: {str(e)}") from e

    def get_by_payment_reference(self, payment_reference: str) -> Optional[BookedSlot]:
        return self.find_one_by(payment_reference=payment_reference)

    def commit_booking(
        self,
        *,
        schedule_id: str,
        scheduled_date: date,
        student_id: str,
        payment_reference: str,
        points_applied: int,
        amount_paid: Decimal,
    ) -> BookedSlot:
        """
        Commit one seat. Must run inside a transaction owned by the caller.

        Raises:
            NotFoundException: If the schedule no longer exists
            AvailabilityConflictException: If the date is full or no longer offered
            InsufficientPointsException: If the points balance no longer covers the redemption
            RepositoryException: If the insert fails
        """
        context = booking_context(
            schedule_id=schedule_id,
            scheduled_date=scheduled_date,
            payment_reference=payment_reference,
        )

        if not self.schedule_repository.bump_version(schedule_id):
            raise NotFoundException("Schedule not found", code="SCHEDULE_NOT_FOUND", details=context)

        existing = self.get_by_payment_reference(payment_reference)
        if existing is not None:
            self.logger.info(
                "Payment reference %s already committed as %s", payment_reference, existing.id
            )
            return existing

        schedule = self.schedule_repository.get_locked(schedule_id)
        if schedule is None:
            raise NotFoundException("Schedule not found", code="SCHEDULE_NOT_FOUND", details=context)
        definition = ScheduleDefinition.from_model(schedule)

        if not definition.offers(scheduled_date):
            raise AvailabilityConflictException(
                "This date is no longer offered by the schedule.",
                details={**context, "reason": "not_offered"},
            )

        booked = self.count_committed_on(schedule_id, scheduled_date)
        if booked >= definition.capacity:
            raise AvailabilityConflictException(
                details={**context, "capacity": definition.capacity, "booked_count": booked},
            )

        slot = self.create(
            schedule_id=schedule_id,
            scheduled_date=scheduled_date,
            student_id=student_id,
            payment_reference=payment_reference,
            points_redeemed=points_applied,
            amount_paid=amount_paid,
            status=BookedSlotStatus.COMMITTED.value,
        )
        self.loyalty_repository.redeem_points(student_id, points_applied)
        return slot
