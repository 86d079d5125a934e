# backend/tutorbook/models/booked_slot.py
"""
BookedSlot model.

A BookedSlot is a committed reservation of one seat on one concrete date of a
schedule. It is created only after the payment processor authorized the
charge (or the price was fully covered by loyalty points).
"""

from datetime import datetime, timezone

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import relationship
import ulid

from ..core.enums import BookedSlotStatus
from ..database import Base


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class BookedSlot(Base):
    __tablename__ = "booked_slots"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    schedule_id = Column(
        String(26), ForeignKey("schedules.id", ondelete="CASCADE"), nullable=False
    )
    scheduled_date = Column(Date, nullable=False)
    student_id = Column(String(26), nullable=False, index=True)
    session_id = Column(String(26), nullable=False, default=lambda: str(ulid.ULID()))

    payment_reference = Column(
        String(255), nullable=False, unique=True, comment="Stripe PaymentIntent id or points_only_ ref"
    )
    points_redeemed = Column(Integer, nullable=False, default=0)
    amount_paid = Column(Numeric(10, 2), nullable=False, default=0)

    status = Column(String(20), nullable=False, default=BookedSlotStatus.COMMITTED.value, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now_utc)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    schedule = relationship("Schedule", backref="booked_slots")

    __table_args__ = (
        Index("ix_booked_slots_schedule_date_status", "schedule_id", "scheduled_date", "status"),
    )

    @property
    def is_committed(self) -> bool:
        return self.status == BookedSlotStatus.COMMITTED.value

    def __repr__(self) -> str:
        return f"<BookedSlot {self.id} {self.schedule_id}@{self.scheduled_date} {self.status}>"
