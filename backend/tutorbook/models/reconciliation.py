# backend/tutorbook/models/reconciliation.py
"""
Reconciliation records.

Written when the processor authorized a payment but the seat commit failed
for a reason other than a capacity conflict. An operator resolves each row by
either committing the seat manually or refunding the student.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, Date, DateTime, Integer, Numeric, String, Text
import ulid

from ..database import Base


class ReconciliationRecord(Base):
    __tablename__ = "booking_reconciliations"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    schedule_id = Column(String(26), nullable=False, index=True)
    scheduled_date = Column(Date, nullable=False)
    student_id = Column(String(26), nullable=False)
    payment_reference = Column(String(255), nullable=False, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    points_applied = Column(Integer, nullable=False, default=0)
    reason = Column(Text, nullable=False)
    error_type = Column(String(100), nullable=False)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )
    resolved_at = Column(DateTime(timezone=True), nullable=True)

    @property
    def is_resolved(self) -> bool:
        return self.resolved_at is not None
