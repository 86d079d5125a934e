# backend/tutorbook/models/loyalty.py
"""Loyalty point balances. One point is worth one currency unit."""

from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String

from ..database import Base


class LoyaltyAccount(Base):
    __tablename__ = "loyalty_accounts"

    student_id = Column(String(26), primary_key=True)
    points_balance = Column(Integer, nullable=False, default=0)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=True,
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        CheckConstraint("points_balance >= 0", name="ck_loyalty_accounts_balance_non_negative"),
    )
