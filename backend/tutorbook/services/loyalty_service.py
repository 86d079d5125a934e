# backend/tutorbook/services/loyalty_service.py
"""
Loyalty point discounting.

One point is worth one currency unit. Only whole points are redeemed, and a
redemption never exceeds the price, the student's balance, or what the
student asked for.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal
import logging

from sqlalchemy.orm import Session

from ..core.exceptions import ValidationException
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


@dataclass(frozen=True)
class PointsDiscount:
    points_applied: int
    final_amount: Decimal


def max_redeemable_points(price: Decimal, balance: int) -> int:
    """Upper bound offered to the student for a given price."""
    whole_price = int(Decimal(price).to_integral_value(rounding=ROUND_FLOOR))
    return max(0, min(balance, whole_price))


def calculate_points_discount(points_requested: int, price: Decimal, balance: int) -> PointsDiscount:
    """
    Apply a points redemption to a price.

    ``points_applied = max(0, min(points_requested, floor(price), balance))``
    and ``final_amount = max(0, price - points_applied)``.

    Raises:
        ValidationException: If ``points_requested`` is negative
    """
    if points_requested < 0:
        raise ValidationException(
            "points_to_use cannot be negative",
            code="INVALID_POINTS",
            details={"points_requested": points_requested},
        )
    price = Decimal(price)
    applied = min(points_requested, max_redeemable_points(price, max(balance, 0)))
    final_amount = max(Decimal("0"), price - applied).quantize(CENT, rounding=ROUND_HALF_UP)
    return PointsDiscount(points_applied=applied, final_amount=final_amount)


class LoyaltyService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.loyalty_repository = RepositoryFactory.create_loyalty_repository(db)

    def get_balance(self, student_id: str) -> int:
        return self.loyalty_repository.get_balance(student_id)

    @BaseService.measure_operation("quote_points")
    def quote(self, student_id: str, price: Decimal, points_requested: int) -> PointsDiscount:
        """Discount for ``student_id`` using their current balance."""
        balance = self.get_balance(student_id)
        discount = calculate_points_discount(points_requested, price, balance)
        if discount.points_applied < points_requested:
            self.logger.info(
                "Capped points redemption for %s: requested=%s applied=%s balance=%s",
                student_id,
                points_requested,
                discount.points_applied,
                balance,
            )
        return discount
