# backend/tutorbook/repositories/loyalty_repository.py
"""Loyalty point balances."""

import logging

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import InsufficientPointsException, RepositoryException
from ..models.loyalty import LoyaltyAccount
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class LoyaltyRepository(BaseRepository[LoyaltyAccount]):
    def __init__(self, db: Session):
        super().__init__(db, LoyaltyAccount)

    def get_balance(self, student_id: str) -> int:
        """Current points balance; students without an account have 0."""
        try:
            account = self.db.get(LoyaltyAccount, student_id)
        except SQLAlchemyError as e:
            self.logger.error(f"Error reading loyalty balance for {student_id}: {str(e)}")
            raise RepositoryException(f"Failed to read loyalty balance: {str(e)}") from e
        return int(account.points_balance) if account else 0

    def credit_points(self, student_id: str, points: int) -> int:
        """Add points to a balance, creating the account on first credit."""
        if points < 0:
            raise ValueError("points must be non-negative")
        account = self.db.get(LoyaltyAccount, student_id)
        if account is None:
            account = LoyaltyAccount(student_id=student_id, points_balance=0)
            self.db.add(account)
        account.points_balance = int(account.points_balance or 0) + points
        self.db.flush()
        return int(account.points_balance)

    def redeem_points(self, student_id: str, points: int) -> None:
        """
        Conditionally decrement a balance.

        The decrement only applies while ``points_balance >= points`` so two
        concurrent redemptions can never overdraw the account.

        Raises:
            InsufficientPointsException: If the balance no longer covers ``points``
        """
        if points <= 0:
            return
        result = self.db.execute(
            update(LoyaltyAccount)
            .where(
                LoyaltyAccount.student_id == student_id,
                LoyaltyAccount.points_balance >= points,
            )
            .values(points_balance=LoyaltyAccount.points_balance - points)
            .execution_options(synchronize_session=False)
        )
        if not result.rowcount:
            raise InsufficientPointsException(requested=points, available=self._raw_balance(student_id))

    def _raw_balance(self, student_id: str) -> int:
        value = (
            self.db.query(LoyaltyAccount.points_balance)
            .filter(LoyaltyAccount.student_id == student_id)
            .scalar()
        )
        return int(value or 0)
