# backend/tutorbook/repositories/factory.py
"""
Repository Factory for Tutorbook

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .booked_slot_repository import BookedSlotRepository
    from .loyalty_repository import LoyaltyRepository
    from .reconciliation_repository import ReconciliationRepository
    from .schedule_repository import ScheduleRepository


class RepositoryFactory:
    """Factory class for creating repository instances."""

    @staticmethod
    def create_schedule_repository(db: Session) -> "ScheduleRepository":
        from .schedule_repository import ScheduleRepository

        return ScheduleRepository(db)

    @staticmethod
    def create_booked_slot_repository(db: Session) -> "BookedSlotRepository":
        """Create repository for seat counting and commits."""
        from .booked_slot_repository import BookedSlotRepository

        return BookedSlotRepository(db)

    @staticmethod
    def create_loyalty_repository(db: Session) -> "LoyaltyRepository":
        from .loyalty_repository import LoyaltyRepository

        return LoyaltyRepository(db)

    @staticmethod
    def create_reconciliation_repository(db: Session) -> "ReconciliationRepository":
        from .reconciliation_repository import ReconciliationRepository

        return ReconciliationRepository(db)
