"""
Repository layer for Tutorbook.

Repositories encapsulate data access; services own the transactions.
"""

from .base_repository import BaseRepository
from .booked_slot_repository import BookedSlotRepository
from .factory import RepositoryFactory
from .loyalty_repository import LoyaltyRepository
from .reconciliation_repository import ReconciliationRepository
from .schedule_repository import ScheduleRepository

__all__ = [
    "BaseRepository",
    "BookedSlotRepository",
    "LoyaltyRepository",
    "ReconciliationRepository",
    "RepositoryFactory",
    "ScheduleRepository",
]
