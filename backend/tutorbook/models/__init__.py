"""
Database models for Tutorbook.

- Recurring schedules (schedule, weekday, time window)
- Committed reservations
- Loyalty point balances
- Reconciliation records for payments whose seat commit failed
"""

from .booked_slot import BookedSlot
from .loyalty import LoyaltyAccount
from .reconciliation import ReconciliationRecord
from .schedule import Schedule, ScheduleDay, ScheduleTimeWindow

__all__ = [
    "BookedSlot",
    "LoyaltyAccount",
    "ReconciliationRecord",
    "Schedule",
    "ScheduleDay",
    "ScheduleTimeWindow",
]
