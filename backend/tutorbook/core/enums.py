# backend/tutorbook/core/enums.py
"""
Core enums for the Tutorbook reservation engine.

These enums are shared by the ORM models, the pydantic schemas and the
services so that wire values stay consistent across layers.
"""

from enum import Enum


class Weekday(str, Enum):
    """
    Day-of-week names used by recurring schedules.

    Member order follows ``date.weekday()`` (Monday == 0).
    """

    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"

    @classmethod
    def from_index(cls, index: int) -> "Weekday":
        return list(cls)[index]


class SlotType(str, Enum):
    """
    How a schedule's sessions are delivered.

    One-to-one sessions always seat a single student; group and in-person
    sessions seat up to the schedule's capacity.
    """

    ONE_TO_ONE = "one_to_one"
    GROUP = "group"
    IN_PERSON = "in_person"


class BookedSlotStatus(str, Enum):
    COMMITTED = "committed"
    CANCELLED = "cancelled"


class IntentStatus(str, Enum):
    """Lifecycle of an ephemeral booking intent."""

    CREATED = "created"
    AUTHORIZING = "authorizing"
    AUTHORIZED = "authorized"
    FAILED = "failed"


class AuthorizationOutcome(str, Enum):
    """Normalized answer from the payment processor."""

    AUTHORIZED = "authorized"
    DECLINED = "declined"
    INDETERMINATE = "indeterminate"


class BookingOutcome(str, Enum):
    """Terminal result of a confirmation attempt as seen by the student."""

    COMMITTED = "committed"
    RECONCILIATION_REQUIRED = "reconciliation_required"
