# backend/tutorbook/services/availability_service.py
"""
Availability Service for Tutorbook

Expands a recurring weekly schedule into the concrete dates a student can
book. ``calculate_availability`` is a pure function over a schedule snapshot
and per-date committed seat counts; ``AvailabilityService`` feeds it from the
database.

The result is advisory: the seat commit re-checks capacity inside its own
transaction.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.enums import Weekday
from ..core.exceptions import NotFoundException, ValidationException
from ..core.timezone_utils import format_time_of_day, iter_days, local_today, to_date_key
from ..domain.schedule import ScheduleDefinition, TimeWindow
from ..models.schedule import Schedule
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DailyAvailability:
    date_key: str
    weekday: Weekday
    total_capacity: int
    booked_count: int
    time_windows: Tuple[TimeWindow, ...] = ()

    @property
    def available(self) -> int:
        return self.total_capacity - self.booked_count


@dataclass(frozen=True)
class AvailabilityResult:
    dates: List[str] = field(default_factory=list)
    daily: Dict[str, DailyAvailability] = field(default_factory=dict)

    def __contains__(self, date_key: object) -> bool:
        return date_key in self.daily

    def restrict(self, start: Optional[date], end: Optional[date]) -> "AvailabilityResult":
        """Keep only dates inside ``[start, end]`` (either bound optional)."""
        start_key = to_date_key(start) if start else None
        end_key = to_date_key(end) if end else None
        kept = [
            key
            for key in self.dates
            if (start_key is None or key >= start_key) and (end_key is None or key <= end_key)
        ]
        return AvailabilityResult(dates=kept, daily={key: self.daily[key] for key in kept})


def calculate_availability(
    schedule: ScheduleDefinition,
    booked_counts: Mapping[date, int],
    today: date,
) -> AvailabilityResult:
    """
    Compute the bookable dates of a schedule.

    A date qualifies when it lies in ``[max(from_date, today), to_date]``,
    falls on one of the schedule's weekdays, and has fewer committed seats
    than the schedule's capacity. Today itself is eligible.

    Args:
        schedule: Schedule snapshot
        booked_counts: Committed seats per date
        today: Local "today", computed once by the caller

    Returns:
        Ascending date keys plus per-date seat detail
    """
    start = max(schedule.from_date, today)
    end = schedule.to_date
    result = AvailabilityResult()
    if start > end or not schedule.days:
        return result

    for day in iter_days(start, end):
        weekday = Weekday.from_index(day.weekday())
        windows = schedule.days.get(weekday)
        if windows is None:
            continue
        booked = booked_counts.get(day, 0)
        if booked >= schedule.capacity:
            continue
        key = to_date_key(day)
        result.dates.append(key)
        result.daily[key] = DailyAvailability(
            date_key=key,
            weekday=weekday,
            total_capacity=schedule.capacity,
            booked_count=booked,
            time_windows=windows,
        )
    return result


class AvailabilityService(BaseService):
    """Loads schedules and seat counts and runs the availability calculation."""

    def __init__(self, db: Session):
        super().__init__(db)
        self.schedule_repository = RepositoryFactory.create_schedule_repository(db)
        self.booked_slot_repository = RepositoryFactory.create_booked_slot_repository(db)

    def _load_schedule(self, schedule_id: str) -> Schedule:
        schedule = self.schedule_repository.get_by_id(schedule_id)
        if schedule is None:
            raise NotFoundException(
                "Schedule not found",
                code="SCHEDULE_NOT_FOUND",
                details={"schedule_id": schedule_id},
            )
        return schedule

    @BaseService.measure_operation("get_availability")
    def get_availability(
        self,
        schedule_id: str,
        *,
        window_start: Optional[date] = None,
        window_end: Optional[date] = None,
        today: Optional[date] = None,
    ) -> AvailabilityResult:
        if window_start and window_end and window_start > window_end:
            raise ValidationException(
                "start must be on or before end",
                code="INVALID_WINDOW",
                details={"start": to_date_key(window_start), "end": to_date_key(window_end)},
            )
        definition = ScheduleDefinition.from_model(self._load_schedule(schedule_id))
        return self._calculate(definition, today or local_today()).restrict(
            window_start, window_end
        )

    def _calculate(self, definition: ScheduleDefinition, today: date) -> AvailabilityResult:
        counts = self.booked_slot_repository.count_committed_by_date(
            definition.id, start_date=max(definition.from_date, today), end_date=definition.to_date
        )
        return calculate_availability(definition, counts, today)

    @BaseService.measure_operation("get_schedule_detail")
    def get_schedule_detail(
        self,
        schedule_id: str,
        *,
        window_start: Optional[date] = None,
        window_end: Optional[date] = None,
        today: Optional[date] = None,
    ) -> Dict[str, Any]:
        """
        Schedule payload with ``available_dates``, ``daily_available_seats``
        and ``booked_slots`` for the requested window.
        """
        schedule = self._load_schedule(schedule_id)
        availability = self.get_availability(
            schedule_id, window_start=window_start, window_end=window_end, today=today
        )
        booked = self.booked_slot_repository.list_for_schedule(
            schedule_id, start_date=window_start, end_date=window_end
        )

        payload = serialize_schedule(schedule)
        payload["available_dates"] = list(availability.dates)
        payload["daily_available_seats"] = {
            key: {
                "weekday": daily.weekday,
                "total_capacity": daily.total_capacity,
                "booked": daily.booked_count,
                "available": daily.available,
                "time_windows": [window.to_payload() for window in daily.time_windows],
            }
            for key, daily in availability.daily.items()
        }
        payload["booked_slots"] = [
            {"scheduled_date": to_date_key(slot.scheduled_date), "status": slot.status}
            for slot in booked
        ]
        return payload


def serialize_schedule(schedule: Schedule) -> Dict[str, Any]:
    """Wire representation of a persisted schedule."""
    return {
        "id": schedule.id,
        "teacher_id": schedule.teacher_id,
        "subject": schedule.subject,
        "title": schedule.title,
        "description": schedule.description,
        "from_date": to_date_key(schedule.from_date),
        "to_date": to_date_key(schedule.to_date),
        "slot_type": schedule.slot_type,
        "capacity": schedule.capacity,
        "price": schedule.price,
        "location": schedule.location,
        "days": [
            {
                "weekday": day.weekday,
                "time_windows": [
                    {
                        "start": format_time_of_day(window.start_time),
                        "end": format_time_of_day(window.end_time),
                        "meeting_link": window.meeting_link,
                    }
                    for window in day.time_windows
                ],
            }
            for day in schedule.days
        ],
    }
