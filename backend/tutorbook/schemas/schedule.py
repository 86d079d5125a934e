# backend/tutorbook/schemas/schedule.py
"""
Schedule schemas for Tutorbook.

Dates travel as ``YYYY-MM-DD`` and times as 24-hour ``HH:MM`` in both
directions.
"""

from datetime import date, time
from typing import Dict, List, Optional

from pydantic import Field, ValidationInfo, field_validator, model_validator

from ..core.enums import SlotType, Weekday
from ..core.exceptions import ValidationException
from ..core.timezone_utils import parse_time_of_day
from ..domain.schedule import effective_capacity
from .base import Money, StrictModel, StrictRequestModel, ensure_date_only


class TimeWindowCreate(StrictRequestModel):
    start: time = Field(..., description="Window start, HH:MM")
    end: time = Field(..., description="Window end, HH:MM")
    meeting_link: Optional[str] = Field(None, max_length=2000)

    @field_validator("start", "end", mode="before")
    @classmethod
    def _parse_hh_mm(cls, v: object) -> object:
        if isinstance(v, str):
            try:
                return parse_time_of_day(v)
            except ValidationException as exc:
                raise ValueError(exc.message) from exc
        return v

    @model_validator(mode="after")
    def _validate_order(self) -> "TimeWindowCreate":
        if self.start >= self.end:
            raise ValueError("Time window end must be after start")
        return self


class ScheduleDayCreate(StrictRequestModel):
    weekday: Weekday
    time_windows: List[TimeWindowCreate] = Field(..., min_length=1)


class ScheduleCreate(StrictRequestModel):
    """
    Create a recurring weekly schedule.

    ``slot_type`` decides capacity: one-to-one always seats one student,
    group and in-person schedules must give ``capacity``. In-person
    schedules also need a ``location``.
    """

    subject: str = Field(..., min_length=1, max_length=120)
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    from_date: date
    to_date: date
    slot_type: SlotType = SlotType.ONE_TO_ONE
    capacity: Optional[int] = Field(None, ge=1, le=500)
    price: Money = Field(..., description="Price per seat")
    location: Optional[str] = Field(None, max_length=500)
    days: List[ScheduleDayCreate] = Field(..., min_length=1)

    @field_validator("from_date", "to_date", mode="before")
    @classmethod
    def _enforce_date_only(cls, v: object, info: ValidationInfo) -> object:
        return ensure_date_only(v, info.field_name or "date")

    @field_validator("price")
    @classmethod
    def _non_negative_price(cls, v: Money) -> Money:
        if v < 0:
            raise ValueError("price must be non-negative")
        return v

    @model_validator(mode="after")
    def _validate_schedule(self) -> "ScheduleCreate":
        if self.from_date > self.to_date:
            raise ValueError("from_date must be on or before to_date")

        weekdays = [day.weekday for day in self.days]
        if len(weekdays) != len(set(weekdays)):
            raise ValueError("Each weekday may appear at most once")

        if self.slot_type is SlotType.IN_PERSON and not (self.location or "").strip():
            raise ValueError("In-person schedules require a location")

        effective_capacity(self.slot_type, self.capacity)
        return self


class TimeWindowResponse(StrictModel):
    start: str
    end: str
    meeting_link: Optional[str] = None


class ScheduleDayResponse(StrictModel):
    weekday: Weekday
    time_windows: List[TimeWindowResponse]


class DailyAvailabilityResponse(StrictModel):
    weekday: Weekday
    total_capacity: int
    booked: int
    available: int
    time_windows: List[TimeWindowResponse] = Field(default_factory=list)


class BookedSlotSummary(StrictModel):
    scheduled_date: str
    status: str


class ScheduleResponse(StrictModel):
    id: str
    teacher_id: str
    subject: str
    title: str
    description: Optional[str] = None
    from_date: str
    to_date: str
    slot_type: SlotType
    capacity: int
    price: Money
    location: Optional[str] = None
    days: List[ScheduleDayResponse]


class ScheduleDetailResponse(ScheduleResponse):
    """Schedule plus its bookable dates inside the requested window."""

    available_dates: List[str]
    daily_available_seats: Dict[str, DailyAvailabilityResponse]
    booked_slots: List[BookedSlotSummary]
