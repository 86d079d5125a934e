# backend/tutorbook/schemas/calendar.py
from typing import List

from pydantic import Field

from .base import StrictModel


class CalendarCellResponse(StrictModel):
    date: str
    day: int
    is_current_month: bool
    is_available: bool = False
    available_seats: int = 0


class CalendarMonthResponse(StrictModel):
    schedule_id: str
    year: int
    month: int
    cells: List[CalendarCellResponse] = Field(..., min_length=42, max_length=42)
