# backend/tutorbook/services/calendar_grid.py
"""
Month calendar grid.

A month is always rendered as six Sunday-first weeks (42 cells). Leading
cells come from the previous month and trailing cells from the next month so
the grid never changes height between months.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import TYPE_CHECKING, List

from ..core.exceptions import ValidationException
from ..core.timezone_utils import to_date_key

if TYPE_CHECKING:
    from .availability_service import AvailabilityResult

GRID_CELLS = 42
DAYS_PER_WEEK = 7


@dataclass(frozen=True)
class CalendarCell:
    date: date
    is_current_month: bool

    @property
    def date_key(self) -> str:
        return to_date_key(self.date)


def _leading_days(first_of_month: date) -> int:
    # date.weekday(): Monday == 0 ... Sunday == 6
    return (first_of_month.weekday() + 1) % DAYS_PER_WEEK


def build_grid(year: int, month: int) -> List[CalendarCell]:
    """
    Build the 42-cell grid for ``year``/``month``.

    Supported months run from 0001-02 to 9999-11; the padding cells of
    0001-01 and 9999-12 fall outside the range of ``datetime.date``.

    Raises:
        ValidationException: If the month is outside 1..12 or the year is unsupported
    """
    if not 1 <= month <= 12:
        raise ValidationException(
            f"Invalid month {month}; expected 1-12",
            code="INVALID_MONTH",
            details={"year": year, "month": month},
        )
    try:
        first = date(year, month, 1)
        grid_start = first - timedelta(days=_leading_days(first))
        cells = [grid_start + timedelta(days=offset) for offset in range(GRID_CELLS)]
    except (ValueError, OverflowError) as exc:
        raise ValidationException(
            f"Unsupported year {year}",
            code="INVALID_YEAR",
            details={"year": year, "month": month},
        ) from exc

    return [
        CalendarCell(date=cell, is_current_month=(cell.month == month and cell.year == year))
        for cell in cells
    ]


def build_month_view(year: int, month: int, availability: "AvailabilityResult") -> List[dict]:
    """Grid cells annotated with bookability for one schedule."""
    view = []
    for cell in build_grid(year, month):
        key = cell.date_key
        daily = availability.daily.get(key)
        view.append(
            {
                "date": key,
                "day": cell.date.day,
                "is_current_month": cell.is_current_month,
                "is_available": daily is not None,
                "available_seats": daily.available if daily is not None else 0,
            }
        )
    return view
