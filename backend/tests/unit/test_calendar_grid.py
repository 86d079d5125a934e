# backend/tests/unit/test_calendar_grid.py
from datetime import date

import pytest

from tutorbook.core.enums import Weekday
from tutorbook.core.exceptions import ValidationException
from tutorbook.services.availability_service import AvailabilityResult, DailyAvailability
from tutorbook.services.calendar_grid import GRID_CELLS, build_grid, build_month_view


@pytest.mark.parametrize(
    "year,month",
    [(2024, 2), (2024, 3), (2024, 9), (2026, 2), (2023, 1), (2024, 12)],
)
def test_grid_is_always_six_weeks(year, month):
    cells = build_grid(year, month)
    assert len(cells) == GRID_CELLS == 42
    # Sunday-first rows
    assert cells[0].date.weekday() == 6


def test_march_2024_starts_on_leading_february_days():
    cells = build_grid(2024, 3)
    # 2024-03-01 is a Friday: five leading cells from February
    assert [c.date_key for c in cells[:6]] == [
        "2024-02-25",
        "2024-02-26",
        "2024-02-27",
        "2024-02-28",
        "2024-02-29",
        "2024-03-01",
    ]
    assert not cells[0].is_current_month
    assert cells[5].is_current_month
    assert cells[-1].date == date(2024, 4, 6)
    assert sum(c.is_current_month for c in cells) == 31


def test_month_starting_on_sunday_has_no_leading_cells():
    cells = build_grid(2024, 9)
    assert cells[0].date == date(2024, 9, 1)
    assert cells[0].is_current_month


def test_cells_are_consecutive_days():
    cells = build_grid(2024, 12)
    for previous, current in zip(cells, cells[1:]):
        assert (current.date - previous.date).days == 1
    assert cells[-1].date.year == 2025


@pytest.mark.parametrize("month", [0, 13, -1])
def test_invalid_month(month):
    with pytest.raises(ValidationException) as exc_info:
        build_grid(2024, month)
    assert exc_info.value.code == "INVALID_MONTH"


@pytest.mark.parametrize("year, month", [(1, 1), (9999, 12)])
def test_unsupported_year(year, month):
    with pytest.raises(ValidationException) as exc_info:
        build_grid(year, month)
    assert exc_info.value.code == "INVALID_YEAR"


@pytest.mark.parametrize("year, month", [(1, 2), (9999, 11)])
def test_outermost_supported_months(year, month):
    assert len(build_grid(year, month)) == GRID_CELLS


def test_month_view_marks_available_cells():
    availability = AvailabilityResult(
        dates=["2024-03-04"],
        daily={
            "2024-03-04": DailyAvailability(
                date_key="2024-03-04",
                weekday=Weekday.MONDAY,
                total_capacity=3,
                booked_count=1,
            )
        },
    )
    view = build_month_view(2024, 3, availability)
    assert len(view) == 42
    by_date = {cell["date"]: cell for cell in view}
    assert by_date["2024-03-04"]["is_available"] is True
    assert by_date["2024-03-04"]["available_seats"] == 2
    assert by_date["2024-03-04"]["day"] == 4
    assert by_date["2024-03-11"]["is_available"] is False
    assert by_date["2024-03-11"]["available_seats"] == 0
