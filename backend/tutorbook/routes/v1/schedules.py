# backend/tutorbook/routes/v1/schedules.py
"""
Schedule routes - API v1

Endpoints:
    POST / - Create a recurring schedule for the acting teacher
    GET /{schedule_id} - Schedule with bookable dates and seat counts
    GET /{schedule_id}/calendar - 42-cell month grid annotated with availability
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ...api.dependencies import (
    get_availability_service,
    get_current_user_id,
    get_schedule_service,
)
from ...core.exceptions import DomainException
from ...core.timezone_utils import local_today, parse_date_key
from ...schemas.calendar import CalendarMonthResponse
from ...schemas.schedule import ScheduleCreate, ScheduleDetailResponse, ScheduleResponse
from ...services.availability_service import AvailabilityService, serialize_schedule
from ...services.calendar_grid import build_grid, build_month_view
from ...services.schedule_service import ScheduleService

logger = logging.getLogger(__name__)

# V1 router - mounted at /api/v1/schedules
router = APIRouter(tags=["schedules-v1"])


@router.post("", response_model=ScheduleResponse, status_code=status.HTTP_201_CREATED)
def create_schedule(
    payload: ScheduleCreate,
    teacher_id: str = Depends(get_current_user_id),
    schedule_service: ScheduleService = Depends(get_schedule_service),
) -> ScheduleResponse:
    """Publish a recurring weekly schedule."""
    try:
        schedule = schedule_service.create_schedule(teacher_id, payload)
    except DomainException as exc:
        raise exc.to_http_exception() from exc
    return ScheduleResponse(**serialize_schedule(schedule))


@router.get("/{schedule_id}", response_model=ScheduleDetailResponse)
def get_schedule(
    schedule_id: str,
    start: Optional[str] = Query(None, description="Window start, YYYY-MM-DD"),
    end: Optional[str] = Query(None, description="Window end, YYYY-MM-DD"),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> ScheduleDetailResponse:
    """Schedule detail with ``available_dates``, ``daily_available_seats`` and ``booked_slots``."""
    try:
        detail = availability_service.get_schedule_detail(
            schedule_id,
            window_start=parse_date_key(start) if start else None,
            window_end=parse_date_key(end) if end else None,
        )
    except DomainException as exc:
        raise exc.to_http_exception() from exc
    return ScheduleDetailResponse(**detail)


@router.get("/{schedule_id}/calendar", response_model=CalendarMonthResponse)
def get_schedule_calendar(
    schedule_id: str,
    year: Optional[int] = Query(None, description="Defaults to the current local year"),
    month: Optional[int] = Query(None, description="1-12, defaults to the current local month"),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> CalendarMonthResponse:
    today = local_today()
    year = year if year is not None else today.year
    month = month if month is not None else today.month
    try:
        grid = build_grid(year, month)
        availability = availability_service.get_availability(
            schedule_id,
            window_start=grid[0].date,
            window_end=grid[-1].date,
            today=today,
        )
    except DomainException as exc:
        raise exc.to_http_exception() from exc

    return CalendarMonthResponse(
        schedule_id=schedule_id,
        year=year,
        month=month,
        cells=build_month_view(year, month, availability),
    )
