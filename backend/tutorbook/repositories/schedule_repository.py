# backend/tutorbook/repositories/schedule_repository.py
"""
Schedule Repository for Tutorbook

Persists recurring schedules together with their weekdays and time windows.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, selectinload

from ..core.exceptions import RepositoryException
from ..models.schedule import Schedule, ScheduleDay, ScheduleTimeWindow
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ScheduleRepository(BaseRepository[Schedule]):
    def __init__(self, db: Session):
        super().__init__(db, Schedule)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(selectinload(Schedule.days).selectinload(ScheduleDay.time_windows))

    def create_schedule(
        self,
        *,
        teacher_id: str,
        days: Sequence[Dict[str, Any]],
        **fields: Any,
    ) -> Schedule:
        """
        Create a schedule with its weekday rows.

        ``days`` items look like ``{"weekday": Weekday, "time_windows":
        [{"start": time, "end": time, "meeting_link": str | None}]}``.
        """
        try:
            schedule = Schedule(teacher_id=teacher_id, **fields)
            for day in days:
                weekday = day["weekday"]
                schedule.days.append(
                    ScheduleDay(
                        weekday=weekday.value,
                        weekday_index=list(type(weekday)).index(weekday),
                        time_windows=[
                            ScheduleTimeWindow(
                                start_time=window["start"],
                                end_time=window["end"],
                                meeting_link=window.get("meeting_link"),
                            )
                            for window in day.get("time_windows", [])
                        ],
                    )
                )
            self.db.add(schedule)
            self.db.flush()
            return schedule
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating schedule for teacher {teacher_id}: {str(e)}")
            raise RepositoryException(f"Failed to create Schedule: {str(e)}") from e

    def list_for_teacher(self, teacher_id: str) -> List[Schedule]:
        try:
            return (
                self._apply_eager_loading(self.db.query(Schedule))
                .filter(Schedule.teacher_id == teacher_id)
                .order_by(Schedule.from_date)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing schedules for teacher {teacher_id}: {str(e)}")
            raise RepositoryException(f"Failed to list schedules: {str(e)}") from e

    def bump_version(self, schedule_id: str) -> bool:
        """
        Increment ``schedules.version`` for ``schedule_id``.

        Takes the row lock on PostgreSQL and the write lock on SQLite; held
        until the surrounding transaction ends. Returns False when the
        schedule does not exist.
        """
        result = self.db.execute(
            update(Schedule)
            .where(Schedule.id == schedule_id)
            .values(version=Schedule.version + 1)
            .execution_options(synchronize_session=False)
        )
        return bool(result.rowcount)

    def get_locked(self, schedule_id: str) -> Optional[Schedule]:
        """Reload a schedule after ``bump_version`` so capacity and days are current."""
        return (
            self._apply_eager_loading(self.db.query(Schedule))
            .populate_existing()
            .filter(Schedule.id == schedule_id)
            .first()
        )
