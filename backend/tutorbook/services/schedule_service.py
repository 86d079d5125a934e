# backend/tutorbook/services/schedule_service.py
"""
Schedule Service for Tutorbook

Creates and reads teachers' recurring weekly schedules.
"""

import logging
from typing import List

from sqlalchemy.orm import Session

from ..core.exceptions import NotFoundException, ValidationException
from ..domain.schedule import effective_capacity
from ..models.schedule import Schedule
from ..repositories.factory import RepositoryFactory
from ..schemas.schedule import ScheduleCreate
from .base import BaseService

logger = logging.getLogger(__name__)


class ScheduleService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.schedule_repository = RepositoryFactory.create_schedule_repository(db)

    @BaseService.measure_operation("create_schedule")
    def create_schedule(self, teacher_id: str, data: ScheduleCreate) -> Schedule:
        """
        Persist a new schedule for ``teacher_id``.

        One-to-one schedules are stored with capacity 1 whatever was sent.

        Raises:
            ValidationException: If the slot type and capacity do not fit together
        """
        try:
            capacity = effective_capacity(data.slot_type, data.capacity)
        except ValueError as exc:
            raise ValidationException(str(exc), code="INVALID_CAPACITY") from exc

        with self.transaction():
            schedule = self.schedule_repository.create_schedule(
                teacher_id=teacher_id,
                subject=data.subject.strip(),
                title=data.title.strip(),
                description=data.description,
                from_date=data.from_date,
                to_date=data.to_date,
                slot_type=data.slot_type.value,
                capacity=capacity,
                price=data.price,
                location=(data.location or "").strip() or None,
                days=[
                    {
                        "weekday": day.weekday,
                        "time_windows": [window.model_dump() for window in day.time_windows],
                    }
                    for day in data.days
                ],
            )

        self.log_operation(
            "create_schedule",
            schedule_id=schedule.id,
            teacher_id=teacher_id,
            slot_type=schedule.slot_type,
            capacity=capacity,
        )
        return schedule

    def get_schedule(self, schedule_id: str) -> Schedule:
        schedule = self.schedule_repository.get_by_id(schedule_id)
        if schedule is None:
            raise NotFoundException(
                "Schedule not found",
                code="SCHEDULE_NOT_FOUND",
                details={"schedule_id": schedule_id},
            )
        return schedule

    def list_for_teacher(self, teacher_id: str) -> List[Schedule]:
        return self.schedule_repository.list_for_teacher(teacher_id)
