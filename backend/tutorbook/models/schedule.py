# backend/tutorbook/models/schedule.py
"""
Recurring schedule models for Tutorbook.

A Schedule is a teacher's weekly offering over an inclusive date range.
Each ScheduleDay names one weekday and carries the time windows shown to
students; windows are informational and never split capacity.

The ``version`` column is bumped by every booking commit. That UPDATE is the
serialization point for concurrent commits against the same schedule.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
import ulid

from ..core.enums import SlotType, Weekday
from ..database import Base


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class Schedule(Base):
    __tablename__ = "schedules"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    teacher_id = Column(String(26), nullable=False, index=True)
    subject = Column(String(120), nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)

    from_date = Column(Date, nullable=False)
    to_date = Column(Date, nullable=False)

    slot_type = Column(String(20), nullable=False, default=SlotType.ONE_TO_ONE.value)
    capacity = Column(Integer, nullable=False, default=1)
    price = Column(Numeric(10, 2), nullable=False)
    location = Column(Text, nullable=True)

    version = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now_utc)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_now_utc)

    days = relationship(
        "ScheduleDay",
        back_populates="schedule",
        cascade="all, delete-orphan",
        order_by="ScheduleDay.weekday_index",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint("from_date <= to_date", name="ck_schedules_date_range"),
        CheckConstraint("capacity >= 1", name="ck_schedules_capacity_positive"),
        CheckConstraint("price >= 0", name="ck_schedules_price_non_negative"),
    )

    def __repr__(self) -> str:
        return (
            f"<Schedule {self.id} {self.subject!r} {self.from_date}..{self.to_date} "
            f"{self.slot_type} cap={self.capacity}>"
        )


class ScheduleDay(Base):
    __tablename__ = "schedule_days"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    schedule_id = Column(
        String(26), ForeignKey("schedules.id", ondelete="CASCADE"), nullable=False, index=True
    )
    weekday = Column(String(10), nullable=False)
    # Monday == 0, kept for ordering
    weekday_index = Column(Integer, nullable=False)

    schedule = relationship("Schedule", back_populates="days")
    time_windows = relationship(
        "ScheduleTimeWindow",
        back_populates="day",
        cascade="all, delete-orphan",
        order_by="ScheduleTimeWindow.start_time",
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint("schedule_id", "weekday", name="uq_schedule_days_schedule_weekday"),
    )

    @property
    def weekday_enum(self) -> Weekday:
        return Weekday(self.weekday)


class ScheduleTimeWindow(Base):
    __tablename__ = "schedule_time_windows"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    day_id = Column(
        String(26), ForeignKey("schedule_days.id", ondelete="CASCADE"), nullable=False, index=True
    )
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    meeting_link = Column(Text, nullable=True)

    day = relationship("ScheduleDay", back_populates="time_windows")

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_schedule_time_windows_order"),
    )
