"""Schedule domain values shared across services, repositories and schemas."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple

from ..core.enums import SlotType, Weekday

if TYPE_CHECKING:
    from ..models.schedule import Schedule


def effective_capacity(slot_type: SlotType | str, requested: Optional[int]) -> int:
    """
    Seats per occurrence for a slot type.

    One-to-one sessions always seat exactly one student. Group and in-person
    sessions use the requested capacity, which must be at least 1.
    """
    kind = SlotType(slot_type)
    if kind is SlotType.ONE_TO_ONE:
        return 1
    if kind is SlotType.GROUP or kind is SlotType.IN_PERSON:
        if requested is None or requested < 1:
            raise ValueError(f"{kind.value} schedules need a capacity of at least 1")
        return int(requested)
    raise ValueError(f"Unhandled slot type: {kind!r}")


@dataclass(frozen=True)
class TimeWindow:
    start: time
    end: time
    meeting_link: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        return {
            "start": f"{self.start.hour:02d}:{self.start.minute:02d}",
            "end": f"{self.end.hour:02d}:{self.end.minute:02d}",
            "meeting_link": self.meeting_link,
        }


@dataclass(frozen=True)
class ScheduleDefinition:
    """
    Immutable snapshot of a recurring schedule.

    ``days`` maps each offered weekday to its (informational) time windows.
    """

    id: str
    from_date: date
    to_date: date
    slot_type: SlotType
    capacity: int
    price: Decimal
    days: Dict[Weekday, Tuple[TimeWindow, ...]] = field(default_factory=dict)

    @property
    def weekdays(self) -> frozenset[Weekday]:
        return frozenset(self.days)

    def offers(self, day: date) -> bool:
        """True when ``day`` is inside the range and on an offered weekday."""
        if day < self.from_date or day > self.to_date:
            return False
        return Weekday.from_index(day.weekday()) in self.days

    @classmethod
    def from_model(cls, schedule: "Schedule") -> "ScheduleDefinition":
        days: Dict[Weekday, Tuple[TimeWindow, ...]] = {}
        for day in schedule.days:
            days[Weekday(day.weekday)] = tuple(
                TimeWindow(
                    start=window.start_time,
                    end=window.end_time,
                    meeting_link=window.meeting_link,
                )
                for window in day.time_windows
            )
        return cls(
            id=schedule.id,
            from_date=schedule.from_date,
            to_date=schedule.to_date,
            slot_type=SlotType(schedule.slot_type),
            capacity=effective_capacity(schedule.slot_type, schedule.capacity),
            price=Decimal(str(schedule.price)),
            days=days,
        )
