# backend/tests/services/test_availability_service.py
from datetime import date, time
from decimal import Decimal

import pytest

from tests.factories.schedule_builders import commit_seat, create_schedule
from tutorbook.core.enums import SlotType, Weekday
from tutorbook.core.exceptions import NotFoundException, ValidationException
from tutorbook.domain.schedule import ScheduleDefinition, TimeWindow
from tutorbook.services.availability_service import AvailabilityService, calculate_availability


def _definition(**overrides):
    values = dict(
        id="sched",
        from_date=date(2024, 3, 1),
        to_date=date(2024, 3, 31),
        slot_type=SlotType.ONE_TO_ONE,
        capacity=1,
        price=Decimal("40.00"),
        days={Weekday.MONDAY: (TimeWindow(time(17, 0), time(18, 0)),)},
    )
    values.update(overrides)
    return ScheduleDefinition(**values)


class TestCalculateAvailability:
    def test_mondays_in_march_minus_booked_date(self):
        result = calculate_availability(
            _definition(), {date(2024, 3, 11): 1}, today=date(2024, 3, 1)
        )
        assert result.dates == ["2024-03-04", "2024-03-18", "2024-03-25"]

    def test_dates_are_ascending_and_unique(self):
        definition = _definition(
            days={
                Weekday.MONDAY: (),
                Weekday.WEDNESDAY: (),
                Weekday.FRIDAY: (),
            }
        )
        result = calculate_availability(definition, {}, today=date(2024, 3, 1))
        assert result.dates == sorted(set(result.dates))
        assert result.dates[:4] == ["2024-03-01", "2024-03-04", "2024-03-06", "2024-03-08"]

    def test_no_weekdays_means_no_dates(self):
        result = calculate_availability(_definition(days={}), {}, today=date(2024, 3, 1))
        assert result.dates == []

    def test_range_entirely_in_the_past(self):
        result = calculate_availability(_definition(), {}, today=date(2024, 4, 2))
        assert result.dates == []

    def test_today_is_bookable(self):
        result = calculate_availability(_definition(), {}, today=date(2024, 3, 18))
        assert result.dates == ["2024-03-18", "2024-03-25"]

    def test_fully_booked_group_date_is_excluded(self):
        definition = _definition(slot_type=SlotType.GROUP, capacity=3)
        result = calculate_availability(
            definition,
            {date(2024, 3, 4): 3, date(2024, 3, 11): 2},
            today=date(2024, 3, 1),
        )
        assert "2024-03-04" not in result
        assert result.daily["2024-03-11"].available == 1
        assert result.daily["2024-03-18"].available == 3

    def test_daily_detail_carries_time_windows(self):
        result = calculate_availability(_definition(), {}, today=date(2024, 3, 1))
        daily = result.daily["2024-03-04"]
        assert daily.weekday is Weekday.MONDAY
        assert daily.time_windows[0].start == time(17, 0)

    def test_restrict_keeps_window(self):
        result = calculate_availability(_definition(), {}, today=date(2024, 3, 1))
        restricted = result.restrict(date(2024, 3, 10), date(2024, 3, 20))
        assert restricted.dates == ["2024-03-11", "2024-03-18"]
        assert set(restricted.daily) == {"2024-03-11", "2024-03-18"}


class TestAvailabilityService:
    def test_committed_slot_removes_one_to_one_date(self, db, march_mondays):
        commit_seat(db, march_mondays, date(2024, 3, 11))

        result = AvailabilityService(db).get_availability(
            march_mondays.id, today=date(2024, 3, 1)
        )

        assert result.dates == ["2024-03-04", "2024-03-18", "2024-03-25"]

    def test_group_schedule_counts_seats(self, db):
        schedule = create_schedule(
            db,
            from_date=date(2024, 3, 1),
            to_date=date(2024, 3, 31),
            slot_type=SlotType.GROUP,
            capacity=2,
        )
        commit_seat(db, schedule, date(2024, 3, 4))

        result = AvailabilityService(db).get_availability(schedule.id, today=date(2024, 3, 1))

        assert result.daily["2024-03-04"].booked_count == 1
        assert result.daily["2024-03-04"].available == 1

    def test_window_restricts_result(self, db, march_mondays):
        result = AvailabilityService(db).get_availability(
            march_mondays.id,
            window_start=date(2024, 3, 4),
            window_end=date(2024, 3, 4),
            today=date(2024, 3, 1),
        )
        assert result.dates == ["2024-03-04"]

    def test_inverted_window_is_rejected(self, db, march_mondays):
        with pytest.raises(ValidationException) as exc_info:
            AvailabilityService(db).get_availability(
                march_mondays.id,
                window_start=date(2024, 3, 20),
                window_end=date(2024, 3, 10),
            )
        assert exc_info.value.code == "INVALID_WINDOW"

    def test_unknown_schedule(self, db):
        with pytest.raises(NotFoundException):
            AvailabilityService(db).get_availability("01HX00000000000000000000ZZ")

    def test_schedule_detail_payload(self, db, march_mondays):
        commit_seat(db, march_mondays, date(2024, 3, 11))

        detail = AvailabilityService(db).get_schedule_detail(
            march_mondays.id, today=date(2024, 3, 1)
        )

        assert detail["id"] == march_mondays.id
        assert detail["from_date"] == "2024-03-01"
        assert detail["available_dates"] == ["2024-03-04", "2024-03-18", "2024-03-25"]
        assert detail["daily_available_seats"]["2024-03-04"]["available"] == 1
        assert detail["daily_available_seats"]["2024-03-04"]["time_windows"] == [
            {"start": "17:00", "end": "18:00", "meeting_link": None}
        ]
        assert detail["booked_slots"] == [{"scheduled_date": "2024-03-11", "status": "committed"}]
        assert detail["days"][0]["weekday"] == "Monday"
