# backend/tests/domain/test_schedule_definition.py
from datetime import date, time
from decimal import Decimal

import pytest

from tutorbook.core.enums import SlotType, Weekday
from tutorbook.domain.booking import BookingIntent
from tutorbook.domain.schedule import ScheduleDefinition, TimeWindow, effective_capacity


class TestEffectiveCapacity:
    def test_one_to_one_always_seats_one(self):
        assert effective_capacity(SlotType.ONE_TO_ONE, None) == 1
        assert effective_capacity("one_to_one", 12) == 1

    @pytest.mark.parametrize("slot_type", [SlotType.GROUP, SlotType.IN_PERSON])
    def test_group_like_types_use_requested_capacity(self, slot_type):
        assert effective_capacity(slot_type, 8) == 8

    @pytest.mark.parametrize("requested", [None, 0, -3])
    def test_group_requires_positive_capacity(self, requested):
        with pytest.raises(ValueError):
            effective_capacity(SlotType.GROUP, requested)

    def test_unknown_slot_type_is_rejected(self):
        with pytest.raises(ValueError):
            effective_capacity("webinar", 5)


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


class TestScheduleDefinition:
    def test_offers_only_listed_weekdays_in_range(self):
        definition = _definition()
        assert definition.offers(date(2024, 3, 4))
        assert not definition.offers(date(2024, 3, 5))
        assert not definition.offers(date(2024, 2, 26))
        assert not definition.offers(date(2024, 4, 1))

    def test_range_bounds_are_inclusive(self):
        definition = _definition(
            from_date=date(2024, 3, 4), to_date=date(2024, 3, 25)
        )
        assert definition.offers(date(2024, 3, 4))
        assert definition.offers(date(2024, 3, 25))

    def test_weekdays(self):
        assert _definition().weekdays == frozenset({Weekday.MONDAY})

    def test_time_window_payload_uses_hh_mm(self):
        window = TimeWindow(time(9, 5), time(10, 0), "https://meet.example/abc")
        assert window.to_payload() == {
            "start": "09:05",
            "end": "10:00",
            "meeting_link": "https://meet.example/abc",
        }


def test_intent_requires_payment_only_for_positive_amount():
    intent = BookingIntent(
        schedule_id="sched",
        scheduled_date=date(2024, 3, 4),
        student_id="student",
        base_price=Decimal("40.00"),
        points_requested=40,
        points_applied=40,
        final_amount=Decimal("0.00"),
    )
    assert not intent.requires_payment
