# backend/tests/repositories/test_booked_slot_repository.py
from datetime import date
from decimal import Decimal
import threading

import pytest
from sqlalchemy.orm import sessionmaker

from tests.factories.schedule_builders import commit_seat, create_schedule, credit_points
from tutorbook.core.enums import Weekday
from tutorbook.core.exceptions import (
    AvailabilityConflictException,
    InsufficientPointsException,
    NotFoundException,
)
from tutorbook.core.ulid_helper import generate_ulid
from tutorbook.database import Base, create_db_engine
from tutorbook.models.schedule import Schedule
from tutorbook.repositories.booked_slot_repository import BookedSlotRepository
from tutorbook.repositories.loyalty_repository import LoyaltyRepository


def _commit(db, schedule_id, day, *, student_id=None, reference=None, points=0):
    return BookedSlotRepository(db).commit_booking(
        schedule_id=schedule_id,
        scheduled_date=day,
        student_id=student_id or generate_ulid(),
        payment_reference=reference or f"pi_{generate_ulid()}",
        points_applied=points,
        amount_paid=Decimal("40.00"),
    )


class TestCommitBooking:
    def test_commit_inserts_and_bumps_version(self, db, march_mondays):
        version = march_mondays.version

        slot = _commit(db, march_mondays.id, date(2024, 3, 4))
        db.commit()

        assert slot.id and slot.session_id
        assert slot.status == "committed"
        refreshed = db.get(Schedule, march_mondays.id, populate_existing=True)
        assert refreshed.version == version + 1

    def test_second_commit_for_full_date_conflicts(self, db, march_mondays):
        commit_seat(db, march_mondays, date(2024, 3, 4))

        with pytest.raises(AvailabilityConflictException) as exc_info:
            _commit(db, march_mondays.id, date(2024, 3, 4))
        db.rollback()

        assert exc_info.value.details["booked_count"] == 1
        assert BookedSlotRepository(db).count_committed_on(march_mondays.id, date(2024, 3, 4)) == 1

    def test_date_outside_schedule_conflicts(self, db, march_mondays):
        with pytest.raises(AvailabilityConflictException) as exc_info:
            _commit(db, march_mondays.id, date(2024, 3, 5))
        assert exc_info.value.details["reason"] == "not_offered"

    def test_unknown_schedule(self, db):
        with pytest.raises(NotFoundException):
            _commit(db, "01HX00000000000000000000ZZ", date(2024, 3, 4))

    def test_same_reference_is_idempotent(self, db, march_mondays):
        first = commit_seat(db, march_mondays, date(2024, 3, 4), payment_reference="pi_same")
        again = _commit(db, march_mondays.id, date(2024, 3, 4), reference="pi_same")
        assert again.id == first.id

    def test_points_are_redeemed_with_the_seat(self, db, march_mondays, student_id):
        credit_points(db, student_id, 30)

        _commit(db, march_mondays.id, date(2024, 3, 4), student_id=student_id, points=25)
        db.commit()

        assert LoyaltyRepository(db).get_balance(student_id) == 5

    def test_insufficient_points_abort_the_commit(self, db, march_mondays, student_id):
        credit_points(db, student_id, 10)

        with pytest.raises(InsufficientPointsException):
            _commit(db, march_mondays.id, date(2024, 3, 4), student_id=student_id, points=25)
        db.rollback()

        repo = BookedSlotRepository(db)
        assert repo.count_committed_on(march_mondays.id, date(2024, 3, 4)) == 0
        assert LoyaltyRepository(db).get_balance(student_id) == 10


class TestCounts:
    def test_counts_grouped_by_date(self, db):
        schedule = create_schedule(
            db,
            from_date=date(2024, 3, 1),
            to_date=date(2024, 3, 31),
            weekdays=(Weekday.MONDAY, Weekday.WEDNESDAY),
            capacity=1,
        )
        commit_seat(db, schedule, date(2024, 3, 4))
        commit_seat(db, schedule, date(2024, 3, 6))

        counts = BookedSlotRepository(db).count_committed_by_date(
            schedule.id, start_date=date(2024, 3, 5), end_date=date(2024, 3, 31)
        )

        assert counts == {date(2024, 3, 6): 1}

    def test_list_for_schedule_is_date_ordered(self, db, march_mondays):
        commit_seat(db, march_mondays, date(2024, 3, 18))
        commit_seat(db, march_mondays, date(2024, 3, 4))

        slots = BookedSlotRepository(db).list_for_schedule(march_mondays.id)

        assert [s.scheduled_date for s in slots] == [date(2024, 3, 4), date(2024, 3, 18)]


def test_concurrent_commits_for_last_seat(tmp_path):
    """Two sessions racing for a one-seat date: exactly one wins."""
    engine = create_db_engine(f"sqlite:///{tmp_path / 'race.db'}")
    Base.metadata.create_all(bind=engine)
    SessionFactory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

    setup = SessionFactory()
    schedule = create_schedule(setup, from_date=date(2024, 3, 1), to_date=date(2024, 3, 31))
    schedule_id = schedule.id
    setup.close()

    barrier = threading.Barrier(2)
    outcomes = []
    lock = threading.Lock()

    def _attempt():
        session = SessionFactory()
        try:
            barrier.wait(timeout=10)
            _commit(session, schedule_id, date(2024, 3, 4))
            session.commit()
            result = "committed"
        except AvailabilityConflictException:
            session.rollback()
            result = "conflict"
        finally:
            session.close()
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=_attempt) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    try:
        assert sorted(outcomes) == ["committed", "conflict"]
        check = SessionFactory()
        assert BookedSlotRepository(check).count_committed_on(schedule_id, date(2024, 3, 4)) == 1
        check.close()
    finally:
        engine.dispose()
