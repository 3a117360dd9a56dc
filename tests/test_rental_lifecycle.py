"""
Tests for booking and releasing cubicles.
"""
from datetime import timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError, OperationalError

from cubicle_booking.core.exceptions import ErrorCode
from cubicle_booking.db.init_db import init_db, seed_cubicles
from cubicle_booking.db.session import build_session_factory
from cubicle_booking.models import Cubicle, Rental, as_utc
from cubicle_booking.schemas.student import StudentCreate
from cubicle_booking.services import RentalLifecycleService, StudentDirectoryService


def active_rentals(db, cubicle_id):
    return db.query(Rental).filter(Rental.cubicle_id == cubicle_id, Rental.is_active.is_(True)).all()


def assert_occupancy_consistent(db):
    """is_occupied holds exactly when one active rental references the cubicle."""
    db.expire_all()
    for cubicle in db.query(Cubicle).all():
        count = len(active_rentals(db, cubicle.id))
        assert count <= 1
        assert cubicle.is_occupied == (count == 1)


def test_book_then_release_returns_cubicle_to_available(db, lifecycle, ana):
    booked = lifecycle.book(1, ana.id, 2)
    assert booked.is_success
    assert db.get(Cubicle, 1).is_occupied is True
    assert_occupancy_consistent(db)

    released = lifecycle.release(1)
    assert released.is_success
    db.expire_all()
    assert db.get(Cubicle, 1).is_occupied is False
    assert active_rentals(db, 1) == []
    assert_occupancy_consistent(db)


@pytest.mark.parametrize("hours", [0, 7, -1])
def test_book_rejects_hours_outside_range(db, lifecycle, ana, hours):
    result = lifecycle.book(1, ana.id, hours)

    assert not result.is_success
    assert result.error_code == ErrorCode.INVALID_HOURS
    assert db.query(Rental).count() == 0
    assert db.get(Cubicle, 1).is_occupied is False


@pytest.mark.parametrize("hours", [1, 6])
def test_book_accepts_boundary_hours(lifecycle, ana, hours):
    result = lifecycle.book(3, ana.id, hours)

    assert result.is_success
    assert result.data.hours == hours


def test_hours_are_checked_before_cubicle_and_student(lifecycle):
    result = lifecycle.book(99, "missing-student", 0)
    assert result.error_code == ErrorCode.INVALID_HOURS


def test_book_unknown_cubicle_fails_with_not_found(lifecycle, ana):
    result = lifecycle.book(9, ana.id, 1)
    assert result.error_code == ErrorCode.NOT_FOUND


def test_book_unknown_student_fails(db, lifecycle):
    result = lifecycle.book(1, "00000000-0000-0000-0000-000000000000", 1)

    assert result.error_code == ErrorCode.UNKNOWN_STUDENT
    assert db.get(Cubicle, 1).is_occupied is False


def test_book_occupied_cubicle_leaves_existing_rental_untouched(db, lifecycle, ana, luis):
    first = lifecycle.book(2, ana.id, 3).unwrap()

    second = lifecycle.book(2, luis.id, 1)

    assert second.error_code == ErrorCode.ALREADY_OCCUPIED
    db.expire_all()
    rentals = active_rentals(db, 2)
    assert [rental.id for rental in rentals] == [first.id]
    assert rentals[0].student_id == ana.id
    assert rentals[0].hours == 3
    assert_occupancy_consistent(db)


def test_release_twice_fails_with_no_active_rental(db, lifecycle, ana):
    lifecycle.book(4, ana.id, 2).unwrap()
    first = lifecycle.release(4).unwrap()

    second = lifecycle.release(4)

    assert second.error_code == ErrorCode.NO_ACTIVE_RENTAL
    db.expire_all()
    rental = db.get(Rental, first.id)
    assert rental.is_active is False
    assert as_utc(rental.released_at) == as_utc(first.released_at)
    assert db.get(Cubicle, 4).is_occupied is False


def test_release_available_cubicle_fails(lifecycle):
    assert lifecycle.release(1).error_code == ErrorCode.NO_ACTIVE_RENTAL


def test_release_unknown_cubicle_fails_with_not_found(lifecycle):
    assert lifecycle.release(42).error_code == ErrorCode.NOT_FOUND


def test_ana_lopez_books_cubicle_two_for_three_hours(db, lifecycle, ana, clock):
    start = clock.now

    rental = lifecycle.book(2, ana.id, 3).unwrap()

    assert db.get(Cubicle, 2).is_occupied is True
    assert as_utc(rental.start_time) == start
    assert as_utc(rental.end_time) == start + timedelta(hours=3)

    clock.advance(hours=1)
    released = lifecycle.release(2).unwrap()

    db.expire_all()
    assert db.get(Cubicle, 2).is_occupied is False
    kept = db.get(Rental, rental.id)
    assert kept is not None
    assert kept.is_active is False
    assert kept.hours == 3
    assert as_utc(released.released_at) == start + timedelta(hours=1)


def test_store_rejects_second_active_rental_for_cubicle(db, ana, luis, clock):
    now = clock.now
    db.add(Rental(cubicle_id=1, student_id=ana.id, hours=1, start_time=now, end_time=now, is_active=True))
    db.commit()

    db.add(Rental(cubicle_id=1, student_id=luis.id, hours=1, start_time=now, end_time=now, is_active=True))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_active_rental_blocks_booking_even_with_stale_flag(db, lifecycle, ana, luis, clock):
    # Active rental exists but the occupancy flag says available
    now = clock.now
    db.add(Rental(cubicle_id=3, student_id=ana.id, hours=1, start_time=now, end_time=now, is_active=True))
    db.commit()

    result = lifecycle.book(3, luis.id, 1)

    assert result.error_code == ErrorCode.ALREADY_OCCUPIED
    assert len(active_rentals(db, 3)) == 1


def test_history_lists_rentals_newest_first(lifecycle, ana, clock):
    first = lifecycle.book(1, ana.id, 1).unwrap()
    lifecycle.release(1).unwrap()
    clock.advance(hours=2)
    second = lifecycle.book(1, ana.id, 2).unwrap()

    history = lifecycle.history(1).unwrap()

    assert [rental.id for rental in history] == [second.id, first.id]
    assert lifecycle.get_active_rental(1).unwrap().id == second.id
    assert lifecycle.get_active_rental(2).unwrap() is None


def test_concurrent_booking_rejected_by_store_maps_to_already_occupied(db, lifecycle, ana, luis, clock, monkeypatch):
    now = clock.now
    db.add(Rental(cubicle_id=4, student_id=ana.id, hours=1, start_time=now, end_time=now, is_active=True))
    db.commit()
    # Simulate the other booking committing between the check and the insert
    monkeypatch.setattr(lifecycle.rentals, "count_active_for_cubicle", lambda cubicle_id: 0)

    result = lifecycle.book(4, luis.id, 1)

    assert result.error_code == ErrorCode.ALREADY_OCCUPIED
    db.expire_all()
    assert [rental.student_id for rental in active_rentals(db, 4)] == [ana.id]


def test_book_when_store_goes_away_fails_with_backend_unavailable(db, lifecycle, ana, monkeypatch):
    def lost_connection():
        raise OperationalError("COMMIT", {}, Exception("database is locked"))

    monkeypatch.setattr(db, "commit", lost_connection)

    result = lifecycle.book(1, ana.id, 2)

    assert result.error_code == ErrorCode.BACKEND_UNAVAILABLE
    monkeypatch.undo()
    db.expire_all()
    assert db.query(Rental).count() == 0
    assert db.get(Cubicle, 1).is_occupied is False
    assert_occupancy_consistent(db)


def test_release_bumps_rental_version(db, lifecycle, ana):
    rental = lifecycle.book(2, ana.id, 1).unwrap()
    booked_version = rental.version

    released = lifecycle.release(2).unwrap()

    assert released.version == booked_version + 1


@pytest.fixture
def file_session_factory(tmp_path):
    """Session factory over a file database, so each session has its own connection."""
    engine = create_engine(f"sqlite:///{tmp_path / 'cubicles.db'}")
    init_db(engine)
    factory = build_session_factory(engine)
    seed_cubicles(factory)
    yield factory
    engine.dispose()


def test_release_that_loses_a_race_keeps_the_new_rental(file_session_factory, settings, clock, monkeypatch):
    setup = file_session_factory()
    directory = StudentDirectoryService(setup, settings)
    ana_id = directory.register(
        StudentCreate(name="Ana Lopez", control_number="20210099", career="Arquitectura")
    ).unwrap().id
    luis_id = directory.register(
        StudentCreate(name="Luis Pérez", control_number="20190001", career="Ingeniería Civil")
    ).unwrap().id
    RentalLifecycleService(setup, settings, clock).book(1, ana_id, 2).unwrap()

    desk_a = file_session_factory()
    desk_b = file_session_factory()
    lifecycle_a = RentalLifecycleService(desk_a, settings, clock)
    lifecycle_b = RentalLifecycleService(desk_b, settings, clock)
    read_active = lifecycle_a.rentals.find_active_for_cubicle

    def read_then_lose_race(cubicle_id):
        rental = read_active(cubicle_id)
        # Desk B releases and rebooks the cubicle before desk A writes
        lifecycle_b.release(cubicle_id).unwrap()
        lifecycle_b.book(cubicle_id, luis_id, 1).unwrap()
        return rental

    monkeypatch.setattr(lifecycle_a.rentals, "find_active_for_cubicle", read_then_lose_race)

    result = lifecycle_a.release(1)

    assert result.error_code == ErrorCode.NO_ACTIVE_RENTAL
    setup.expire_all()
    assert [rental.student_id for rental in active_rentals(setup, 1)] == [luis_id]
    assert setup.get(Cubicle, 1).is_occupied is True
    assert_occupancy_consistent(setup)

    for session in (setup, desk_a, desk_b):
        session.close()
