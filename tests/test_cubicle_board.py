"""
Tests for the cubicle registry, change notifications and the live board.
"""
import threading

import pytest

from cubicle_booking.core.events import ChangeEvent, ChangeFeed, ChangeType
from cubicle_booking.core.exceptions import ErrorCode
from cubicle_booking.db.init_db import seed_cubicles
from cubicle_booking.db.session import build_session_factory
from cubicle_booking.models import Cubicle
from cubicle_booking.models.cubicle import CUBICLE_IDS
from cubicle_booking.services import RentalLifecycleService
from cubicle_booking.services.cubicle_registry import CubicleBoard, CubicleRegistryService


@pytest.fixture
def registry(db):
    return CubicleRegistryService(db)


@pytest.fixture
def board(session_factory, feed):
    board = CubicleBoard(session_factory, feed)
    board.start()
    yield board
    board.stop()


def test_registry_lists_four_cubicles_in_order(registry):
    cubicles = registry.list().unwrap()

    assert [c.id for c in cubicles] == [1, 2, 3, 4]
    assert not any(c.is_occupied for c in cubicles)


def test_seeding_keeps_the_fixed_cubicle_set(session_factory, registry):
    assert seed_cubicles(session_factory) == 0
    assert [c.id for c in registry.list().unwrap()] == list(CUBICLE_IDS)


def test_registry_get_unknown_cubicle_fails(registry):
    assert registry.get(5).error_code == ErrorCode.NOT_FOUND
    assert registry.get(0).error_code == ErrorCode.NOT_FOUND


def test_registry_get_includes_active_rental(registry, lifecycle, ana):
    rental = lifecycle.book(2, ana.id, 2).unwrap()

    cubicle = registry.get(2).unwrap()

    assert cubicle.is_occupied is True
    assert cubicle.active_rental.id == rental.id
    assert cubicle.active_rental.student.name == "Ana Lopez"


def test_committed_changes_are_published_per_table(feed, lifecycle, ana):
    seen = []
    feed.subscribe("rentals", lambda event: seen.append((event.table, event.change_type)))
    feed.subscribe("cubicles", lambda event: seen.append((event.table, event.change_type)), ChangeType.UPDATE)

    lifecycle.book(1, ana.id, 1).unwrap()

    assert ("rentals", ChangeType.INSERT) in seen
    assert ("cubicles", ChangeType.UPDATE) in seen

    seen.clear()
    lifecycle.release(1).unwrap()

    assert ("rentals", ChangeType.UPDATE) in seen
    assert ("cubicles", ChangeType.UPDATE) in seen


def test_rejected_booking_publishes_nothing(feed, lifecycle, ana):
    seen = []
    feed.subscribe("rentals", seen.append)

    lifecycle.book(1, ana.id, 9)

    assert seen == []


def test_rolled_back_changes_are_not_published(db, feed):
    seen = []
    feed.subscribe("cubicles", seen.append)

    db.get(Cubicle, 1).is_occupied = True
    db.flush()
    db.rollback()

    assert seen == []


def test_board_is_cached_until_a_change_arrives(board, lifecycle, ana):
    first = board.snapshot().unwrap()
    assert board.is_cached
    board.snapshot().unwrap()
    assert board.refresh_count == 1
    assert not first[1].is_occupied

    lifecycle.book(2, ana.id, 3).unwrap()

    assert not board.is_cached
    refreshed = board.snapshot().unwrap()
    assert board.refresh_count == 2
    assert refreshed[1].is_occupied is True
    assert refreshed[1].active_rental.student_name == "Ana Lopez"
    assert refreshed[1].active_rental.hours == 3


def test_board_stops_listening_after_stop(session_factory, feed, lifecycle, ana):
    board = CubicleBoard(session_factory, feed)
    board.start()
    board.snapshot().unwrap()
    board.stop()
    board.snapshot().unwrap()

    lifecycle.book(4, ana.id, 1).unwrap()

    assert board.is_cached
    assert feed.get_stats() == {"cubicles.*": 0, "rentals.*": 0}


def test_feed_handler_errors_do_not_stop_other_handlers():
    feed = ChangeFeed()
    calls = []

    def broken(event):
        raise RuntimeError("boom")

    feed.subscribe("rentals", broken)
    feed.subscribe("rentals", calls.append)

    invoked = feed.publish(ChangeEvent("rentals", ChangeType.INSERT, {"id": "r1"}))

    assert invoked == 2
    assert len(calls) == 1


def test_feed_dispatches_exact_type_and_wildcard_only():
    feed = ChangeFeed()
    inserts, anything, deletes = [], [], []
    feed.subscribe("students", inserts.append, ChangeType.INSERT)
    feed.subscribe("students", anything.append)
    feed.subscribe("students", deletes.append, ChangeType.DELETE)

    feed.publish(ChangeEvent("students", ChangeType.INSERT, {}))
    feed.publish(ChangeEvent("rentals", ChangeType.INSERT, {}))

    assert (len(inserts), len(anything), len(deletes)) == (1, 1, 0)


def test_board_expires_so_other_workers_bookings_show_up(engine, session_factory, feed, settings, clock, timer, ana):
    board = CubicleBoard(session_factory, feed, ttl_seconds=5, timer=timer)
    board.start()
    assert board.snapshot().unwrap()[0].is_occupied is False

    # A commit from another worker never reaches this process's feed
    other_worker = build_session_factory(engine)()
    RentalLifecycleService(other_worker, settings, clock).book(1, ana.id, 1).unwrap()
    other_worker.close()

    timer.advance(4)
    assert board.is_cached
    assert board.snapshot().unwrap()[0].is_occupied is False

    timer.advance(1)
    assert not board.is_cached
    assert board.snapshot().unwrap()[0].is_occupied is True
    assert board.refresh_count == 2
    board.stop()


def test_handler_may_change_subscriptions_during_dispatch():
    feed = ChangeFeed()
    late = []

    def hand_over(event):
        subscription.unsubscribe()
        feed.subscribe("rentals", late.append)

    subscription = feed.subscribe("rentals", hand_over)

    assert feed.publish(ChangeEvent("rentals", ChangeType.INSERT, {})) == 1
    assert feed.publish(ChangeEvent("rentals", ChangeType.UPDATE, {})) == 1
    assert len(late) == 1
    assert feed.get_stats() == {"rentals.*": 1}


def test_feed_survives_concurrent_subscribe_and_publish():
    feed = ChangeFeed()
    received = []
    feed.subscribe("rentals", received.append)

    def churn():
        for _ in range(200):
            feed.subscribe("rentals", lambda event: None).unsubscribe()

    threads = [threading.Thread(target=churn) for _ in range(4)]
    for thread in threads:
        thread.start()
    for _ in range(200):
        feed.publish(ChangeEvent("rentals", ChangeType.UPDATE, {}))
    for thread in threads:
        thread.join()

    assert len(received) == 200
    assert feed.get_stats() == {"rentals.*": 1}
