"""
Tests for the booking flow state machine.
"""
import pytest
from sqlalchemy.exc import OperationalError

from cubicle_booking.core.exceptions import ErrorCode
from cubicle_booking.models import Cubicle, Rental
from cubicle_booking.schemas.booking_flow import FlowStep
from cubicle_booking.schemas.student import StudentCreate
from cubicle_booking.services.booking_flow import BookingFlowManager, BookingFlowService


@pytest.fixture
def manager():
    return BookingFlowManager()


@pytest.fixture
def flows(db, manager, settings, lifecycle):
    return BookingFlowService(db, manager, settings, lifecycle)


@pytest.fixture
def flow_id(flows):
    return flows.open(2).unwrap().flow_id


def test_open_flow_starts_in_search_with_default_hours(flows):
    state = flows.open(1).unwrap()

    assert state.step == FlowStep.SEARCH
    assert state.cubicle_id == 1
    assert state.hours == 1
    assert state.selected_student is None


def test_open_flow_for_unknown_cubicle_fails(flows):
    assert flows.open(8).error_code == ErrorCode.NOT_FOUND


def test_open_flow_for_occupied_cubicle_fails(flows, lifecycle, ana):
    lifecycle.book(3, ana.id, 1).unwrap()
    assert flows.open(3).error_code == ErrorCode.ALREADY_OCCUPIED


def test_search_select_hours_review_confirm(db, flows, flow_id, ana, manager):
    state = flows.search(flow_id, "ana").unwrap()
    assert state.step == FlowStep.SEARCH
    assert [s.control_number for s in state.results] == ["20210099"]

    state = flows.select_student(flow_id, ana.id).unwrap()
    assert state.step == FlowStep.SELECT_HOURS
    assert state.selected_student.name == "Ana Lopez"

    state = flows.choose_hours(flow_id, 3).unwrap()
    assert (state.step, state.hours) == (FlowStep.SELECT_HOURS, 3)

    state = flows.review(flow_id).unwrap()
    assert state.step == FlowStep.CONFIRM

    state = flows.confirm(flow_id).unwrap()
    assert state.step == FlowStep.COMPLETED
    assert state.rental.cubicle_id == 2
    assert state.rental.hours == 3
    assert db.get(Cubicle, 2).is_occupied is True
    # Finished flows are discarded
    assert flows.get(flow_id).error_code == ErrorCode.NOT_FOUND
    assert len(manager) == 0


def test_register_path_selects_new_student(db, flows, flow_id):
    assert flows.start_registration(flow_id).unwrap().step == FlowStep.REGISTER

    state = flows.register(
        flow_id, StudentCreate(name="Ana Lopez", control_number="20210099", career="Arquitectura")
    ).unwrap()

    assert state.step == FlowStep.SELECT_HOURS
    assert state.selected_student.control_number == "20210099"


def test_failed_registration_stays_in_register(flows, flow_id, ana):
    flows.start_registration(flow_id).unwrap()

    result = flows.register(flow_id, StudentCreate(name="Otra", control_number=ana.control_number, career="X"))

    assert result.error_code == ErrorCode.DUPLICATE_KEY
    assert flows.get(flow_id).unwrap().step == FlowStep.REGISTER

    incomplete = flows.register(flow_id, StudentCreate(name="Otra"))
    assert incomplete.error_code == ErrorCode.VALIDATION_ERROR
    assert flows.get(flow_id).unwrap().step == FlowStep.REGISTER


def test_back_transitions(flows, flow_id, ana):
    flows.start_registration(flow_id).unwrap()
    assert flows.back(flow_id).unwrap().step == FlowStep.SEARCH

    flows.select_student(flow_id, ana.id).unwrap()
    flows.review(flow_id).unwrap()
    assert flows.back(flow_id).unwrap().step == FlowStep.SELECT_HOURS

    state = flows.back(flow_id).unwrap()
    assert state.step == FlowStep.SEARCH
    assert state.selected_student is None


def test_back_from_search_is_invalid(flows, flow_id):
    assert flows.back(flow_id).error_code == ErrorCode.INVALID_STATE


@pytest.mark.parametrize("hours", [0, 7])
def test_choose_invalid_hours_keeps_previous_value(flows, flow_id, ana, hours):
    flows.select_student(flow_id, ana.id).unwrap()
    flows.choose_hours(flow_id, 4).unwrap()

    result = flows.choose_hours(flow_id, hours)

    assert result.error_code == ErrorCode.INVALID_HOURS
    state = flows.get(flow_id).unwrap()
    assert (state.step, state.hours) == (FlowStep.SELECT_HOURS, 4)


def test_transitions_in_wrong_step_fail_with_invalid_state(flows, flow_id, ana):
    assert flows.confirm(flow_id).error_code == ErrorCode.INVALID_STATE
    assert flows.review(flow_id).error_code == ErrorCode.INVALID_STATE
    assert flows.choose_hours(flow_id, 2).error_code == ErrorCode.INVALID_STATE

    flows.select_student(flow_id, ana.id).unwrap()
    assert flows.search(flow_id, "x").error_code == ErrorCode.INVALID_STATE
    assert flows.start_registration(flow_id).error_code == ErrorCode.INVALID_STATE


def test_select_unknown_student_fails(flows, flow_id):
    result = flows.select_student(flow_id, "missing")

    assert result.error_code == ErrorCode.UNKNOWN_STUDENT
    assert flows.get(flow_id).unwrap().step == FlowStep.SEARCH


def test_select_student_during_outage_reports_backend_unavailable(flows, flow_id, ana, monkeypatch):
    def locked(student_id):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(flows.directory.students, "get_by_id", locked)

    result = flows.select_student(flow_id, ana.id)

    assert result.error_code == ErrorCode.BACKEND_UNAVAILABLE
    monkeypatch.undo()
    assert flows.get(flow_id).unwrap().step == FlowStep.SEARCH


def test_confirm_failure_keeps_confirm_step(db, flows, flow_id, lifecycle, ana, luis):
    flows.select_student(flow_id, ana.id).unwrap()
    flows.review(flow_id).unwrap()
    # Someone else books the cubicle while the dialog is open
    lifecycle.book(2, luis.id, 1).unwrap()

    result = flows.confirm(flow_id)

    assert result.error_code == ErrorCode.ALREADY_OCCUPIED
    assert flows.get(flow_id).unwrap().step == FlowStep.CONFIRM
    assert db.query(Rental).filter(Rental.cubicle_id == 2).count() == 1


def test_cancel_discards_flow_without_touching_store(db, flows, flow_id, ana, manager):
    flows.select_student(flow_id, ana.id).unwrap()

    state = flows.cancel(flow_id).unwrap()

    assert state.step == FlowStep.CANCELLED
    assert len(manager) == 0
    assert db.query(Rental).count() == 0
    assert db.get(Cubicle, 2).is_occupied is False


def test_idle_flow_is_discarded_after_timeout(db, settings, lifecycle, timer):
    manager = BookingFlowManager(idle_timeout=60, timer=timer)
    flows = BookingFlowService(db, manager, settings, lifecycle)
    flow_id = flows.open(2).unwrap().flow_id

    timer.advance(59)
    assert len(manager) == 1

    timer.advance(2)
    assert len(manager) == 0
    assert flows.get(flow_id).error_code == ErrorCode.NOT_FOUND


def test_using_a_flow_keeps_it_open(db, settings, lifecycle, timer, ana):
    manager = BookingFlowManager(idle_timeout=60, timer=timer)
    flows = BookingFlowService(db, manager, settings, lifecycle)
    flow_id = flows.open(2).unwrap().flow_id

    timer.advance(50)
    flows.search(flow_id, "ana").unwrap()
    timer.advance(50)
    assert flows.get(flow_id).unwrap().step == FlowStep.SEARCH

    timer.advance(60)
    assert flows.get(flow_id).error_code == ErrorCode.NOT_FOUND
