"""
Booking flow endpoints.

Each POST runs one transition of an open flow and returns the new state.
"""

from fastapi import APIRouter, Depends, status

from cubicle_booking.api import deps
from cubicle_booking.schemas.booking_flow import (
    BookingFlowState,
    HoursRequest,
    OpenFlowRequest,
    SearchRequest,
    SelectStudentRequest,
)
from cubicle_booking.schemas.student import StudentCreate
from cubicle_booking.services import BookingFlowService

router = APIRouter(prefix="/booking-flows", tags=["Booking Flows"])


@router.post("", response_model=BookingFlowState, status_code=status.HTTP_201_CREATED)
def open_flow(request: OpenFlowRequest, flows: BookingFlowService = Depends(deps.get_booking_flows)):
    return flows.open(request.cubicle_id).unwrap()


@router.get("/{flow_id}", response_model=BookingFlowState)
def get_flow(flow_id: str, flows: BookingFlowService = Depends(deps.get_booking_flows)):
    return flows.get(flow_id).unwrap()


@router.post("/{flow_id}/search", response_model=BookingFlowState)
def search(flow_id: str, request: SearchRequest, flows: BookingFlowService = Depends(deps.get_booking_flows)):
    return flows.search(flow_id, request.query).unwrap()


@router.post("/{flow_id}/start-registration", response_model=BookingFlowState)
def start_registration(flow_id: str, flows: BookingFlowService = Depends(deps.get_booking_flows)):
    return flows.start_registration(flow_id).unwrap()


@router.post("/{flow_id}/register", response_model=BookingFlowState)
def register(flow_id: str, candidate: StudentCreate, flows: BookingFlowService = Depends(deps.get_booking_flows)):
    return flows.register(flow_id, candidate).unwrap()


@router.post("/{flow_id}/select-student", response_model=BookingFlowState)
def select_student(
    flow_id: str,
    request: SelectStudentRequest,
    flows: BookingFlowService = Depends(deps.get_booking_flows),
):
    return flows.select_student(flow_id, request.student_id).unwrap()


@router.post("/{flow_id}/hours", response_model=BookingFlowState)
def choose_hours(flow_id: str, request: HoursRequest, flows: BookingFlowService = Depends(deps.get_booking_flows)):
    return flows.choose_hours(flow_id, request.hours).unwrap()


@router.post("/{flow_id}/review", response_model=BookingFlowState)
def review(flow_id: str, flows: BookingFlowService = Depends(deps.get_booking_flows)):
    return flows.review(flow_id).unwrap()


@router.post("/{flow_id}/back", response_model=BookingFlowState)
def back(flow_id: str, flows: BookingFlowService = Depends(deps.get_booking_flows)):
    return flows.back(flow_id).unwrap()


@router.post("/{flow_id}/confirm", response_model=BookingFlowState)
def confirm(flow_id: str, flows: BookingFlowService = Depends(deps.get_booking_flows)):
    return flows.confirm(flow_id).unwrap()


@router.delete("/{flow_id}", response_model=BookingFlowState)
def cancel(flow_id: str, flows: BookingFlowService = Depends(deps.get_booking_flows)):
    return flows.cancel(flow_id).unwrap()
