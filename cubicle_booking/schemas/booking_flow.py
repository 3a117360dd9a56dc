"""
Booking flow schemas: step enum, requests and state snapshots.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import Field

from cubicle_booking.schemas.common import BaseSchema
from cubicle_booking.schemas.rental import RentalResponse
from cubicle_booking.schemas.student import StudentResponse

__all__ = [
    "FlowStep",
    "OpenFlowRequest",
    "SearchRequest",
    "SelectStudentRequest",
    "HoursRequest",
    "BookingFlowState",
]


class FlowStep(str, Enum):
    SEARCH = "search"
    REGISTER = "register"
    SELECT_HOURS = "select_hours"
    CONFIRM = "confirm"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (FlowStep.COMPLETED, FlowStep.CANCELLED)


class OpenFlowRequest(BaseSchema):
    cubicle_id: int


class SearchRequest(BaseSchema):
    query: str = ""


class SelectStudentRequest(BaseSchema):
    student_id: str


class HoursRequest(BaseSchema):
    hours: int


class BookingFlowState(BaseSchema):
    """Snapshot of a booking flow returned after every transition."""

    flow_id: str
    cubicle_id: int
    step: FlowStep
    query: str = ""
    results: List[StudentResponse] = Field(default_factory=list)
    selected_student: Optional[StudentResponse] = None
    hours: int
    rental: Optional[RentalResponse] = None
