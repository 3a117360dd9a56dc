"""
Pydantic schemas for requests and responses.
"""

from cubicle_booking.schemas.common import BaseSchema
from cubicle_booking.schemas.student import (
    ImportResult,
    StudentCreate,
    StudentImportRecord,
    StudentResponse,
)
from cubicle_booking.schemas.rental import (
    ActiveRentalSummary,
    BookingRequest,
    CubicleResponse,
    RentalResponse,
)
from cubicle_booking.schemas.report import (
    CubicleUsage,
    RentalRecord,
    ReportData,
    ReportRange,
    ReportResponse,
    ReportWindow,
    TopStudent,
)
from cubicle_booking.schemas.booking_flow import (
    BookingFlowState,
    FlowStep,
    HoursRequest,
    OpenFlowRequest,
    SearchRequest,
    SelectStudentRequest,
)

__all__ = [
    "BaseSchema",
    "StudentCreate",
    "StudentImportRecord",
    "StudentResponse",
    "ImportResult",
    "BookingRequest",
    "RentalResponse",
    "ActiveRentalSummary",
    "CubicleResponse",
    "ReportRange",
    "ReportWindow",
    "RentalRecord",
    "TopStudent",
    "CubicleUsage",
    "ReportData",
    "ReportResponse",
    "FlowStep",
    "OpenFlowRequest",
    "SearchRequest",
    "SelectStudentRequest",
    "HoursRequest",
    "BookingFlowState",
]
