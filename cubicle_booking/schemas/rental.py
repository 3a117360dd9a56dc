"""
Rental and cubicle schemas.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field, field_serializer

from cubicle_booking.models.base import as_utc
from cubicle_booking.schemas.common import BaseSchema

__all__ = [
    "BookingRequest",
    "RentalResponse",
    "ActiveRentalSummary",
    "CubicleResponse",
]


class BookingRequest(BaseSchema):
    """Request to book a cubicle for a registered student."""

    student_id: str = Field(..., description="Registered student ID")
    hours: int = Field(default=1, description="Rental duration in hours (1-6)")


class RentalResponse(BaseSchema):
    """Rental record."""

    id: str
    cubicle_id: int
    student_id: str
    hours: int
    start_time: datetime
    end_time: datetime
    is_active: bool
    released_at: Optional[datetime] = None

    @field_serializer("start_time", "end_time", "released_at")
    def serialize_utc(self, value: Optional[datetime]) -> Optional[str]:
        return as_utc(value).isoformat() if value else None


class ActiveRentalSummary(BaseSchema):
    """Active rental shown on a cubicle card."""

    rental_id: str
    student_id: str
    student_name: str
    control_number: str
    hours: int
    start_time: datetime
    end_time: datetime

    @field_serializer("start_time", "end_time")
    def serialize_utc(self, value: datetime) -> str:
        return as_utc(value).isoformat()


class CubicleResponse(BaseSchema):
    """Cubicle with its current occupancy."""

    id: int
    is_occupied: bool
    active_rental: Optional[ActiveRentalSummary] = None

    @classmethod
    def from_model(cls, cubicle) -> "CubicleResponse":
        rental = cubicle.active_rental if cubicle.is_occupied else None
        summary = None
        if rental is not None:
            summary = ActiveRentalSummary(
                rental_id=rental.id,
                student_id=rental.student_id,
                student_name=rental.student.name,
                control_number=rental.student.control_number,
                hours=rental.hours,
                start_time=as_utc(rental.start_time),
                end_time=as_utc(rental.end_time),
            )
        return cls(id=cubicle.id, is_occupied=cubicle.is_occupied, active_rental=summary)
