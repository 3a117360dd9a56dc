"""
Usage report schemas.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import Field, field_serializer, model_validator

from cubicle_booking.models.base import as_utc
from cubicle_booking.schemas.common import BaseSchema

__all__ = [
    "ReportRange",
    "ReportWindow",
    "RentalRecord",
    "TopStudent",
    "CubicleUsage",
    "ReportData",
    "ReportResponse",
]


class ReportRange(str, Enum):
    """Predefined reporting periods."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"

    @property
    def label(self) -> str:
        return {"day": "Hoy", "week": "Última Semana", "month": "Último Mes"}[self.value]


class ReportWindow(BaseSchema):
    """Closed time window; both bounds are inclusive."""

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def check_order(self) -> "ReportWindow":
        if as_utc(self.start) > as_utc(self.end):
            raise ValueError("start must not be after end")
        return self

    def contains(self, moment: datetime) -> bool:
        return as_utc(self.start) <= as_utc(moment) <= as_utc(self.end)

    @field_serializer("start", "end")
    def serialize_utc(self, value: datetime) -> str:
        return as_utc(value).isoformat()


class RentalRecord(BaseSchema):
    """Rental denormalized with the student's display name."""

    cubicle_id: int
    hours: int
    start_time: datetime
    student_name: Optional[str] = None


class TopStudent(BaseSchema):
    name: str
    rentals: int


class CubicleUsage(BaseSchema):
    cubicle_id: int
    rentals: int
    percentage: float


class ReportData(BaseSchema):
    """Aggregated usage over a report window."""

    total_rentals: int = 0
    total_hours: int = 0
    usage_by_cubicle: Dict[int, int] = Field(default_factory=dict)
    top_students: List[TopStudent] = Field(default_factory=list)

    def percentage(self, cubicle_id: int) -> float:
        """Share of rentals for a cubicle in percent; 0 when there are no rentals."""
        if self.total_rentals == 0:
            return 0.0
        return self.usage_by_cubicle.get(cubicle_id, 0) / self.total_rentals * 100

    @property
    def average_hours(self) -> float:
        if self.total_rentals == 0:
            return 0.0
        return self.total_hours / self.total_rentals

    def cubicle_usage(self) -> List[CubicleUsage]:
        return [
            CubicleUsage(cubicle_id=cubicle_id, rentals=count, percentage=self.percentage(cubicle_id))
            for cubicle_id, count in sorted(self.usage_by_cubicle.items())
        ]


class ReportResponse(BaseSchema):
    """Report for a predefined range as returned to clients."""

    range: ReportRange
    label: str
    start: datetime
    end: datetime
    total_rentals: int
    total_hours: int
    average_hours: float
    usage_by_cubicle: List[CubicleUsage]
    top_students: List[TopStudent]

    @classmethod
    def build(cls, report_range: ReportRange, window: ReportWindow, data: ReportData) -> "ReportResponse":
        return cls(
            range=report_range,
            label=report_range.label,
            start=window.start,
            end=window.end,
            total_rentals=data.total_rentals,
            total_hours=data.total_hours,
            average_hours=round(data.average_hours, 1),
            usage_by_cubicle=data.cubicle_usage(),
            top_students=data.top_students,
        )

    @field_serializer("start", "end")
    def serialize_utc(self, value: datetime) -> str:
        return as_utc(value).isoformat()
