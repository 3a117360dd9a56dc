"""
Student schemas: registration, responses and roster import.
"""

from __future__ import annotations

from typing import Optional

from pydantic import AliasChoices, Field, field_validator

from cubicle_booking.schemas.common import BaseSchema

__all__ = [
    "StudentCreate",
    "StudentResponse",
    "StudentImportRecord",
    "ImportResult",
]


class StudentCreate(BaseSchema):
    """
    Registration candidate.

    Fields are not length-constrained here; the student directory reports
    missing values as a validation failure with a user-facing message.
    """

    name: str = Field(default="", description="Full name", examples=["Ana Lopez"])
    control_number: str = Field(
        default="",
        validation_alias=AliasChoices("control_number", "controlNumber"),
        description="Unique control number",
        examples=["20210099"],
    )
    career: str = Field(default="", description="Degree programme", examples=["Arquitectura"])

    @field_validator("name", "control_number", "career", mode="before")
    @classmethod
    def none_as_empty(cls, v: Optional[object]) -> str:
        if v is None:
            return ""
        return str(v)

    def missing_fields(self) -> list[str]:
        return [name for name in ("name", "control_number", "career") if not getattr(self, name)]


class StudentImportRecord(StudentCreate):
    """One row of an imported roster (CSV row or JSON object)."""


class StudentResponse(BaseSchema):
    """Student as returned to clients."""

    id: str
    name: str
    control_number: str
    career: str


class ImportResult(BaseSchema):
    """Outcome of a roster import."""

    imported: int = Field(..., ge=0, description="Valid records upserted")
    skipped: int = Field(default=0, ge=0, description="Records dropped for missing fields")
    created: int = Field(default=0, ge=0)
    updated: int = Field(default=0, ge=0)
    message: str
