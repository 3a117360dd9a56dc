"""
Student model.

A student who can rent a cubicle. Students are created by registration
at the front desk or by roster import and are never deleted in-app.
"""

from typing import TYPE_CHECKING, List

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cubicle_booking.models.base import BaseModel, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from cubicle_booking.models.rental import Rental


class Student(BaseModel, UUIDPrimaryKeyMixin, TimestampMixin):
    """
    Registered student.

    ``control_number`` is the natural key used for deduplication on import.
    """

    __tablename__ = "students"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
        comment="Full name",
    )

    control_number: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
        index=True,
        comment="Institutional control number (unique)",
    )

    career: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Degree programme",
    )

    rentals: Mapped[List["Rental"]] = relationship(
        "Rental",
        back_populates="student",
        lazy="select",
    )
