"""
Rental model.

A time-bounded occupancy record linking a cubicle to a student. Rentals
are deactivated on release and kept for reporting.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cubicle_booking.models.base import BaseModel, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from cubicle_booking.models.cubicle import Cubicle
    from cubicle_booking.models.student import Student


class Rental(BaseModel, UUIDPrimaryKeyMixin, TimestampMixin):
    """
    Cubicle rental.

    Lifecycle:
        1. Created active when a booking is confirmed
        2. Deactivated (``is_active = False``) when the cubicle is released
    """

    __tablename__ = "rentals"
    __table_args__ = (
        # At most one active rental per cubicle, enforced by the store
        Index(
            "uq_rentals_active_cubicle",
            "cubicle_id",
            unique=True,
            sqlite_where=text("is_active = 1"),
            postgresql_where=text("is_active"),
        ),
    )

    cubicle_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("cubicles.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        comment="Rented cubicle",
    )

    student_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("students.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        comment="Renting student",
    )

    hours: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Booked duration in hours",
    )

    start_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
        comment="Rental start (UTC)",
    )

    end_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="start_time + hours (UTC)",
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        index=True,
        comment="False once the cubicle has been released",
    )

    released_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="Release timestamp (UTC)",
    )

    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Optimistic lock counter, checked on every UPDATE",
    )

    __mapper_args__ = {"version_id_col": version}

    cubicle: Mapped["Cubicle"] = relationship("Cubicle", lazy="joined")
    student: Mapped["Student"] = relationship("Student", back_populates="rentals", lazy="joined")
