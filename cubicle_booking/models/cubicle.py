"""
Cubicle model.

The fixed set of study cubicles. Rows are seeded at start-up and only the
occupancy flag changes afterwards.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from cubicle_booking.models.base import BaseModel

if TYPE_CHECKING:
    from cubicle_booking.models.rental import Rental

# The desk rents exactly these four cubicles
CUBICLE_IDS = (1, 2, 3, 4)


class Cubicle(BaseModel):
    """
    Study cubicle.

    ``is_occupied`` is true exactly when one active rental references the
    cubicle. Both are written in the same transaction by the rental
    lifecycle service.
    """

    __tablename__ = "cubicles"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=False,
        comment="Cubicle number",
    )

    is_occupied: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        comment="Occupancy flag",
    )

    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        server_default=func.now(),
        onupdate=func.now(),
    )

    active_rental: Mapped[Optional["Rental"]] = relationship(
        "Rental",
        primaryjoin="and_(Cubicle.id == foreign(Rental.cubicle_id), Rental.is_active.is_(True))",
        viewonly=True,
        uselist=False,
        lazy="select",
    )
