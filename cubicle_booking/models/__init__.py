"""
ORM models for students, cubicles and rentals.
"""

from cubicle_booking.models.base import Base, BaseModel, as_utc
from cubicle_booking.models.student import Student
from cubicle_booking.models.cubicle import Cubicle
from cubicle_booking.models.rental import Rental

__all__ = ["Base", "BaseModel", "as_utc", "Student", "Cubicle", "Rental"]
