"""
Repositories package.

Exports the data-access classes for convenient imports.
"""

from cubicle_booking.repositories.base_repository import BaseRepository
from cubicle_booking.repositories.student_repository import StudentRepository
from cubicle_booking.repositories.cubicle_repository import CubicleRepository
from cubicle_booking.repositories.rental_repository import RentalRepository

__all__ = [
    "BaseRepository",
    "StudentRepository",
    "CubicleRepository",
    "RentalRepository",
]
