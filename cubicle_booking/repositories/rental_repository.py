"""
Rental repository.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from cubicle_booking.models.rental import Rental
from cubicle_booking.models.student import Student
from cubicle_booking.repositories.base_repository import BaseRepository
from cubicle_booking.schemas.report import RentalRecord


class RentalRepository(BaseRepository[Rental]):
    """
    Data access for rental records.
    """

    def __init__(self, db: Session):
        super().__init__(Rental, db)

    def find_active_for_cubicle(self, cubicle_id: int) -> Optional[Rental]:
        return (
            self.db.query(Rental)
            .filter(Rental.cubicle_id == cubicle_id, Rental.is_active.is_(True))
            .first()
        )

    def count_active_for_cubicle(self, cubicle_id: int) -> int:
        return (
            self.db.query(Rental)
            .filter(Rental.cubicle_id == cubicle_id, Rental.is_active.is_(True))
            .count()
        )

    def list_for_cubicle(self, cubicle_id: int, limit: int = 50) -> List[Rental]:
        return (
            self.db.query(Rental)
            .filter(Rental.cubicle_id == cubicle_id)
            .order_by(Rental.start_time.desc())
            .limit(limit)
            .all()
        )

    def list_records_between(self, start: datetime, end: datetime) -> List[RentalRecord]:
        """
        Rentals whose start time lies in ``[start, end]`` (both inclusive),
        newest first, with the renting student's name.
        """
        rows = (
            self.db.query(Rental.cubicle_id, Rental.hours, Rental.start_time, Student.name)
            .join(Student, Student.id == Rental.student_id)
            .filter(Rental.start_time >= start, Rental.start_time <= end)
            .order_by(Rental.start_time.desc())
            .all()
        )
        return [
            RentalRecord(cubicle_id=cubicle_id, hours=hours, start_time=start_time, student_name=name)
            for cubicle_id, hours, start_time, name in rows
        ]
