"""
Student repository.
"""

from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from cubicle_booking.models.student import Student
from cubicle_booking.repositories.base_repository import BaseRepository


class StudentRepository(BaseRepository[Student]):
    """
    Data access for the student directory.
    """

    def __init__(self, db: Session):
        super().__init__(Student, db)

    def list_ordered(self) -> List[Student]:
        """All students in directory order (by name, then control number)."""
        return (
            self.db.query(Student)
            .order_by(Student.name.asc(), Student.control_number.asc())
            .all()
        )

    def find_by_control_number(self, control_number: str) -> Optional[Student]:
        return (
            self.db.query(Student)
            .filter(Student.control_number == control_number)
            .first()
        )

    def find_by_control_numbers(self, control_numbers: Iterable[str]) -> Dict[str, Student]:
        """Map control number -> student for the given keys that exist."""
        keys = list(control_numbers)
        if not keys:
            return {}
        students = self.db.query(Student).filter(Student.control_number.in_(keys)).all()
        return {student.control_number: student for student in students}

    def create(self, name: str, control_number: str, career: str) -> Student:
        return self.add(Student(name=name, control_number=control_number, career=career))
