"""
Student directory: search, registration and roster import.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cubicle_booking.config.settings import Settings, get_settings
from cubicle_booking.core.exceptions import DuplicateKeyError, NotFoundError, ValidationError
from cubicle_booking.models.student import Student
from cubicle_booking.repositories.student_repository import StudentRepository
from cubicle_booking.schemas.student import ImportResult, StudentCreate, StudentImportRecord
from cubicle_booking.services.base import BaseService, ServiceResult

NO_VALID_RECORDS_MESSAGE = "No se encontraron datos válidos en el archivo"

FIELD_LABELS = {
    "name": "nombre",
    "control_number": "número de control",
    "career": "carrera",
}

ImportRow = Union[StudentImportRecord, Mapping[str, Any]]


class StudentDirectoryService(BaseService):
    """
    Searches, registers and bulk-imports students.
    """

    def __init__(self, db_session: Session, settings: Optional[Settings] = None):
        super().__init__(db_session)
        self.settings = settings or get_settings()
        self.students = StudentRepository(db_session)

    def search(self, query: str = "") -> ServiceResult[List[Student]]:
        """
        Find students whose name contains ``query`` (case-insensitive) or
        whose control number contains it. An empty query returns the whole
        directory. Results keep directory order.
        """
        try:
            students = self.students.list_ordered()
            needle = (query or "").strip()
            if not needle:
                return ServiceResult.success(students)

            folded = needle.casefold()
            matches = [
                student
                for student in students
                if folded in student.name.casefold() or needle in student.control_number
            ]
            return ServiceResult.success(matches, metadata={"total": len(matches)})
        except Exception as e:
            return self._handle_exception(e, "search students", query)

    def register(self, candidate: StudentCreate) -> ServiceResult[Student]:
        """
        Register a new student.

        Fails with VALIDATION_ERROR when a field is empty and with
        DUPLICATE_KEY when the control number is already taken.
        """
        try:
            missing = candidate.missing_fields()
            if missing:
                raise ValidationError(
                    field_errors={field: [f"El campo {FIELD_LABELS[field]} es obligatorio"] for field in missing}
                )

            if self.students.find_by_control_number(candidate.control_number):
                raise DuplicateKeyError(candidate.control_number)

            try:
                with self.transaction():
                    student = self.students.create(
                        name=candidate.name,
                        control_number=candidate.control_number,
                        career=candidate.career,
                    )
            except IntegrityError:
                raise DuplicateKeyError(candidate.control_number)

            self.db.refresh(student)
            self._log_operation("Student registered", student.id, {"control_number": student.control_number})
            return ServiceResult.success(student, message="Alumno registrado exitosamente")
        except Exception as e:
            return self._handle_exception(e, "register student", candidate.control_number)

    def import_batch(self, records: Iterable[ImportRow]) -> ServiceResult[ImportResult]:
        """
        Upsert a batch of students keyed on control number.

        Records missing any required field are skipped. When the same
        control number appears more than once, the last occurrence wins.
        A batch without valid records succeeds with a count of zero.
        """
        try:
            valid: Dict[str, StudentImportRecord] = {}
            skipped = 0
            for raw in records:
                record = raw if isinstance(raw, StudentImportRecord) else StudentImportRecord.model_validate(raw)
                if record.missing_fields():
                    skipped += 1
                    continue
                valid[record.control_number] = record

            if not valid:
                self._logger.warning(f"Import contained no valid records ({skipped} skipped)")
                return ServiceResult.success(
                    ImportResult(imported=0, skipped=skipped, message=NO_VALID_RECORDS_MESSAGE),
                    message=NO_VALID_RECORDS_MESSAGE,
                )

            created = updated = 0
            with self.transaction():
                existing = self.students.find_by_control_numbers(valid.keys())
                for control_number, record in valid.items():
                    student = existing.get(control_number)
                    if student is None:
                        self.db.add(
                            Student(name=record.name, control_number=control_number, career=record.career)
                        )
                        created += 1
                    else:
                        student.name = record.name
                        student.career = record.career
                        updated += 1

            imported = len(valid)
            message = f"{imported} estudiantes importados exitosamente"
            self._log_operation(
                "Students imported",
                extra={
                    "imported": imported,
                    "new_students": created,
                    "updated_students": updated,
                    "skipped": skipped,
                },
            )
            return ServiceResult.success(
                ImportResult(imported=imported, skipped=skipped, created=created, updated=updated, message=message),
                message=message,
            )
        except Exception as e:
            return self._handle_exception(e, "import students")

    def get(self, student_id: str) -> ServiceResult[Student]:
        try:
            student = self.students.get_by_id(student_id)
            if student is None:
                raise NotFoundError("Alumno", student_id)
            return ServiceResult.success(student)
        except Exception as e:
            return self._handle_exception(e, "get student", student_id)

    def list_careers(self) -> ServiceResult[List[str]]:
        return ServiceResult.success(list(self.settings.CAREERS))
