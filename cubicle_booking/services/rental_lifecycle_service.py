"""
Rental lifecycle: booking and releasing cubicles.

A cubicle is Available or Occupied. ``book`` moves it to Occupied and
creates the active rental; ``release`` deactivates the rental and frees
the cubicle. Each transition writes the rental and the occupancy flag in
one transaction.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from cubicle_booking.config.settings import Settings, get_settings
from cubicle_booking.core.exceptions import (
    AlreadyOccupiedError,
    InvalidHoursError,
    NoActiveRentalError,
    NotFoundError,
    UnknownStudentError,
)
from cubicle_booking.models.cubicle import Cubicle
from cubicle_booking.models.rental import Rental
from cubicle_booking.repositories.cubicle_repository import CubicleRepository
from cubicle_booking.repositories.rental_repository import RentalRepository
from cubicle_booking.repositories.student_repository import StudentRepository
from cubicle_booking.services.base import BaseService, ServiceResult

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RentalLifecycleService(BaseService):
    """
    Books and releases cubicles.
    """

    def __init__(
        self,
        db_session: Session,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ):
        super().__init__(db_session)
        self.settings = settings or get_settings()
        self.clock = clock or utc_now
        self.cubicles = CubicleRepository(db_session)
        self.rentals = RentalRepository(db_session)
        self.students = StudentRepository(db_session)

    def validate_hours(self, hours: int) -> None:
        """Raise InvalidHoursError unless ``hours`` is a whole number in the allowed range."""
        min_hours = self.settings.MIN_RENTAL_HOURS
        max_hours = self.settings.MAX_RENTAL_HOURS
        if isinstance(hours, bool) or not isinstance(hours, int) or not min_hours <= hours <= max_hours:
            raise InvalidHoursError(hours, min_hours, max_hours)

    def _get_cubicle(self, cubicle_id: int) -> Cubicle:
        cubicle = self.cubicles.get_by_id(cubicle_id)
        if cubicle is None:
            raise NotFoundError("Cubículo", cubicle_id)
        return cubicle

    def book(self, cubicle_id: int, student_id: str, hours: int) -> ServiceResult[Rental]:
        """
        Book an available cubicle for a registered student.

        Checks run in order: hours range, cubicle exists, student exists,
        cubicle available.
        """
        try:
            self.validate_hours(hours)
            cubicle = self._get_cubicle(cubicle_id)
            if self.students.get_by_id(student_id) is None:
                raise UnknownStudentError(student_id)
            if cubicle.is_occupied or self.rentals.count_active_for_cubicle(cubicle_id) > 0:
                raise AlreadyOccupiedError(cubicle_id)

            start_time = self.clock()
            try:
                with self.transaction():
                    rental = self.rentals.add(
                        Rental(
                            cubicle_id=cubicle_id,
                            student_id=student_id,
                            hours=hours,
                            start_time=start_time,
                            end_time=start_time + timedelta(hours=hours),
                            is_active=True,
                        )
                    )
                    cubicle.is_occupied = True
            except IntegrityError:
                # Another booking for this cubicle committed first
                raise AlreadyOccupiedError(cubicle_id)

            self.db.refresh(rental)
            self._log_operation(
                f"Cubicle {cubicle_id} booked",
                rental.id,
                {"cubicle_id": cubicle_id, "student_id": student_id, "hours": hours},
            )
            return ServiceResult.success(rental, message=f"Cubículo {cubicle_id} rentado por {hours} hora(s)")
        except Exception as e:
            return self._handle_exception(e, "book cubicle", cubicle_id)

    def release(self, cubicle_id: int) -> ServiceResult[Rental]:
        """
        Release an occupied cubicle, deactivating its rental.

        The rental UPDATE is guarded by its version counter. If another desk
        released (or released and rebooked) the cubicle after the rental was
        read, nothing is written and the call fails with NO_ACTIVE_RENTAL.
        """
        try:
            cubicle = self._get_cubicle(cubicle_id)
            rental = self.rentals.find_active_for_cubicle(cubicle_id)
            if rental is None:
                raise NoActiveRentalError(cubicle_id)

            try:
                with self.transaction():
                    rental.is_active = False
                    rental.released_at = self.clock()
                    cubicle.is_occupied = False
            except StaleDataError:
                raise NoActiveRentalError(cubicle_id)

            self.db.refresh(rental)
            self._log_operation(f"Cubicle {cubicle_id} released", rental.id, {"cubicle_id": cubicle_id})
            return ServiceResult.success(rental, message=f"Cubículo {cubicle_id} liberado")
        except Exception as e:
            return self._handle_exception(e, "release cubicle", cubicle_id)

    def get_active_rental(self, cubicle_id: int) -> ServiceResult[Optional[Rental]]:
        try:
            self._get_cubicle(cubicle_id)
            return ServiceResult.success(self.rentals.find_active_for_cubicle(cubicle_id))
        except Exception as e:
            return self._handle_exception(e, "get active rental", cubicle_id)

    def history(self, cubicle_id: int, limit: int = 50) -> ServiceResult[List[Rental]]:
        """Rentals of a cubicle, newest first."""
        try:
            self._get_cubicle(cubicle_id)
            return ServiceResult.success(self.rentals.list_for_cubicle(cubicle_id, limit))
        except Exception as e:
            return self._handle_exception(e, "get rental history", cubicle_id)
