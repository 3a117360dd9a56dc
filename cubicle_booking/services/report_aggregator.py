"""
Usage report aggregation.

``aggregate`` is a pure function over rental records; ``ReportService``
resolves a predefined window and reads the records from the store.
"""

from collections import Counter
from datetime import datetime
from typing import Callable, Iterable, Optional, Tuple

from sqlalchemy.orm import Session

from cubicle_booking.config.settings import Settings, get_settings
from cubicle_booking.core.exceptions import ValidationError
from cubicle_booking.repositories.rental_repository import RentalRepository
from cubicle_booking.schemas.report import RentalRecord, ReportData, ReportRange, ReportWindow, TopStudent
from cubicle_booking.services.base import BaseService, ServiceResult
from cubicle_booking.utils.date_utils import get_zone, now_utc, window_bounds

UNKNOWN_STUDENT_NAME = "Desconocido"
DEFAULT_TOP_LIMIT = 5


def aggregate(
    window: ReportWindow,
    rentals: Iterable[RentalRecord],
    top_limit: int = DEFAULT_TOP_LIMIT,
) -> ReportData:
    """
    Summarize the rentals whose start time falls inside ``window``.

    Students are grouped by display name. Ties in the ranking keep the
    order in which names first appear in ``rentals``.
    """
    in_window = [rental for rental in rentals if window.contains(rental.start_time)]

    usage_by_cubicle: Counter = Counter()
    rentals_by_student: Counter = Counter()
    total_hours = 0
    for rental in in_window:
        total_hours += rental.hours
        usage_by_cubicle[rental.cubicle_id] += 1
        rentals_by_student[rental.student_name or UNKNOWN_STUDENT_NAME] += 1

    # Counter preserves insertion order and sorted() is stable
    ranked = sorted(rentals_by_student.items(), key=lambda item: item[1], reverse=True)

    return ReportData(
        total_rentals=len(in_window),
        total_hours=total_hours,
        usage_by_cubicle=dict(usage_by_cubicle),
        top_students=[TopStudent(name=name, rentals=count) for name, count in ranked[:top_limit]],
    )


class ReportService(BaseService):
    """
    Builds usage reports for the predefined day/week/month windows.
    """

    def __init__(
        self,
        db_session: Session,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        super().__init__(db_session)
        self.settings = settings or get_settings()
        self.clock = clock or now_utc
        self.rentals = RentalRepository(db_session)

    def window_for(self, report_range: ReportRange) -> ReportWindow:
        start, end = window_bounds(report_range.value, self.clock(), get_zone(self.settings.TIMEZONE))
        return ReportWindow(start=start, end=end)

    def build(self, report_range: ReportRange) -> ServiceResult[Tuple[ReportWindow, ReportData]]:
        try:
            if not isinstance(report_range, ReportRange):
                try:
                    report_range = ReportRange(report_range)
                except ValueError:
                    raise ValidationError(
                        "Rango de reporte no válido",
                        field_errors={"range": [f"{report_range} no es day, week o month"]},
                    )
            window = self.window_for(report_range)
            records = self.rentals.list_records_between(window.start, window.end)
            data = aggregate(window, records, self.settings.TOP_STUDENTS_LIMIT)
            self._logger.info(
                f"Report built for {report_range.value}: {data.total_rentals} rental(s)",
                extra={"range": report_range.value},
            )
            return ServiceResult.success((window, data))
        except Exception as e:
            return self._handle_exception(e, "build report", report_range)
