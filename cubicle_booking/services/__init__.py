"""
Business services.

Every public operation returns a ``ServiceResult``; failures carry an
``ErrorCode`` from ``cubicle_booking.core.exceptions``.
"""

from cubicle_booking.services.base import BaseService, ServiceError, ServiceResult
from cubicle_booking.services.booking_flow import BookingFlow, BookingFlowManager, BookingFlowService
from cubicle_booking.services.cubicle_registry import CubicleBoard, CubicleRegistryService
from cubicle_booking.services.rental_lifecycle_service import RentalLifecycleService
from cubicle_booking.services.report_aggregator import ReportService, aggregate
from cubicle_booking.services.report_export_service import ExportedReport, ReportExportService
from cubicle_booking.services.student_directory_service import StudentDirectoryService
from cubicle_booking.services.student_import_service import StudentImportService, parse_import_file

__all__ = [
    "BaseService",
    "ServiceError",
    "ServiceResult",
    "BookingFlow",
    "BookingFlowManager",
    "BookingFlowService",
    "CubicleBoard",
    "CubicleRegistryService",
    "RentalLifecycleService",
    "ReportService",
    "aggregate",
    "ExportedReport",
    "ReportExportService",
    "StudentDirectoryService",
    "StudentImportService",
    "parse_import_file",
]
