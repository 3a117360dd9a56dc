"""
FastAPI dependencies.

Sessions come from the session factory stored on ``app.state`` by
``create_app`` so tests can point the whole application at another
database. Services are built per request around that session.

Example usage in a router:
    from fastapi import Depends, APIRouter
    from cubicle_booking.api import deps

    router = APIRouter()

    @router.get("/students")
    def search(directory = Depends(deps.get_student_directory)):
        ...
"""

from datetime import datetime
from typing import Callable, Generator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from cubicle_booking.config.settings import Settings, get_settings
from cubicle_booking.services import (
    BookingFlowManager,
    BookingFlowService,
    CubicleBoard,
    CubicleRegistryService,
    RentalLifecycleService,
    ReportExportService,
    ReportService,
    StudentDirectoryService,
    StudentImportService,
)


# --- Database & application state ---------------------------------------------

def get_db(request: Request) -> Generator[Session, None, None]:
    """Yield a session from the application's session factory."""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_app_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or get_settings()


def get_clock(request: Request) -> Callable[[], datetime]:
    return request.app.state.clock


def get_board(request: Request) -> CubicleBoard:
    return request.app.state.board


def get_flow_manager(request: Request) -> BookingFlowManager:
    return request.app.state.flow_manager


# --- Services -----------------------------------------------------------------

def get_student_directory(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> StudentDirectoryService:
    return StudentDirectoryService(db, settings)


def get_student_import(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> StudentImportService:
    return StudentImportService(db, settings)


def get_cubicle_registry(db: Session = Depends(get_db)) -> CubicleRegistryService:
    return CubicleRegistryService(db)


def get_rental_lifecycle(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> RentalLifecycleService:
    return RentalLifecycleService(db, settings, clock)


def get_booking_flows(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    clock: Callable[[], datetime] = Depends(get_clock),
    manager: BookingFlowManager = Depends(get_flow_manager),
) -> BookingFlowService:
    return BookingFlowService(db, manager, settings, RentalLifecycleService(db, settings, clock))


def get_report_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> ReportService:
    return ReportService(db, settings, clock)


def get_report_export(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> ReportExportService:
    return ReportExportService(db, settings, clock)
