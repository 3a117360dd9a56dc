"""
Booking flow controller.

Drives the front-desk dialog that ends in a rental: find or register a
student, pick the duration, review and confirm. Each open flow is a small
state machine held in memory by ``BookingFlowManager``; only ``confirm``
and ``register`` touch the store.

    SEARCH ──start_registration──> REGISTER ──register──> SELECT_HOURS
      │  <──────────back──────────────┘                      │  ^
      └──select_student──────────────────────────────────────┘  │
    SELECT_HOURS ──review──> CONFIRM ──confirm──> COMPLETED      │
                  <──back─────┘ (back from SELECT_HOURS -> SEARCH)
    any non-terminal ──cancel──> CANCELLED
"""

import logging
import threading
import time
from typing import Callable, Dict, List, Optional
from uuid import uuid4

from sqlalchemy.orm import Session

from cubicle_booking.config.settings import Settings, get_settings
from cubicle_booking.core.exceptions import (
    AlreadyOccupiedError,
    ErrorCode,
    InvalidStateError,
    NotFoundError,
    UnknownStudentError,
)
from cubicle_booking.schemas.booking_flow import BookingFlowState, FlowStep
from cubicle_booking.schemas.rental import RentalResponse
from cubicle_booking.schemas.student import StudentCreate, StudentResponse
from cubicle_booking.services.base import BaseService, ServiceResult
from cubicle_booking.services.rental_lifecycle_service import RentalLifecycleService
from cubicle_booking.services.student_directory_service import StudentDirectoryService

logger = logging.getLogger(__name__)


class BookingFlow:
    """
    One booking dialog for one cubicle.

    Transition methods raise ``InvalidStateError`` when called in the wrong
    step, and leave the step unchanged when a backend call fails.
    """

    def __init__(self, cubicle_id: int, default_hours: int = 1, flow_id: Optional[str] = None):
        self.flow_id = flow_id or str(uuid4())
        self.cubicle_id = cubicle_id
        self.step = FlowStep.SEARCH
        self.query = ""
        self.results: List[StudentResponse] = []
        self.selected_student: Optional[StudentResponse] = None
        self.default_hours = default_hours
        self.hours = default_hours
        self.rental: Optional[RentalResponse] = None

    def _require(self, action: str, *steps: FlowStep) -> None:
        if self.step not in steps:
            raise InvalidStateError(self.step.value, action)

    # ==================== SEARCH ====================

    def search(self, directory: StudentDirectoryService, query: str) -> None:
        self._require("search", FlowStep.SEARCH)
        students = directory.search(query).unwrap()
        self.query = query
        self.results = [StudentResponse.model_validate(student) for student in students]

    def start_registration(self) -> None:
        self._require("start_registration", FlowStep.SEARCH)
        self.step = FlowStep.REGISTER

    def select_student(self, directory: StudentDirectoryService, student_id: str) -> None:
        self._require("select_student", FlowStep.SEARCH)
        result = directory.get(student_id)
        if result.error_code == ErrorCode.NOT_FOUND:
            raise UnknownStudentError(student_id)
        self._choose(StudentResponse.model_validate(result.unwrap()))

    # ==================== REGISTER ====================

    def register(self, directory: StudentDirectoryService, candidate: StudentCreate) -> None:
        self._require("register", FlowStep.REGISTER)
        student = directory.register(candidate).unwrap()
        self._choose(StudentResponse.model_validate(student))

    def _choose(self, student: StudentResponse) -> None:
        self.selected_student = student
        self.hours = self.default_hours
        self.step = FlowStep.SELECT_HOURS

    # ==================== SELECT_HOURS ====================

    def choose_hours(self, lifecycle: RentalLifecycleService, hours: int) -> None:
        self._require("choose_hours", FlowStep.SELECT_HOURS)
        lifecycle.validate_hours(hours)
        self.hours = hours

    def review(self) -> None:
        self._require("review", FlowStep.SELECT_HOURS)
        self.step = FlowStep.CONFIRM

    # ==================== CONFIRM ====================

    def confirm(self, lifecycle: RentalLifecycleService) -> None:
        self._require("confirm", FlowStep.CONFIRM)
        rental = lifecycle.book(self.cubicle_id, self.selected_student.id, self.hours).unwrap()
        self.rental = RentalResponse.model_validate(rental)
        self.step = FlowStep.COMPLETED

    # ==================== Any step ====================

    def back(self) -> None:
        previous = {
            FlowStep.REGISTER: FlowStep.SEARCH,
            FlowStep.SELECT_HOURS: FlowStep.SEARCH,
            FlowStep.CONFIRM: FlowStep.SELECT_HOURS,
        }
        self._require("back", *previous)
        if self.step == FlowStep.SELECT_HOURS:
            self.selected_student = None
        self.step = previous[self.step]

    def cancel(self) -> None:
        if self.step.is_terminal:
            raise InvalidStateError(self.step.value, "cancel")
        self.step = FlowStep.CANCELLED

    def state(self) -> BookingFlowState:
        return BookingFlowState(
            flow_id=self.flow_id,
            cubicle_id=self.cubicle_id,
            step=self.step,
            query=self.query,
            results=list(self.results),
            selected_student=self.selected_student,
            hours=self.hours,
            rental=self.rental,
        )


class BookingFlowManager:
    """
    In-process registry of open booking flows keyed by flow id.

    Flows that reach a terminal step are discarded. So are flows nobody has
    touched for ``idle_timeout`` seconds, which covers dialogs abandoned
    without a cancel; ``None`` keeps them until they finish.
    """

    def __init__(
        self,
        idle_timeout: Optional[float] = None,
        timer: Callable[[], float] = time.monotonic,
    ):
        self._flows: Dict[str, BookingFlow] = {}
        self._touched: Dict[str, float] = {}
        self._lock = threading.Lock()
        self.idle_timeout = idle_timeout
        self._timer = timer

    def _expire_idle(self, now: float) -> None:
        if self.idle_timeout is None:
            return
        expired = [flow_id for flow_id, touched in self._touched.items() if now - touched >= self.idle_timeout]
        for flow_id in expired:
            self._flows.pop(flow_id, None)
            self._touched.pop(flow_id, None)
        if expired:
            logger.info(f"Discarded {len(expired)} idle booking flow(s)")

    def add(self, flow: BookingFlow) -> BookingFlow:
        with self._lock:
            now = self._timer()
            self._expire_idle(now)
            self._flows[flow.flow_id] = flow
            self._touched[flow.flow_id] = now
        return flow

    def get(self, flow_id: str) -> BookingFlow:
        """Return an open flow and mark it as used."""
        with self._lock:
            now = self._timer()
            self._expire_idle(now)
            flow = self._flows.get(flow_id)
            if flow is not None:
                self._touched[flow_id] = now
        if flow is None:
            raise NotFoundError("Flujo de renta", flow_id)
        return flow

    def discard_if_finished(self, flow: BookingFlow) -> None:
        if flow.step.is_terminal:
            with self._lock:
                self._flows.pop(flow.flow_id, None)
                self._touched.pop(flow.flow_id, None)

    def __len__(self) -> int:
        with self._lock:
            self._expire_idle(self._timer())
            return len(self._flows)


class BookingFlowService(BaseService):
    """
    Runs booking flow transitions against the store and returns the
    resulting flow state.
    """

    def __init__(
        self,
        db_session: Session,
        manager: BookingFlowManager,
        settings: Optional[Settings] = None,
        lifecycle: Optional[RentalLifecycleService] = None,
    ):
        super().__init__(db_session)
        self.settings = settings or get_settings()
        self.manager = manager
        self.directory = StudentDirectoryService(db_session, self.settings)
        self.lifecycle = lifecycle or RentalLifecycleService(db_session, self.settings)

    def open(self, cubicle_id: int) -> ServiceResult[BookingFlowState]:
        """Open a flow for an available cubicle."""
        try:
            cubicle = self.lifecycle.cubicles.get_by_id(cubicle_id)
            if cubicle is None:
                raise NotFoundError("Cubículo", cubicle_id)
            if cubicle.is_occupied:
                raise AlreadyOccupiedError(cubicle_id)
            flow = self.manager.add(BookingFlow(cubicle_id, self.settings.DEFAULT_RENTAL_HOURS))
            self._logger.info(f"Booking flow {flow.flow_id} opened for cubicle {cubicle_id}")
            return ServiceResult.success(flow.state())
        except Exception as e:
            return self._handle_exception(e, "open booking flow", cubicle_id)

    def get(self, flow_id: str) -> ServiceResult[BookingFlowState]:
        try:
            return ServiceResult.success(self.manager.get(flow_id).state())
        except Exception as e:
            return self._handle_exception(e, "get booking flow", flow_id)

    def _run(self, flow_id: str, action: str, transition) -> ServiceResult[BookingFlowState]:
        try:
            flow = self.manager.get(flow_id)
            before = flow.step
            transition(flow)
            if flow.step != before:
                self._logger.info(f"Booking flow {flow_id}: {before.value} -> {flow.step.value}")
            self.manager.discard_if_finished(flow)
            return ServiceResult.success(flow.state())
        except Exception as e:
            return self._handle_exception(e, action, flow_id)

    def search(self, flow_id: str, query: str) -> ServiceResult[BookingFlowState]:
        return self._run(flow_id, "search students", lambda flow: flow.search(self.directory, query))

    def start_registration(self, flow_id: str) -> ServiceResult[BookingFlowState]:
        return self._run(flow_id, "start registration", lambda flow: flow.start_registration())

    def register(self, flow_id: str, candidate: StudentCreate) -> ServiceResult[BookingFlowState]:
        return self._run(flow_id, "register student", lambda flow: flow.register(self.directory, candidate))

    def select_student(self, flow_id: str, student_id: str) -> ServiceResult[BookingFlowState]:
        return self._run(flow_id, "select student", lambda flow: flow.select_student(self.directory, student_id))

    def choose_hours(self, flow_id: str, hours: int) -> ServiceResult[BookingFlowState]:
        return self._run(flow_id, "choose hours", lambda flow: flow.choose_hours(self.lifecycle, hours))

    def review(self, flow_id: str) -> ServiceResult[BookingFlowState]:
        return self._run(flow_id, "review booking", lambda flow: flow.review())

    def back(self, flow_id: str) -> ServiceResult[BookingFlowState]:
        return self._run(flow_id, "go back", lambda flow: flow.back())

    def confirm(self, flow_id: str) -> ServiceResult[BookingFlowState]:
        return self._run(flow_id, "confirm booking", lambda flow: flow.confirm(self.lifecycle))

    def cancel(self, flow_id: str) -> ServiceResult[BookingFlowState]:
        return self._run(flow_id, "cancel booking flow", lambda flow: flow.cancel())
