"""
Base service class shared by the directory, rental, report and flow services.
"""

from typing import Optional, Dict, Any
from contextlib import contextmanager

from sqlalchemy.orm import Session
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError, SQLAlchemyError

from cubicle_booking.config.logging import get_logger
from cubicle_booking.core.exceptions import BackendUnavailableError, BaseAppException
from cubicle_booking.services.base.service_result import (
    ServiceResult,
    ServiceError,
    ErrorCode,
    ErrorSeverity,
)


class BaseService:
    """
    Base service with common behaviors:
    - Shared logger and db session
    - Exceptions converted to ServiceResult failures at the service boundary
    - Commit-or-rollback transaction scope
    """

    def __init__(self, db_session: Session):
        self.db: Session = db_session
        self._logger = get_logger(self.__class__.__name__)

    # -------------------------------------------------------------------------
    # Exception & Error Handling
    # -------------------------------------------------------------------------

    def _handle_exception(
        self,
        exception: Exception,
        operation: str,
        entity_ref: Optional[Any] = None,
        additional_context: Optional[Dict[str, Any]] = None,
    ) -> ServiceResult:
        """
        Turn an exception raised inside a service operation into a failure.

        Application exceptions keep their code and message. Store
        connectivity failures become BACKEND_UNAVAILABLE; anything else is
        an INTERNAL_ERROR.

        Args:
            exception: The caught exception
            operation: Short description used in log lines
            entity_ref: Cubicle number, student id, flow id...
            additional_context: Extra fields for the log record
        """
        context = {
            "operation": operation,
            "entity_ref": str(entity_ref) if entity_ref is not None else None,
            "exception_type": type(exception).__name__,
        }
        if additional_context:
            context.update(additional_context)

        if isinstance(exception, BaseAppException):
            self._logger.warning(f"{operation} rejected: {exception.message}", extra=context)
            return ServiceResult.from_app_exception(exception)

        if isinstance(exception, (OperationalError, DBAPIError)) and not isinstance(exception, IntegrityError):
            self._logger.error(f"Backend unavailable during {operation}: {exception}", extra=context)
            return ServiceResult.from_app_exception(
                BackendUnavailableError(details={"operation": operation}),
                severity=ErrorSeverity.CRITICAL,
            )

        self._logger.error(f"Error during {operation}: {exception}", exc_info=True, extra=context)
        code = ErrorCode.VALIDATION_ERROR if isinstance(exception, ValueError) else ErrorCode.INTERNAL_ERROR
        return ServiceResult.failure(
            ServiceError(
                code=code,
                message=BaseAppException.default_message,
                details={"error": str(exception), "entity_ref": context["entity_ref"]},
                severity=ErrorSeverity.CRITICAL,
            )
        )

    # -------------------------------------------------------------------------
    # Transaction Management
    # -------------------------------------------------------------------------

    @contextmanager
    def transaction(self):
        """
        Commit the session when the block succeeds, roll back otherwise.

        Example:
            with self.transaction():
                self.rentals.add(rental)
                cubicle.is_occupied = True
        """
        try:
            yield self.db
            self.db.commit()
        except Exception as e:
            self._rollback()
            self._logger.debug(f"Transaction aborted: {e}")
            raise

    def _rollback(self) -> None:
        try:
            self.db.rollback()
        except SQLAlchemyError as e:
            # Rollback errors must not mask the original error
            self._logger.warning(f"Rollback failed: {e}")

    # -------------------------------------------------------------------------
    # Utility Methods
    # -------------------------------------------------------------------------

    def _log_operation(
        self,
        operation: str,
        entity_ref: Optional[Any] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Log a completed state change at INFO with structured context."""
        context = {"entity_ref": str(entity_ref) if entity_ref else None}
        if extra:
            context.update(extra)
        self._logger.info(operation, extra=context)
