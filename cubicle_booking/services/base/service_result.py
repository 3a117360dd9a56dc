"""
Service result pattern.

Services return a ``ServiceResult`` instead of raising, so callers decide
whether a failure is a user-facing message (the booking flow keeps its
step) or an HTTP error (routers call ``unwrap()``).
"""

from typing import TypeVar, Generic, Optional, Any, Dict
from dataclasses import dataclass, field
from enum import Enum
from datetime import datetime, timezone

from cubicle_booking.core.exceptions import BaseAppException, ErrorCode


class ErrorSeverity(str, Enum):
    """How loudly a failure should be reported."""

    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class ServiceError:
    """Failure carried by a result: taxonomy code plus user-facing message."""

    code: ErrorCode
    message: str
    severity: ErrorSeverity = ErrorSeverity.ERROR
    details: Optional[Dict[str, Any]] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_exception(self) -> BaseAppException:
        """Rebuild an application exception carrying this error's code."""
        return BaseAppException(self.message, self.details, error_code=self.code)


TData = TypeVar("TData")


@dataclass
class ServiceResult(Generic[TData]):
    """
    Outcome of a service operation.

    Attributes:
        is_success: Operation success indicator
        data: Result data (if successful)
        error: Error information (if failed)
        message: Human-readable status message, in Spanish
        metadata: Additional context such as match counts
    """

    is_success: bool
    data: Optional[TData] = None
    error: Optional[ServiceError] = None
    message: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(
        cls,
        data: Optional[TData] = None,
        message: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "ServiceResult[TData]":
        return cls(is_success=True, data=data, message=message, metadata=metadata or {})

    @classmethod
    def failure(cls, error: ServiceError) -> "ServiceResult[TData]":
        return cls(is_success=False, error=error, message=error.message)

    @classmethod
    def from_app_exception(
        cls,
        exception: BaseAppException,
        severity: ErrorSeverity = ErrorSeverity.WARNING,
    ) -> "ServiceResult[TData]":
        """Failed result keeping the exception's code, message and details."""
        return cls.failure(
            ServiceError(
                code=exception.error_code,
                message=exception.message,
                severity=severity,
                details=exception.details or None,
            )
        )

    @property
    def error_code(self) -> Optional[ErrorCode]:
        return self.error.code if self.error else None

    def unwrap(self) -> TData:
        """
        Return the data or raise the carried application error.

        Raises:
            BaseAppException: If the result is not successful
        """
        if not self.is_success:
            if self.error is None:
                raise BaseAppException()
            raise self.error.to_exception()
        return self.data

    def __bool__(self) -> bool:
        return self.is_success

    def __repr__(self) -> str:
        status = "Success" if self.is_success else f"Failure[{self.error_code.value}]"
        if self.message:
            return f"ServiceResult({status}: {self.message})"
        return f"ServiceResult({status})"


__all__ = [
    "ErrorCode",
    "ErrorSeverity",
    "ServiceError",
    "ServiceResult",
]
