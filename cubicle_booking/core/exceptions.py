"""
Custom Exceptions for the Cubicle Booking Service

This module defines the error taxonomy shared by services and the API layer.
Messages are user-facing and written in Spanish, the language of the
front desk that operates the cubicles.
"""

from typing import Any, Dict, List, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Standard error codes for the application"""
    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    NOT_FOUND = "NOT_FOUND"
    INVALID_STATE = "INVALID_STATE"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_HOURS = "INVALID_HOURS"

    # Database errors
    DUPLICATE_KEY = "DUPLICATE_KEY"
    BACKEND_UNAVAILABLE = "BACKEND_UNAVAILABLE"

    # Rental lifecycle errors
    ALREADY_OCCUPIED = "ALREADY_OCCUPIED"
    NO_ACTIVE_RENTAL = "NO_ACTIVE_RENTAL"
    UNKNOWN_STUDENT = "UNKNOWN_STUDENT"

    # Import errors
    IMPORT_FORMAT_ERROR = "IMPORT_FORMAT_ERROR"


HTTP_STATUS_BY_CODE = {
    ErrorCode.INTERNAL_ERROR: 500,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.INVALID_STATE: 409,
    ErrorCode.VALIDATION_ERROR: 422,
    ErrorCode.INVALID_HOURS: 422,
    ErrorCode.DUPLICATE_KEY: 409,
    ErrorCode.BACKEND_UNAVAILABLE: 503,
    ErrorCode.ALREADY_OCCUPIED: 409,
    ErrorCode.NO_ACTIVE_RENTAL: 409,
    ErrorCode.UNKNOWN_STUDENT: 404,
    ErrorCode.IMPORT_FORMAT_ERROR: 400,
}


class BaseAppException(Exception):
    """
    Base exception class for all application exceptions.

    Provides consistent error handling across the application with
    structured error information.
    """

    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR
    default_message: str = "Ocurrió un error inesperado"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[ErrorCode] = None,
    ):
        self.message = message or self.default_message
        self.details = details or {}
        if error_code is not None:
            self.error_code = error_code
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return HTTP_STATUS_BY_CODE.get(self.error_code, 500)

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message='{self.message}', error_code='{self.error_code.value}')"


# ========================================
# Validation Exceptions
# ========================================

class ValidationError(BaseAppException):
    """Exception raised when input validation fails"""

    error_code = ErrorCode.VALIDATION_ERROR
    default_message = "Por favor completa todos los campos"

    def __init__(
        self,
        message: Optional[str] = None,
        field_errors: Optional[Dict[str, List[str]]] = None,
    ):
        details = {"field_errors": field_errors} if field_errors else {}
        super().__init__(message, details)


class InvalidHoursError(ValidationError):
    """Exception raised when a rental duration is outside the allowed range"""

    error_code = ErrorCode.INVALID_HOURS

    def __init__(self, hours: Any, min_hours: int, max_hours: int):
        super().__init__(
            f"La duración debe estar entre {min_hours} y {max_hours} horas",
            field_errors={"hours": [f"{hours} fuera del rango {min_hours}-{max_hours}"]},
        )


class DuplicateKeyError(BaseAppException):
    """Exception raised when a control number is already registered"""

    error_code = ErrorCode.DUPLICATE_KEY
    default_message = "El número de control ya está registrado"

    def __init__(self, control_number: Optional[str] = None, message: Optional[str] = None):
        super().__init__(message, {"control_number": control_number} if control_number else {})


# ========================================
# Resource Not Found Exceptions
# ========================================

class NotFoundError(BaseAppException):
    """Exception raised when a requested resource is not found"""

    error_code = ErrorCode.NOT_FOUND

    def __init__(
        self,
        resource_type: str = "Recurso",
        resource_id: Optional[Any] = None,
        message: Optional[str] = None
    ):
        if not message:
            message = f"{resource_type} no encontrado"
            if resource_id is not None:
                message += f" (ID: {resource_id})"
        super().__init__(message, {"resource_type": resource_type, "resource_id": resource_id})


class UnknownStudentError(NotFoundError):
    """Exception raised when a rental references an unregistered student"""

    error_code = ErrorCode.UNKNOWN_STUDENT

    def __init__(self, student_id: Optional[str] = None):
        super().__init__("Alumno", student_id, "El alumno seleccionado no está registrado")


# ========================================
# Rental Lifecycle Exceptions
# ========================================

class AlreadyOccupiedError(BaseAppException):
    """Exception raised when booking a cubicle that is not available"""

    error_code = ErrorCode.ALREADY_OCCUPIED

    def __init__(self, cubicle_id: int):
        super().__init__(f"El cubículo {cubicle_id} ya está ocupado", {"cubicle_id": cubicle_id})


class NoActiveRentalError(BaseAppException):
    """Exception raised when releasing a cubicle without an active rental"""

    error_code = ErrorCode.NO_ACTIVE_RENTAL

    def __init__(self, cubicle_id: int):
        super().__init__(
            f"El cubículo {cubicle_id} no tiene una renta activa",
            {"cubicle_id": cubicle_id},
        )


class InvalidStateError(BaseAppException):
    """Exception raised when a booking flow step is invoked out of order"""

    error_code = ErrorCode.INVALID_STATE

    def __init__(self, current: str, action: str):
        super().__init__(
            f"La acción '{action}' no está disponible en el paso '{current}'",
            {"current_step": current, "action": action},
        )


# ========================================
# Import / Backend Exceptions
# ========================================

class ImportFormatError(BaseAppException):
    """Exception raised for unsupported or unparseable import files"""

    error_code = ErrorCode.IMPORT_FORMAT_ERROR
    default_message = "Error al procesar el archivo"

    def __init__(self, message: Optional[str] = None, filename: Optional[str] = None):
        super().__init__(message, {"filename": filename} if filename else {})


class BackendUnavailableError(BaseAppException):
    """Exception raised when the persistence backend cannot be reached"""

    error_code = ErrorCode.BACKEND_UNAVAILABLE
    default_message = "No se pudo conectar con la base de datos. Intenta de nuevo"


__all__ = [
    "ErrorCode",
    "HTTP_STATUS_BY_CODE",
    "BaseAppException",
    "ValidationError",
    "InvalidHoursError",
    "DuplicateKeyError",
    "NotFoundError",
    "UnknownStudentError",
    "AlreadyOccupiedError",
    "NoActiveRentalError",
    "InvalidStateError",
    "ImportFormatError",
    "BackendUnavailableError",
]
