"""
Exception handlers that turn application errors into JSON responses.
"""
import time
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from cubicle_booking.core.exceptions import BackendUnavailableError, BaseAppException, ErrorCode

logger = logging.getLogger(__name__)


def _error_body(request: Request, code: str, message: str, details: dict) -> dict:
    body = {
        "error": {
            "code": code,
            "message": message,
            "details": details,
            "timestamp": int(time.time()),
        }
    }
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        body["request_id"] = request_id
    return body


async def handle_application_exception(request: Request, exception: BaseAppException) -> JSONResponse:
    """Handle custom application exceptions"""
    logger.warning(
        f"Application exception: {exception.error_code.value} - {exception.message}",
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=exception.status_code,
        content=_error_body(request, exception.error_code.value, exception.message, exception.details),
    )


async def handle_request_validation_error(request: Request, exception: RequestValidationError) -> JSONResponse:
    """Handle request body/query validation errors"""
    field_errors = {}
    for error in exception.errors():
        field_path = '.'.join(str(x) for x in error['loc'])
        field_errors[field_path] = error['msg']

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_body(
            request,
            ErrorCode.VALIDATION_ERROR.value,
            "Los datos enviados no son válidos",
            {"field_errors": field_errors},
        ),
    )


async def handle_database_error(request: Request, exception: SQLAlchemyError) -> JSONResponse:
    """Handle store failures that escaped a service boundary"""
    logger.error(f"Database error on {request.url.path}: {exception}", exc_info=True)
    return await handle_application_exception(request, BackendUnavailableError())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BaseAppException, handle_application_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(SQLAlchemyError, handle_database_error)
