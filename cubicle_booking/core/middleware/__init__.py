from .error_handling import register_exception_handlers
from .request_tracking import (
    ErrorLoggingMiddleware,
    RequestIDMiddleware,
    TimingMiddleware,
    register_middlewares,
)

__all__ = [
    "register_exception_handlers",
    "register_middlewares",
    "RequestIDMiddleware",
    "TimingMiddleware",
    "ErrorLoggingMiddleware",
]
