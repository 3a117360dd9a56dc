"""
Logging configuration for the cubicle booking service.
Provides structured logging with different handlers and formatters.
"""

import os
import logging
import logging.config
from typing import Any, Dict
from datetime import datetime, timezone

from pythonjsonlogger import jsonlogger

from cubicle_booking.config.settings import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with additional fields"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]):
        """Add custom fields to the log record"""
        super().add_fields(log_record, record, message_dict)

        log_record['timestamp'] = datetime.now(timezone.utc).isoformat()
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['environment'] = settings.ENVIRONMENT

        if hasattr(record, 'request_id'):
            log_record['request_id'] = record.request_id

        if record.exc_info:
            log_record['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': str(record.exc_info[1]),
                'traceback': self.formatException(record.exc_info)
            }


MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 10


def _rotating_file(filename: str, level: str, formatter: str) -> Dict[str, Any]:
    return {
        'level': level,
        'class': 'logging.handlers.RotatingFileHandler',
        'filename': os.path.join(settings.LOG_DIR, filename),
        'maxBytes': MAX_LOG_BYTES,
        'backupCount': LOG_BACKUPS,
        'formatter': formatter,
        'encoding': 'utf8',
    }


def build_logging_config() -> Dict[str, Any]:
    """
    Build the dictConfig for the current settings.

    Console output is coloured in development. File handlers (plain,
    errors only, JSON) are added unless LOG_TO_FILE is off, as in tests.
    """
    handlers: Dict[str, Any] = {
        'console': {
            'level': 'DEBUG' if settings.DEBUG else 'INFO',
            'class': 'logging.StreamHandler',
            'formatter': 'colored' if settings.is_development() else 'standard'
        },
    }
    if settings.LOG_TO_FILE:
        handlers['file'] = _rotating_file('app.log', 'INFO', 'standard')
        handlers['error_file'] = _rotating_file('error.log', 'ERROR', 'standard')
        handlers['json_file'] = _rotating_file('app.json.log', 'INFO', 'json')
    all_handlers = list(handlers)
    basic_handlers = [h for h in ('console', 'file') if h in handlers]

    return {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'standard': {
                'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
            },
            'json': {
                '()': CustomJsonFormatter,
                'format': '%(timestamp)s %(level)s %(logger)s %(message)s'
            },
            'colored': {
                '()': 'colorlog.ColoredFormatter',
                'format': '%(log_color)s%(asctime)s [%(levelname)s] %(name)s: %(message)s',
                'log_colors': {
                    'DEBUG': 'cyan',
                    'INFO': 'green',
                    'WARNING': 'yellow',
                    'ERROR': 'red',
                    'CRITICAL': 'red,bg_white',
                }
            }
        },
        'handlers': handlers,
        'loggers': {
            '': {  # Root logger
                'handlers': all_handlers,
                'level': settings.LOG_LEVEL,
                'propagate': True
            },
            'cubicle_booking': {
                'handlers': all_handlers,
                'level': settings.LOG_LEVEL,
                'propagate': False
            },
            'sqlalchemy.engine': {
                'handlers': basic_handlers,
                'level': 'WARNING',
                'propagate': False
            },
            'uvicorn': {
                'handlers': basic_handlers,
                'level': 'INFO',
                'propagate': False
            },
            'uvicorn.access': {
                'handlers': ['console'],
                'level': 'INFO',
                'propagate': False
            }
        }
    }


def setup_logging() -> logging.Logger:
    """Configure application logging"""
    if settings.LOG_TO_FILE:
        os.makedirs(settings.LOG_DIR, exist_ok=True)
    logging.config.dictConfig(build_logging_config())
    logger = logging.getLogger("cubicle_booking")
    logger.info(f"Logging initialized with level: {settings.LOG_LEVEL}")
    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
