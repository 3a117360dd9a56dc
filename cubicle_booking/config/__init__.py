"""
Configuration package for the cubicle booking service.

Contains environment settings and logging configuration.
"""

from cubicle_booking.config.settings import settings, get_settings, Settings
from cubicle_booking.config.logging import setup_logging, get_logger

__all__ = ['settings', 'get_settings', 'Settings', 'setup_logging', 'get_logger']
