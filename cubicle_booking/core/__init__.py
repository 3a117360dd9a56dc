"""
Core Module

Error taxonomy, change feed and HTTP middleware shared across the service.
"""

from .exceptions import *  # noqa: F401,F403
from .events import ChangeEvent, ChangeFeed, ChangeType, change_feed  # noqa: F401
