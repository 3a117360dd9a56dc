"""
Change-notification primitives.
"""
from .base_event import ChangeEvent, ChangeType
from .change_feed import ChangeFeed, ChangeHandler, Subscription, change_feed

__all__ = [
    "ChangeEvent",
    "ChangeType",
    "ChangeFeed",
    "ChangeHandler",
    "Subscription",
    "change_feed",
]
