"""
Change feed for the cubicle booking service.

Subscribers register a handler for a table name and a change type (or the
``*`` wildcard). Publishing dispatches to every matching handler in
registration order. A failing handler is logged and does not prevent the
remaining handlers from running. Handlers run outside the feed lock, so a
handler may subscribe or unsubscribe.
"""
import logging
import threading
from typing import Callable, Dict, List, Tuple

from .base_event import ChangeEvent, ChangeType

logger = logging.getLogger(__name__)

ChangeHandler = Callable[[ChangeEvent], None]


class Subscription:
    """Handle returned by ``ChangeFeed.subscribe``."""

    def __init__(self, feed: "ChangeFeed", table: str, change_type: ChangeType, handler: ChangeHandler):
        self._feed = feed
        self.table = table
        self.change_type = change_type
        self.handler = handler

    def unsubscribe(self) -> None:
        self._feed.unsubscribe(self)


class ChangeFeed:
    """
    In-process publish/subscribe channel for committed row changes.
    """

    def __init__(self):
        self._handlers: Dict[Tuple[str, ChangeType], List[Subscription]] = {}
        self._lock = threading.Lock()

    def subscribe(
        self,
        table: str,
        handler: ChangeHandler,
        change_type: ChangeType = ChangeType.ALL,
    ) -> Subscription:
        """
        Subscribe a handler to changes on a table.

        Args:
            table: Table name, e.g. ``"rentals"``
            handler: Callable receiving the ``ChangeEvent``
            change_type: Change type to listen for, ``ChangeType.ALL`` for any

        Returns:
            Subscription that can be cancelled with ``unsubscribe()``
        """
        subscription = Subscription(self, table, change_type, handler)
        with self._lock:
            self._handlers.setdefault((table, change_type), []).append(subscription)
        logger.info(f"Registered change handler for {table}.{change_type.value}")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        key = (subscription.table, subscription.change_type)
        with self._lock:
            subscribers = self._handlers.get(key, [])
            removed = subscription in subscribers
            if removed:
                subscribers.remove(subscription)
        if removed:
            logger.info(f"Unregistered change handler for {key[0]}.{key[1].value}")

    def publish(self, event: ChangeEvent) -> int:
        """
        Dispatch an event to all matching subscribers.

        Returns:
            Number of handlers invoked
        """
        with self._lock:
            subscriptions = (
                self._handlers.get((event.table, event.change_type), [])
                + self._handlers.get((event.table, ChangeType.ALL), [])
            )
        if not subscriptions:
            logger.debug(f"No handlers found for {event}")
            return 0

        for subscription in subscriptions:
            try:
                subscription.handler(event)
            except Exception as e:
                logger.error(f"Error handling change event {event}: {str(e)}", exc_info=True)
        return len(subscriptions)

    def get_stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                f"{table}.{change_type.value}": len(subs)
                for (table, change_type), subs in self._handlers.items()
            }


# Global change feed instance
change_feed = ChangeFeed()
