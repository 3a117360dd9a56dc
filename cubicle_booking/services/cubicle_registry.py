"""
Cubicle registry and live occupancy board.
"""

import logging
import threading
import time
from typing import Callable, List, Optional

from sqlalchemy.orm import Session, sessionmaker

from cubicle_booking.core.events import ChangeEvent, ChangeFeed, ChangeType, Subscription, change_feed
from cubicle_booking.core.exceptions import NotFoundError
from cubicle_booking.models.cubicle import Cubicle
from cubicle_booking.repositories.cubicle_repository import CubicleRepository
from cubicle_booking.schemas.rental import CubicleResponse
from cubicle_booking.services.base import BaseService, ServiceResult

logger = logging.getLogger(__name__)

WATCHED_TABLES = ("cubicles", "rentals")


class CubicleRegistryService(BaseService):
    """
    Read access to the fixed cubicle set and its occupancy.
    """

    def __init__(self, db_session: Session):
        super().__init__(db_session)
        self.cubicles = CubicleRepository(db_session)

    def list(self) -> ServiceResult[List[Cubicle]]:
        """All cubicles ordered by id."""
        try:
            return ServiceResult.success(self.cubicles.list_with_rentals())
        except Exception as e:
            return self._handle_exception(e, "list cubicles")

    def get(self, cubicle_id: int) -> ServiceResult[Cubicle]:
        try:
            cubicle = self.cubicles.get_with_rental(cubicle_id)
            if cubicle is None:
                raise NotFoundError("Cubículo", cubicle_id)
            return ServiceResult.success(cubicle)
        except Exception as e:
            return self._handle_exception(e, "get cubicle", cubicle_id)


class CubicleBoard:
    """
    Process-wide cached view of the registry.

    The cache is dropped whenever a committed change to cubicles or rentals
    is published, and rebuilt from the store on the next read. The change
    feed only carries commits made by this process, so a snapshot is also
    discarded once it is older than ``ttl_seconds``; that bounds how long a
    booking made by another worker can go unseen. ``None`` disables expiry.

    It is meant for display only; booking decisions always re-read the store.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        feed: ChangeFeed = change_feed,
        ttl_seconds: Optional[float] = None,
        timer: Callable[[], float] = time.monotonic,
    ):
        self._session_factory = session_factory
        self._feed = feed
        self._ttl = ttl_seconds
        self._timer = timer
        self._lock = threading.Lock()
        self._snapshot: Optional[List[CubicleResponse]] = None
        self._cached_at = 0.0
        self._generation = 0
        self._subscriptions: List[Subscription] = []
        self.refresh_count = 0

    def start(self) -> None:
        """Subscribe to change notifications for the watched tables."""
        if self._subscriptions:
            return
        for table in WATCHED_TABLES:
            self._subscriptions.append(self._feed.subscribe(table, self._on_change, ChangeType.ALL))

    def stop(self) -> None:
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions = []
        self.invalidate()

    def _is_fresh(self) -> bool:
        if self._snapshot is None:
            return False
        return self._ttl is None or self._timer() - self._cached_at < self._ttl

    @property
    def is_cached(self) -> bool:
        return self._is_fresh()

    def invalidate(self) -> None:
        with self._lock:
            self._snapshot = None
            self._generation += 1

    def _on_change(self, event: ChangeEvent) -> None:
        logger.debug(f"Board invalidated by {event}")
        self.invalidate()

    def snapshot(self) -> ServiceResult[List[CubicleResponse]]:
        """Current board, fetched from the store if the cache is empty or expired."""
        with self._lock:
            if self._is_fresh():
                return ServiceResult.success(list(self._snapshot))
            generation = self._generation
            fetched_at = self._timer()

        with self._session_factory() as db:
            result = CubicleRegistryService(db).list()
            if not result:
                return ServiceResult.failure(result.error)
            board = [CubicleResponse.from_model(cubicle) for cubicle in result.data]

        with self._lock:
            # Skip caching if a change arrived while fetching
            if generation == self._generation:
                self._snapshot = board
                self._cached_at = fetched_at
            self.refresh_count += 1
        return ServiceResult.success(list(board))
