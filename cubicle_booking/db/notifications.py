"""
Bridge from SQLAlchemy session events to the change feed.

Row changes are collected after each flush and published only once the
transaction commits, so subscribers never observe rolled-back state.
"""
import logging
from datetime import datetime
from typing import List, Tuple
from weakref import WeakKeyDictionary

from sqlalchemy import event, inspect
from sqlalchemy.orm import Session, sessionmaker

from cubicle_booking.core.events import ChangeEvent, ChangeFeed, ChangeType, change_feed
from cubicle_booking.models.base import BaseModel, as_utc

logger = logging.getLogger(__name__)

_PENDING_KEY = "pending_changes"

PendingChange = Tuple[str, ChangeType, dict]

# session factory -> feed it already publishes to
_installed: "WeakKeyDictionary[sessionmaker, ChangeFeed]" = WeakKeyDictionary()


def _snapshot(obj: BaseModel) -> dict:
    # Only already-loaded attributes; loading expired ones here would emit SQL mid-flush
    loaded = inspect(obj).dict
    record = {}
    for column in obj.__table__.columns:
        if column.key in loaded:
            value = loaded[column.key]
            record[column.name] = as_utc(value).isoformat() if isinstance(value, datetime) else value
    return record


def _collect_changes(session: Session, flush_context) -> None:
    pending: List[PendingChange] = session.info.setdefault(_PENDING_KEY, [])

    for obj in session.new:
        if isinstance(obj, BaseModel):
            pending.append((obj.__tablename__, ChangeType.INSERT, _snapshot(obj)))
    for obj in session.dirty:
        if isinstance(obj, BaseModel) and session.is_modified(obj, include_collections=False):
            pending.append((obj.__tablename__, ChangeType.UPDATE, _snapshot(obj)))
    for obj in session.deleted:
        if isinstance(obj, BaseModel):
            pending.append((obj.__tablename__, ChangeType.DELETE, _snapshot(obj)))


def _discard_changes(session: Session) -> None:
    session.info.pop(_PENDING_KEY, None)


def install_change_notifications(session_factory: sessionmaker, feed: ChangeFeed = change_feed) -> None:
    """
    Publish committed row changes from sessions created by ``session_factory``.

    Args:
        session_factory: sessionmaker whose sessions should be observed
        feed: Change feed receiving the events
    """
    if _installed.get(session_factory) is feed:
        return

    def after_flush(session: Session, flush_context) -> None:
        _collect_changes(session, flush_context)

    def after_commit(session: Session) -> None:
        pending: List[PendingChange] = session.info.pop(_PENDING_KEY, [])
        for table, change_type, record in pending:
            feed.publish(ChangeEvent(table, change_type, record))
        if pending:
            logger.debug(f"Published {len(pending)} change event(s)")

    def after_rollback(session: Session) -> None:
        _discard_changes(session)

    event.listen(session_factory, "after_flush", after_flush)
    event.listen(session_factory, "after_commit", after_commit)
    event.listen(session_factory, "after_rollback", after_rollback)
    _installed[session_factory] = feed
    logger.info("Change notifications installed")
