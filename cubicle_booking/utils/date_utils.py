"""
Date and time helpers for rentals and report windows.

Notes:
- All "UTC" helpers use timezone-aware datetimes with `timezone.utc`.
- Report windows are computed on the local calendar of the configured
  timezone and returned in UTC.
"""

import logging
from datetime import date, datetime, time, timezone, tzinfo
from typing import Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil.relativedelta import relativedelta

logger = logging.getLogger(__name__)

UTC = timezone.utc

WINDOW_OFFSETS = {
    "day": relativedelta(),
    "week": relativedelta(weeks=1),
    "month": relativedelta(months=1),
}


def now_utc() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(UTC)


def get_zone(name: str) -> tzinfo:
    """Resolve an IANA zone name, falling back to UTC when unknown."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone '{name}', using UTC")
        return UTC


def start_of_day(d: date, tz: tzinfo = UTC) -> datetime:
    """Return the start (00:00:00) of a given date in the given timezone."""
    return datetime.combine(d, time.min).replace(tzinfo=tz)


def end_of_day(d: date, tz: tzinfo = UTC) -> datetime:
    """Return the end (23:59:59.999999) of a given date in the given timezone."""
    return datetime.combine(d, time.max).replace(tzinfo=tz)


def window_bounds(range_key: str, now: datetime, tz: tzinfo = UTC) -> Tuple[datetime, datetime]:
    """
    Bounds of a predefined report window ending today.

    ``day`` covers today, ``week`` starts one week before the start of
    today and ``month`` one calendar month before it. Both bounds are
    inclusive and returned in UTC.

    Raises:
        KeyError: If ``range_key`` is not a known window
    """
    offset = WINDOW_OFFSETS[range_key]
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    today = now.astimezone(tz).date()
    start = start_of_day(today, tz) - offset
    end = end_of_day(today, tz)
    return start.astimezone(UTC), end.astimezone(UTC)


def format_day(value: datetime, tz: tzinfo = UTC) -> str:
    """dd/MM/yyyy in the given timezone."""
    return value.astimezone(tz).strftime("%d/%m/%Y")


def format_timestamp(value: datetime, tz: tzinfo = UTC) -> str:
    """dd/MM/yyyy 'a las' HH:mm in the given timezone."""
    return value.astimezone(tz).strftime("%d/%m/%Y a las %H:%M")
