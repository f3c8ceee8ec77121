"""Time-of-day gate for the daily reminder (core domain)."""

from __future__ import annotations

from datetime import datetime, timezone
from zoneinfo import ZoneInfo


def _as_utc(timestamp: datetime) -> datetime:
    # Naive timestamps are produced by utcnow-style clocks.
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc)


def is_daily_trigger(timestamp: datetime, zone: str = "CET", hour: int = 9) -> bool:
    """Return True when ``timestamp`` falls inside ``hour`` in ``zone``.

    The gate covers the whole hour and does not remember earlier hits, so
    callers must evaluate it at most once per hour to get one reminder a day.
    """

    local = _as_utc(timestamp).astimezone(ZoneInfo(zone))
    return local.hour == hour


def report_date(timestamp: datetime) -> str:
    """Format the UTC day of ``timestamp`` as YYYYMMDD."""

    return _as_utc(timestamp).strftime("%Y%m%d")
