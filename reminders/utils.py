"""Utility helpers shared across modules."""

from __future__ import annotations

from datetime import UTC, datetime, time, timedelta, tzinfo


def ensure_aware(dt: datetime, tz: tzinfo = UTC) -> datetime:
    """Attach ``tz`` to naive datetimes and convert aware ones into it."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=tz)
    return dt.astimezone(tz)


def start_of_day(dt: datetime) -> datetime:
    """Midnight at the start of ``dt``'s calendar day, same time zone."""
    return datetime.combine(dt.date(), time.min, tzinfo=dt.tzinfo)


def end_of_day(dt: datetime) -> datetime:
    """Last representable instant of ``dt``'s calendar day, same time zone."""
    return datetime.combine(dt.date(), time.max, tzinfo=dt.tzinfo)


def due_window(now: datetime, lookahead_days: int) -> tuple[datetime, datetime]:
    """Inclusive window from the start of today to the end of today + N days."""
    return start_of_day(now), end_of_day(now + timedelta(days=lookahead_days))


def isoformat(dt: datetime) -> str:
    """Return an ISO string that the Notion date filter accepts."""
    return dt.isoformat(timespec="milliseconds")
