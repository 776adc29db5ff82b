from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo


def _start_of_day(dt: datetime) -> datetime:
    return datetime(dt.year, dt.month, dt.day)


def to_local(ts: datetime, tz: ZoneInfo) -> datetime:
    """Convert a naive UTC timestamp (as stored in Mongo) to the display zone."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(tz)


def local_day(ts: datetime, tz: ZoneInfo) -> datetime:
    """Calendar day of ``ts`` in the display zone, as a naive midnight datetime."""
    return _start_of_day(to_local(ts, tz))


def day_of(d: date | datetime) -> datetime:
    return datetime(d.year, d.month, d.day)


def format_hhmm(ts: datetime, tz: ZoneInfo) -> str:
    return to_local(ts, tz).strftime("%H:%M")


def time_range(start: datetime, end: datetime, tz: ZoneInfo) -> str:
    return f"{format_hhmm(start, tz)}-{format_hhmm(end, tz)}"


def month_bounds(year: int, month: int) -> tuple[datetime, datetime]:
    """Half-open [first day, first day of next month) range."""
    start = datetime(year, month, 1)
    end = datetime(year + (1 if month == 12 else 0), 1 if month == 12 else month + 1, 1)
    return start, end


def next_day(day: datetime) -> datetime:
    return day + timedelta(days=1)


def utcnow() -> datetime:
    return datetime.utcnow()
