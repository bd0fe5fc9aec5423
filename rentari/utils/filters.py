"""Date helpers: UTC clock, calendar-month arithmetic and local formatting."""
import calendar
from datetime import datetime

import pytz


def utcnow() -> datetime:
    """Timezone-aware current time in UTC. Tests monkeypatch this."""
    return datetime.now(pytz.utc)


def add_months(value: datetime, months: int) -> datetime:
    """
    Add calendar months to a datetime.
    The day is clamped to the last day of the target month:
    2025-01-31 + 1 month -> 2025-02-28.
    """
    total = value.month - 1 + int(months)
    year = value.year + total // 12
    month = total % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def to_iso(value):
    """Serialize a datetime to ISO-8601 (UTC); pass other values through."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = pytz.utc.localize(value)
        return value.astimezone(pytz.utc).isoformat(timespec="seconds")
    return value


def fmt_local(value: datetime, tz_name: str = "Europe/Madrid") -> str:
    """
    Format a datetime as 'HH:MM' in the given timezone, for user-facing text.
    Naive values are assumed to be UTC; unknown zones fall back to UTC.
    """
    if value is None:
        return ""
    if value.tzinfo is None:
        value = pytz.utc.localize(value)
    try:
        tz = pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        tz = pytz.utc
    return value.astimezone(tz).strftime("%H:%M")
