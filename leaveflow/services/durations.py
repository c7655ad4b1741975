"""View-only figures derived from a leave span. Nothing here is persisted."""
import math
from datetime import datetime, timedelta, timezone

ONE_DAY = timedelta(days=1)


def as_utc(value: datetime) -> datetime:
    """Normalize to an aware UTC datetime; naive values are taken to already be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def inclusive_day_span(start: datetime, end: datetime) -> int:
    """Calendar-style day count: a request from Monday 09:00 to Tuesday 09:00 spans 2 days."""
    delta = as_utc(end) - as_utc(start)
    return math.ceil(delta / ONE_DAY) + 1


def _plural(amount: int, unit: str) -> str:
    return f"{amount} {unit}{'' if amount == 1 else 's'}"


def format_duration(start: datetime, end: datetime) -> str:
    """
    Human readable breakdown of the raw difference, e.g. "2 days, 3 hours, 0 minutes".

    Whole days are shown alone when there is no remainder; below a day the
    largest non-zero unit leads.
    """
    delta = as_utc(end) - as_utc(start)
    if delta <= timedelta(0):
        return "Invalid: End must be after start"

    total_minutes = int(delta.total_seconds() // 60)
    total_hours = total_minutes // 60
    days = total_hours // 24
    hours = total_hours % 24
    minutes = total_minutes % 60

    if days > 0:
        if hours or minutes:
            return f"{_plural(days, 'day')}, {_plural(hours, 'hour')}, {_plural(minutes, 'minute')}"
        return _plural(days, "day")
    if total_hours > 0:
        if minutes:
            return f"{_plural(total_hours, 'hour')}, {_plural(minutes, 'minute')}"
        return _plural(total_hours, "hour")
    return _plural(total_minutes, "minute")
