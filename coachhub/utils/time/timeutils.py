"""Time utilities - DRY principle

All timestamps are stored as naive UTC, which is what pymongo hands back.
"""
import calendar
from datetime import datetime, timedelta, timezone

def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)

def to_naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is not None:
        return dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt

def parse_datetime(value) -> datetime:
    """Parse ISO date/datetime strings (a trailing Z is accepted)"""
    if isinstance(value, datetime):
        return to_naive_utc(value)
    if not isinstance(value, str) or not value.strip():
        raise ValueError("Invalid date value")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return to_naive_utc(datetime.fromisoformat(text))
    except ValueError:
        try:
            return datetime.strptime(text, "%Y-%m-%d")
        except ValueError:
            raise ValueError(f"Invalid date format: {value}")

def parse_optional_datetime(value):
    if value in (None, ""):
        return None
    return parse_datetime(value)

def add_months(dt: datetime, months: int) -> datetime:
    """Calendar month arithmetic, clamped to the last day of the target month"""
    month_index = dt.month - 1 + months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)

def day_diff(later: datetime, earlier: datetime) -> int:
    """Difference in calendar days, ignoring time of day"""
    return (later.date() - earlier.date()).days

def minutes_between(start: datetime, end: datetime) -> int:
    if not start or not end or end < start:
        return 0
    return int((end - start).total_seconds() // 60)

def days_ago(days: int) -> datetime:
    return utc_now() - timedelta(days=days)
