"""Date manipulation utilities"""

from datetime import date, datetime, timedelta, timezone


def utcnow() -> datetime:
    """Timezone-aware current time, the default clock for lifecycle operations"""
    return datetime.now(timezone.utc)


def add_calendar_days(from_date: date, days: int) -> date:
    """Advance a date by calendar days (weekends and holidays included)"""
    return from_date + timedelta(days=days)


def days_between(start: date, end: date) -> int:
    """Signed number of calendar days from start to end"""
    return (end - start).days
