"""Calendar-aware date helpers.

All functions work on timezone-aware UTC datetimes. Naive values are taken
to be UTC so callers can pass plain ``datetime(2024, 1, 15)`` in tests and
scripts without surprises.
"""

from datetime import datetime, timedelta, timezone

from dateutil.relativedelta import relativedelta

DISPLAY_DATE_FORMAT = "%d/%m/%Y"


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def add_years(value: datetime, years: int) -> datetime:
    """Add calendar years. Feb 29 lands on Feb 28 in a non-leap year."""
    return ensure_utc(value) + relativedelta(years=years)


def add_months(value: datetime, months: int) -> datetime:
    """Add calendar months, clamping to the last day of a shorter month."""
    return ensure_utc(value) + relativedelta(months=months)


def add_days(value: datetime, days: int) -> datetime:
    return ensure_utc(value) + timedelta(days=days)


def days_between(start: datetime, end: datetime) -> int:
    """Whole days from ``start`` to ``end``, truncated toward zero."""
    delta = ensure_utc(end) - ensure_utc(start)
    seconds = delta.total_seconds()
    days = int(abs(seconds) // 86400)
    return days if seconds >= 0 else -days


def is_after(value: datetime, reference: datetime) -> bool:
    return ensure_utc(value) > ensure_utc(reference)


def is_before(value: datetime, reference: datetime) -> bool:
    return ensure_utc(value) < ensure_utc(reference)


def format_date(value: datetime | None, fmt: str = DISPLAY_DATE_FORMAT) -> str:
    """Format a date for customer-facing text. Missing dates render as N/A."""
    if value is None:
        return "N/A"
    return ensure_utc(value).strftime(fmt)
