"""Inspection due-date arithmetic.

An inspection restarts the interval from the date it actually happened,
whether it was early or late; the previous due date plays no part.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from warrantydb.models.settings import SystemSettings
from warrantydb.models.warranty import Warranty
from warrantydb.utils.dates import add_months, add_years, days_between, ensure_utc, is_after

DEFAULT_REMINDER_WINDOW_DAYS = 30


@dataclass(frozen=True)
class ActivationSchedule:
    """Dates fixed at activation."""

    expires_at: datetime
    next_inspection_due: datetime


def on_activate(
    warranty: Warranty,
    activated_at: datetime,
    settings: SystemSettings,
) -> ActivationSchedule:
    """Compute expiry and first inspection due date for an activation."""
    activated_at = ensure_utc(activated_at)
    return ActivationSchedule(
        expires_at=add_years(activated_at, settings.warranty_duration_years),
        next_inspection_due=add_months(activated_at, settings.inspection_interval_months),
    )


def on_inspection_completed(
    warranty: Warranty,
    inspection_date: datetime,
    settings: SystemSettings,
) -> datetime:
    """Compute the next due date after an inspection."""
    return add_months(inspection_date, settings.inspection_interval_months)


def is_overdue(due_date: datetime, now: datetime) -> bool:
    return is_after(now, due_date)


def is_due_soon(
    due_date: datetime,
    now: datetime,
    window_days: int = DEFAULT_REMINDER_WINDOW_DAYS,
) -> bool:
    """True inside the window before the due date. Never true once overdue."""
    if is_overdue(due_date, now):
        return False
    return ensure_utc(due_date) - ensure_utc(now) <= timedelta(days=window_days)


def days_until_due(due_date: datetime, now: datetime) -> int:
    """Whole days until the due date; negative once overdue."""
    return days_between(now, due_date)
