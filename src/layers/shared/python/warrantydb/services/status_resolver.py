"""Effective warranty status.

The display status is recomputed from the stored facts on every read and is
never written back. Rules are checked in order and the first match wins:
voided, pending, expired, inspection overdue, inspection due soon, active.
"""

from datetime import datetime

from warrantydb.models.warranty import DisplayStatus, Warranty, WarrantyStatus
from warrantydb.services.inspection_scheduler import (
    DEFAULT_REMINDER_WINDOW_DAYS,
    is_due_soon,
    is_overdue,
)
from warrantydb.utils.dates import ensure_utc, is_after, is_before


def resolve_display_status(
    warranty: Warranty,
    now: datetime,
    reminder_window_days: int = DEFAULT_REMINDER_WINDOW_DAYS,
) -> DisplayStatus:
    """Resolve the status shown to customers, installers and admins."""
    now = ensure_utc(now)

    if warranty.status == WarrantyStatus.VOIDED:
        return DisplayStatus.VOIDED

    if warranty.status == WarrantyStatus.PENDING:
        return DisplayStatus.PENDING_ACTIVATION

    if warranty.expires_at and is_after(now, warranty.expires_at):
        return DisplayStatus.EXPIRED

    if warranty.next_inspection_due:
        if is_overdue(warranty.next_inspection_due, now):
            return DisplayStatus.INSPECTION_OVERDUE
        if is_due_soon(warranty.next_inspection_due, now, reminder_window_days):
            return DisplayStatus.INSPECTION_DUE_SOON

    return DisplayStatus.ACTIVE


def is_in_force(warranty: Warranty, now: datetime) -> bool:
    """Activated and not past expiry, regardless of inspection state."""
    if warranty.status != WarrantyStatus.ACTIVATED:
        return False
    return not warranty.expires_at or is_before(now, warranty.expires_at)
