"""Admin dashboard statistics and warranty search."""

from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from enum import Enum

from warrantydb.models.warranty import Warranty, WarrantyStatus
from warrantydb.services.inspection_scheduler import DEFAULT_REMINDER_WINDOW_DAYS, is_due_soon, is_overdue
from warrantydb.services.status_resolver import is_in_force
from warrantydb.utils.dates import ensure_utc

RECENT_INSPECTION_DAYS = 30


class SearchField(str, Enum):
    CUSTOMER_NAME = "customer_name"
    VIN = "vin"
    REGISTRATION = "registration"
    ACTIVATION_CODE = "activation_code"
    ALL = "all"


@dataclass
class DashboardStats:
    total_warranties: int = 0
    active_warranties: int = 0
    pending_activations: int = 0
    inspections_due: int = 0
    recent_inspections: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


def calculate_dashboard_stats(
    warranties: list[Warranty],
    now: datetime,
    window_days: int = DEFAULT_REMINDER_WINDOW_DAYS,
) -> DashboardStats:
    """Aggregate counts for the admin dashboard.

    ``inspections_due`` counts activated warranties whose inspection is due
    within the window or already overdue.
    """
    now = ensure_utc(now)
    recent_cutoff = now - timedelta(days=RECENT_INSPECTION_DAYS)
    stats = DashboardStats(total_warranties=len(warranties))

    for warranty in warranties:
        if warranty.status == WarrantyStatus.PENDING:
            stats.pending_activations += 1
        if is_in_force(warranty, now):
            stats.active_warranties += 1
        if warranty.status == WarrantyStatus.ACTIVATED and warranty.next_inspection_due:
            due = warranty.next_inspection_due
            if is_overdue(due, now) or is_due_soon(due, now, window_days):
                stats.inspections_due += 1
        stats.recent_inspections += sum(
            1 for i in warranty.inspections if ensure_utc(i.inspection_date) > recent_cutoff
        )

    return stats


def _haystacks(warranty: Warranty, field: SearchField) -> list[str]:
    name = warranty.customer.full_name
    vin = warranty.vehicle.vin
    rego = warranty.vehicle.registration_number
    code = warranty.activation_code
    if field == SearchField.CUSTOMER_NAME:
        return [name]
    if field == SearchField.VIN:
        return [vin]
    if field == SearchField.REGISTRATION:
        return [rego]
    if field == SearchField.ACTIVATION_CODE:
        return [code]
    return [name, vin, rego, code, warranty.customer.email]


def search_warranties(
    warranties: list[Warranty],
    query: str,
    search_by: SearchField | str = SearchField.ALL,
    status: WarrantyStatus | str | None = None,
) -> list[Warranty]:
    """Case-insensitive substring search over the chosen field(s)."""
    field = SearchField(search_by)
    needle = query.strip().lower()
    wanted_status = WarrantyStatus(status).value if status else None

    results = []
    for warranty in warranties:
        if wanted_status and warranty.status != wanted_status:
            continue
        if not needle or any(needle in h.lower() for h in _haystacks(warranty, field)):
            results.append(warranty)
    return results
