"""Business logic services."""

from warrantydb.services.dashboard import DashboardStats, calculate_dashboard_stats, search_warranties
from warrantydb.services.email_service import EmailService
from warrantydb.services.inspection_scheduler import (
    ActivationSchedule,
    is_due_soon,
    is_overdue,
    on_activate,
    on_inspection_completed,
)
from warrantydb.services.reminder_dispatcher import (
    DeliveryChannel,
    DispatchResult,
    get_email_stats,
    process_pending_reminders,
)
from warrantydb.services.reminder_jobs import ReminderJobs, ScheduleResult
from warrantydb.services.reminder_scheduler import (
    create_activation_reminder,
    create_inspection_reminder,
    schedule_inspection_reminders,
)
from warrantydb.services.status_resolver import resolve_display_status
from warrantydb.services.template_engine import RenderedMessage, render
from warrantydb.services.warranty_service import WarrantyService

__all__ = [
    "ActivationSchedule",
    "DashboardStats",
    "DeliveryChannel",
    "DispatchResult",
    "EmailService",
    "ReminderJobs",
    "RenderedMessage",
    "ScheduleResult",
    "WarrantyService",
    "calculate_dashboard_stats",
    "create_activation_reminder",
    "create_inspection_reminder",
    "get_email_stats",
    "is_due_soon",
    "is_overdue",
    "on_activate",
    "on_inspection_completed",
    "process_pending_reminders",
    "render",
    "resolve_display_status",
    "schedule_inspection_reminders",
    "search_warranties",
]
