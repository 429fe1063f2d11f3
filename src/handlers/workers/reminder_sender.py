"""Reminder sender Lambda.

Scheduled by EventBridge (every 15 minutes). Delivers pending reminders
whose scheduled time has passed. Failed deliveries are recorded and left
for an administrator to re-schedule.
"""

from typing import Any

import structlog

from warrantydb.services.email_service import EmailService
from warrantydb.services.reminder_jobs import ReminderJobs

logger = structlog.get_logger()


def handler(event: dict[str, Any], context: Any) -> dict:
    """Run one dispatch pass."""
    logger.info("Reminder sender started")

    result = ReminderJobs().dispatch_pass(EmailService())

    return {
        "status": "success",
        **result.to_dict(),
    }
