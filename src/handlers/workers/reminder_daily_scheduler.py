"""Daily inspection reminder scheduler Lambda.

Scheduled by EventBridge (01:00 UTC daily). Creates a pending inspection
reminder for every activated warranty that does not already have one.
"""

from typing import Any

import structlog

from warrantydb.services.reminder_jobs import ReminderJobs

logger = structlog.get_logger()


def handler(event: dict[str, Any], context: Any) -> dict:
    """Run one scheduling pass."""
    logger.info("Reminder scheduler started")

    result = ReminderJobs().schedule_pass()

    return {
        "status": "success" if result.enabled else "disabled",
        **result.to_dict(),
    }
