"""Scheduled reminder passes over stored state.

Each pass reads a fresh snapshot (settings included), runs the pure
scheduling or dispatch logic, and persists per record so an interrupted pass
can simply be run again.
"""

import os
from dataclasses import asdict, dataclass
from datetime import datetime

import structlog

from warrantydb.models.base import utc_now
from warrantydb.models.email_reminder import EmailReminder, ReminderStatus
from warrantydb.repositories.email_template import EmailTemplateRepository
from warrantydb.repositories.reminder import ReminderRepository, claim_timeout
from warrantydb.repositories.settings import SettingsRepository
from warrantydb.repositories.warranty import WarrantyRepository
from warrantydb.services.reminder_dispatcher import DeliveryChannel, DispatchResult, process_pending_reminders
from warrantydb.services.reminder_scheduler import schedule_inspection_reminders
from warrantydb.utils.dates import ensure_utc
from warrantydb.utils.exceptions import ConflictError

logger = structlog.get_logger()

MAX_REMINDERS_PER_RUN = int(os.environ.get("MAX_REMINDERS_PER_RUN", "500"))


@dataclass
class ScheduleResult:
    enabled: bool = True
    candidates: int = 0
    created: int = 0
    duplicates: int = 0
    expired_claims: int = 0
    errors: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


class ReminderJobs:
    """Runs the scheduling and dispatch passes against DynamoDB."""

    def __init__(
        self,
        warranty_repo: WarrantyRepository | None = None,
        reminder_repo: ReminderRepository | None = None,
        template_repo: EmailTemplateRepository | None = None,
        settings_repo: SettingsRepository | None = None,
    ):
        self.warranty_repo = warranty_repo or WarrantyRepository()
        self.reminder_repo = reminder_repo or ReminderRepository()
        self.template_repo = template_repo or EmailTemplateRepository()
        self.settings_repo = settings_repo or SettingsRepository()

    def schedule_pass(self, now: datetime | None = None) -> ScheduleResult:
        """Create missing inspection reminders for activated warranties."""
        now = ensure_utc(now or utc_now())
        settings = self.settings_repo.get_settings()
        if not settings.enable_email_reminders:
            logger.info("Email reminders disabled, schedule pass skipped")
            return ScheduleResult(enabled=False)

        expired = self.recover_stale_claims(now)
        warranties = self.warranty_repo.list_all()
        existing = self.reminder_repo.list_by_status(ReminderStatus.PENDING)
        existing += self.reminder_repo.list_by_status(ReminderStatus.SENDING)
        templates = self.template_repo.list_active()

        result = ScheduleResult(candidates=len(warranties), expired_claims=len(expired))
        new_reminders = schedule_inspection_reminders(warranties, existing, settings, templates, now)

        for reminder in new_reminders:
            try:
                self.reminder_repo.create_pending(reminder)
                result.created += 1
            except ConflictError:
                # Another pass created it between our snapshot and this write
                result.duplicates += 1
                logger.info("Reminder created concurrently, skipped", warranty_id=reminder.warranty_id)
            except Exception as e:
                result.errors += 1
                logger.warning(
                    "Failed to save reminder",
                    warranty_id=reminder.warranty_id,
                    error=str(e),
                )

        logger.info("Schedule pass complete", **result.to_dict())
        return result

    def dispatch_pass(
        self,
        channel: DeliveryChannel,
        now: datetime | None = None,
        limit: int = MAX_REMINDERS_PER_RUN,
    ) -> DispatchResult:
        """Deliver due reminders, claiming each one before sending."""
        now = ensure_utc(now or utc_now())
        self.recover_stale_claims(now)
        due = self.reminder_repo.list_due(now, limit=limit)
        logger.info("Due reminders loaded", count=len(due))

        return process_pending_reminders(
            due,
            now,
            channel,
            claim=lambda reminder: self.reminder_repo.claim(reminder, now),
            save=self.reminder_repo.resolve,
        )

    def recover_stale_claims(self, now: datetime) -> list[EmailReminder]:
        """Fail reminders left in sending by a dispatcher that never finished.

        Releasing their guards lets the next schedule pass queue a fresh
        reminder for the same warranty.
        """
        expired = self.reminder_repo.expire_stale_claims(now, claim_timeout())
        if expired:
            logger.warning("Stale reminder claims expired", count=len(expired))
        return expired
