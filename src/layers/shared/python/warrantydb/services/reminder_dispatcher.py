"""Delivery of due reminders.

Each due reminder is claimed before the delivery call and resolved to sent
or failed afterwards. Failed reminders stay failed; nothing here retries.
"""

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Callable, Protocol

import structlog

from warrantydb.models.email_reminder import EmailReminder, ReminderStatus
from warrantydb.utils.dates import ensure_utc

logger = structlog.get_logger()


class DeliveryChannel(Protocol):
    """Outbound message transport.

    ``send`` returns False or raises on failure; both count as failed.
    """

    def send(self, to: str, subject: str, body: str) -> bool:
        ...


ClaimFn = Callable[[EmailReminder], bool]
SaveFn = Callable[[EmailReminder], None]


@dataclass
class DispatchResult:
    sent: int = 0
    failed: int = 0
    skipped: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


def select_due(reminders: list[EmailReminder], now: datetime) -> list[EmailReminder]:
    """Pending reminders scheduled at or before ``now``, oldest first."""
    now = ensure_utc(now)
    due = [r for r in reminders if r.is_due(now)]
    return sorted(due, key=lambda r: r.scheduled_for)


def deliver(reminder: EmailReminder, channel: DeliveryChannel) -> tuple[bool, str | None]:
    """Call the channel once, normalizing exceptions to a failed result."""
    try:
        ok = bool(channel.send(reminder.customer_email, reminder.subject, reminder.body))
    except Exception as e:
        logger.warning(
            "Reminder delivery raised",
            reminder_id=reminder.id,
            error=str(e),
        )
        return False, str(e)
    return ok, None if ok else "Delivery channel reported failure"


def process_pending_reminders(
    reminders: list[EmailReminder],
    now: datetime,
    channel: DeliveryChannel,
    claim: ClaimFn | None = None,
    save: SaveFn | None = None,
) -> DispatchResult:
    """Deliver every due pending reminder.

    Args:
        reminders: Snapshot of reminders; only due pending ones are touched.
        now: Current time.
        channel: Delivery transport.
        claim: Atomically moves a reminder from pending to sending in storage.
            Returns False if another dispatcher got there first. Without it
            the claim is taken on the in-memory record only.
        save: Persists the resolved reminder.

    Returns:
        Counts of sent, failed and skipped (claim lost or errored) reminders.
    """
    now = ensure_utc(now)
    result = DispatchResult()

    for reminder in select_due(reminders, now):
        if claim is not None:
            try:
                claimed = claim(reminder)
            except Exception as e:
                # Left pending for the next pass
                logger.warning("Reminder claim failed, skipping", reminder_id=reminder.id, error=str(e))
                result.skipped += 1
                continue
            if not claimed:
                logger.info("Reminder claimed elsewhere, skipping", reminder_id=reminder.id)
                result.skipped += 1
                continue
        else:
            reminder.mark_sending()

        ok, reason = deliver(reminder, channel)
        if ok:
            reminder.mark_sent(now)
            result.sent += 1
        else:
            reminder.mark_failed(reason)
            result.failed += 1

        logger.info(
            "Reminder processed",
            reminder_id=reminder.id,
            warranty_id=reminder.warranty_id,
            type=reminder.type,
            status=reminder.status,
        )

        if save is not None:
            try:
                save(reminder)
            except Exception as e:
                # The delivery outcome stands; the record stays in sending
                logger.error(
                    "Failed to persist reminder outcome",
                    reminder_id=reminder.id,
                    status=reminder.status,
                    error=str(e),
                )

    logger.info("Pending reminders processed", **result.to_dict())
    return result


def get_email_stats(reminders: list[EmailReminder]) -> dict[str, int]:
    """Counts by steady-state status. In-flight reminders count as pending."""
    stats = {"pending": 0, "sent": 0, "failed": 0}
    for reminder in reminders:
        if reminder.status == ReminderStatus.SENT:
            stats["sent"] += 1
        elif reminder.status == ReminderStatus.FAILED:
            stats["failed"] += 1
        else:
            stats["pending"] += 1
    return stats
