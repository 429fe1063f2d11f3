"""Email reminder model."""

from datetime import datetime, timedelta
from enum import Enum

from pydantic import Field, field_validator

from warrantydb.models.base import BaseModel
from warrantydb.models.email_template import TemplateType
from warrantydb.utils.dates import ensure_utc

# Fixed-width so GSI1SK sorts chronologically
_SORT_FORMAT = "%Y-%m-%dT%H:%M:%S.%f"


def schedule_sort_key(value: datetime) -> str:
    """Render a timestamp as a lexicographically sortable key fragment."""
    return ensure_utc(value).strftime(_SORT_FORMAT)


class ReminderStatus(str, Enum):
    """Reminder delivery status.

    SENDING is the transient claim taken by a dispatcher before it calls the
    delivery channel; only PENDING, SENT and FAILED are steady states.
    """

    PENDING = "pending"
    SENDING = "sending"
    SENT = "sent"
    FAILED = "failed"


class EmailReminder(BaseModel):
    """One scheduled customer notification.

    Key Pattern:
        PK: REMINDER#{id}
        SK: META
        GSI1PK: REMINDERS#{status}
        GSI1SK: {scheduled_for}#{id}
    """

    warranty_id: str
    customer_id: str
    customer_email: str
    type: TemplateType
    scheduled_for: datetime
    status: ReminderStatus = ReminderStatus.PENDING
    sent_at: datetime | None = None
    subject: str
    body: str
    failure_reason: str | None = None

    @field_validator("scheduled_for", "sent_at")
    @classmethod
    def normalize_timestamp(cls, v: datetime | None) -> datetime | None:
        return ensure_utc(v) if v is not None else None

    def get_pk(self) -> str:
        return f"REMINDER#{self.id}"

    def get_sk(self) -> str:
        return "META"

    def get_gsi1_keys(self) -> dict[str, str]:
        """Get GSI1 keys for the (status, scheduled_for) index."""
        return {
            "GSI1PK": f"REMINDERS#{ReminderStatus(self.status).value}",
            "GSI1SK": f"{schedule_sort_key(self.scheduled_for)}#{self.id}",
        }

    @property
    def is_pending(self) -> bool:
        return self.status == ReminderStatus.PENDING

    def is_due(self, now: datetime) -> bool:
        """Pending and scheduled at or before ``now``."""
        return self.is_pending and self.scheduled_for <= ensure_utc(now)

    @property
    def is_outstanding(self) -> bool:
        """Pending or claimed by a dispatcher but not yet resolved."""
        return self.status in (ReminderStatus.PENDING, ReminderStatus.SENDING)

    def is_stale_claim(self, now: datetime, timeout: timedelta) -> bool:
        """Claimed for delivery at least ``timeout`` ago and never resolved."""
        return self.status == ReminderStatus.SENDING and ensure_utc(self.updated_at) <= ensure_utc(now) - timeout

    def mark_sending(self) -> None:
        self.status = ReminderStatus.SENDING

    def mark_sent(self, sent_at: datetime) -> None:
        self.status = ReminderStatus.SENT
        self.sent_at = sent_at
        self.failure_reason = None

    def mark_failed(self, reason: str | None = None) -> None:
        self.status = ReminderStatus.FAILED
        self.failure_reason = reason
