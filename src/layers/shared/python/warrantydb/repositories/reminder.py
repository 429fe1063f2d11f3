"""Email reminder repository for DynamoDB operations.

Besides the reminder items themselves this repository owns a guard item per
(warranty, reminder type) while a reminder is outstanding:

    PK: WARRANTY#{warranty_id}
    SK: PENDING_REMINDER#{type}

The guard is written in the same transaction as a new pending reminder with
``attribute_not_exists``, so two scheduler passes racing on the same warranty
cannot both create one. It is released when the reminder is resolved.

A dispatcher that dies between claim and resolve leaves its reminder in
sending with the guard still held. Claims older than
REMINDER_CLAIM_TIMEOUT_MINUTES are treated as abandoned: the reminder is
failed and the guard released so scheduling can continue.
"""

import os
from datetime import datetime, timedelta
from typing import Any

import structlog
from botocore.exceptions import ClientError

from warrantydb.models.base import utc_now
from warrantydb.models.email_reminder import EmailReminder, ReminderStatus, schedule_sort_key
from warrantydb.models.email_template import TemplateType
from warrantydb.repositories.base import BaseRepository, is_condition_failure
from warrantydb.utils.dates import ensure_utc
from warrantydb.utils.exceptions import ConflictError

logger = structlog.get_logger()

DEFAULT_CLAIM_TIMEOUT_MINUTES = 60
STALE_CLAIM_REASON = "Delivery claim expired before an outcome was recorded"


def claim_timeout() -> timedelta:
    """How long a sending claim may stand before it counts as abandoned."""
    return timedelta(minutes=int(os.environ.get("REMINDER_CLAIM_TIMEOUT_MINUTES", DEFAULT_CLAIM_TIMEOUT_MINUTES)))


def _type_value(reminder_type: TemplateType | str) -> str:
    return TemplateType(reminder_type).value


class ReminderRepository(BaseRepository[EmailReminder]):
    """Repository for EmailReminder records."""

    def __init__(self, table_name: str | None = None):
        """Initialize reminder repository."""
        super().__init__(EmailReminder, table_name)

    @staticmethod
    def guard_key(warranty_id: str, reminder_type: TemplateType | str) -> dict[str, str]:
        """Primary key of the outstanding-reminder guard item."""
        return {
            "PK": f"WARRANTY#{warranty_id}",
            "SK": f"PENDING_REMINDER#{_type_value(reminder_type)}",
        }

    def get_by_id(self, reminder_id: str) -> EmailReminder | None:
        return self.get(pk=f"REMINDER#{reminder_id}", sk="META")

    def list_all(self) -> list[EmailReminder]:
        return self.scan_all(pk_prefix="REMINDER#", sk="META")

    def list_by_status(self, status: ReminderStatus | str) -> list[EmailReminder]:
        """All reminders in a status, ordered by scheduled time."""
        return self.query_all(pk=f"REMINDERS#{ReminderStatus(status).value}", index_name="GSI1")

    def list_due(self, now: datetime, limit: int | None = None) -> list[EmailReminder]:
        """Pending reminders scheduled at or before ``now``, oldest first.

        Args:
            now: Current time.
            limit: Optional cap on reminders returned for one pass.
        """
        # '$' sorts after '#', so every "{now}#{id}" key is below the cutoff
        cutoff = f"{schedule_sort_key(now)}$"
        kwargs: dict[str, Any] = {
            "IndexName": "GSI1",
            "KeyConditionExpression": "GSI1PK = :pk AND GSI1SK < :cutoff",
            "ExpressionAttributeValues": {
                ":pk": f"REMINDERS#{ReminderStatus.PENDING.value}",
                ":cutoff": cutoff,
            },
            "ScanIndexForward": True,
        }

        reminders: list[EmailReminder] = []
        try:
            while True:
                response = self.table.query(**kwargs)
                reminders.extend(EmailReminder.from_dynamodb(i) for i in response.get("Items", []))
                if limit and len(reminders) >= limit:
                    return reminders[:limit]
                last_key = response.get("LastEvaluatedKey")
                if not last_key:
                    return reminders
                kwargs["ExclusiveStartKey"] = last_key
        except ClientError as e:
            logger.error("DynamoDB due reminder query failed", error=str(e))
            raise

    def get_outstanding(
        self,
        warranty_id: str,
        reminder_type: TemplateType | str,
    ) -> EmailReminder | None:
        """The reminder currently holding the guard for this warranty and type."""
        response = self.table.get_item(Key=self.guard_key(warranty_id, reminder_type))
        guard = response.get("Item")
        if not guard:
            return None
        return self.get_by_id(guard["reminder_id"])

    def create_pending(self, reminder: EmailReminder) -> EmailReminder:
        """Create a pending reminder together with its guard item.

        Raises:
            ConflictError: If an outstanding reminder of the same type already
                exists for the warranty.
        """
        if reminder.status != ReminderStatus.PENDING:
            raise ValueError("Only pending reminders can be created")

        reminder.update_timestamp()
        guard = {
            **self.guard_key(reminder.warranty_id, reminder.type),
            "reminder_id": reminder.id,
            "created_at": reminder.created_at.isoformat(),
        }

        try:
            self.client.transact_write_items(
                TransactItems=[
                    {
                        "Put": {
                            "TableName": self.table_name,
                            "Item": guard,
                            "ConditionExpression": "attribute_not_exists(PK)",
                        }
                    },
                    {
                        "Put": {
                            "TableName": self.table_name,
                            "Item": self._to_item(reminder),
                            "ConditionExpression": "attribute_not_exists(PK)",
                        }
                    },
                ]
            )
        except ClientError as e:
            if is_condition_failure(e):
                raise ConflictError(
                    "An outstanding reminder already exists for this warranty",
                    conflict_type="duplicate_reminder",
                )
            logger.error("DynamoDB reminder transaction failed", error=str(e))
            raise

        logger.debug(
            "Reminder created",
            reminder_id=reminder.id,
            warranty_id=reminder.warranty_id,
            type=reminder.type,
        )
        return reminder

    def claim(self, reminder: EmailReminder, now: datetime | None = None) -> bool:
        """Move a reminder from pending to sending.

        The claim time is stored in ``updated_at`` so abandoned claims can be
        found later.

        Returns:
            True if this caller now owns delivery, False if the reminder was
            no longer pending.
        """
        sending = ReminderStatus.SENDING.value
        claimed_at = ensure_utc(now or utc_now())
        try:
            self.table.update_item(
                Key=reminder.get_keys(),
                UpdateExpression=(
                    "SET #status = :sending, GSI1PK = :gsi1pk, version = version + :one, updated_at = :now"
                ),
                ConditionExpression="#status = :pending",
                ExpressionAttributeNames={"#status": "status"},
                ExpressionAttributeValues={
                    ":sending": sending,
                    ":pending": ReminderStatus.PENDING.value,
                    ":gsi1pk": f"REMINDERS#{sending}",
                    ":one": 1,
                    ":now": claimed_at.isoformat(),
                },
            )
        except ClientError as e:
            if is_condition_failure(e):
                return False
            logger.error("DynamoDB reminder claim failed", error=str(e), reminder_id=reminder.id)
            raise

        reminder.mark_sending()
        reminder.increment_version()
        reminder.updated_at = claimed_at
        return True

    def resolve(self, reminder: EmailReminder) -> EmailReminder:
        """Persist a sent or failed reminder and release its guard.

        Raises:
            ConflictError: If the stored reminder is not in sending state.
        """
        if reminder.status not in (ReminderStatus.SENT, ReminderStatus.FAILED):
            raise ValueError(f"Cannot resolve reminder in status {ReminderStatus(reminder.status).value}")

        self.put(
            reminder,
            condition_expression="#status = :sending",
            expression_names={"#status": "status"},
            expression_values={":sending": ReminderStatus.SENDING.value},
        )
        self.release_guard(reminder)
        return reminder

    def release_guard(self, reminder: EmailReminder) -> None:
        """Delete the guard item if it still belongs to this reminder."""
        try:
            self.table.delete_item(
                Key=self.guard_key(reminder.warranty_id, reminder.type),
                ConditionExpression="reminder_id = :rid",
                ExpressionAttributeValues={":rid": reminder.id},
            )
        except ClientError as e:
            if is_condition_failure(e):
                logger.warning(
                    "Reminder guard missing or owned by another reminder",
                    reminder_id=reminder.id,
                    warranty_id=reminder.warranty_id,
                )
                return
            raise

    def expire_claim(self, reminder: EmailReminder, reason: str = STALE_CLAIM_REASON) -> bool:
        """Fail an abandoned sending reminder and release its guard.

        Returns:
            False if the reminder was resolved by someone else first.
        """
        reminder.mark_failed(reason)
        try:
            self.resolve(reminder)
        except ConflictError:
            logger.info("Stale claim already resolved", reminder_id=reminder.id)
            return False

        logger.warning(
            "Stale reminder claim expired",
            reminder_id=reminder.id,
            warranty_id=reminder.warranty_id,
            type=reminder.type,
        )
        return True

    def expire_stale_claims(self, now: datetime, timeout: timedelta | None = None) -> list[EmailReminder]:
        """Expire every sending reminder claimed at least ``timeout`` before ``now``."""
        timeout = timeout if timeout is not None else claim_timeout()
        expired = []
        for reminder in self.list_by_status(ReminderStatus.SENDING):
            if reminder.is_stale_claim(now, timeout) and self.expire_claim(reminder):
                expired.append(reminder)
        return expired
