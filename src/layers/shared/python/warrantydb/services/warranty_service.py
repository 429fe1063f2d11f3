"""Warranty lifecycle flows.

Registration, activation-code redemption, voiding and inspection logging.
Each flow validates the persisted status, applies the transition, saves the
warranty with optimistic locking and then queues the customer emails that
follow from it.
"""

import os
from datetime import datetime

import structlog

from warrantydb.models.base import utc_now
from warrantydb.models.email_reminder import EmailReminder
from warrantydb.models.email_template import EmailTemplate, TemplateType
from warrantydb.models.settings import SystemSettings
from warrantydb.models.warranty import (
    DisplayStatus,
    Inspection,
    RecordInspectionRequest,
    RegisterWarrantyRequest,
    Warranty,
    WarrantyStatus,
    generate_activation_code,
    is_valid_activation_code,
    normalize_activation_code,
)
from warrantydb.repositories.email_template import EmailTemplateRepository
from warrantydb.repositories.reminder import ReminderRepository, claim_timeout
from warrantydb.repositories.settings import SettingsRepository
from warrantydb.repositories.warranty import WarrantyRepository
from warrantydb.services.inspection_scheduler import (
    DEFAULT_REMINDER_WINDOW_DAYS,
    on_activate,
    on_inspection_completed,
)
from warrantydb.services.reminder_scheduler import (
    create_activation_reminder,
    create_inspection_reminder,
    find_active_template,
)
from warrantydb.services.status_resolver import resolve_display_status
from warrantydb.utils.dates import ensure_utc
from warrantydb.utils.exceptions import (
    AlreadyActivatedError,
    ConflictError,
    NotFoundError,
    ValidationError,
    WarrantyVoidedError,
)

logger = structlog.get_logger()

MAX_CODE_ATTEMPTS = 10


def reminder_window_days() -> int:
    """Display window for "inspection due soon", from REMINDER_WINDOW_DAYS."""
    return int(os.environ.get("REMINDER_WINDOW_DAYS", DEFAULT_REMINDER_WINDOW_DAYS))


def check_activatable(warranty: Warranty) -> None:
    """Raise unless the warranty is pending.

    Raises:
        WarrantyVoidedError: If the warranty was voided.
        AlreadyActivatedError: If the warranty is past pending.
    """
    if warranty.is_voided:
        raise WarrantyVoidedError(warranty.id)
    if not warranty.is_pending:
        raise AlreadyActivatedError(warranty.id)


class WarrantyService:
    """Service for warranty status transitions and their side effects."""

    def __init__(
        self,
        warranty_repo: WarrantyRepository | None = None,
        reminder_repo: ReminderRepository | None = None,
        template_repo: EmailTemplateRepository | None = None,
        settings_repo: SettingsRepository | None = None,
    ):
        """Initialize warranty service.

        Args:
            warranty_repo: Optional WarrantyRepository (created lazily if not provided).
            reminder_repo: Optional ReminderRepository.
            template_repo: Optional EmailTemplateRepository.
            settings_repo: Optional SettingsRepository.
        """
        self._warranty_repo = warranty_repo
        self._reminder_repo = reminder_repo
        self._template_repo = template_repo
        self._settings_repo = settings_repo

    @property
    def warranty_repo(self) -> WarrantyRepository:
        if self._warranty_repo is None:
            self._warranty_repo = WarrantyRepository()
        return self._warranty_repo

    @property
    def reminder_repo(self) -> ReminderRepository:
        if self._reminder_repo is None:
            self._reminder_repo = ReminderRepository()
        return self._reminder_repo

    @property
    def template_repo(self) -> EmailTemplateRepository:
        if self._template_repo is None:
            self._template_repo = EmailTemplateRepository()
        return self._template_repo

    @property
    def settings_repo(self) -> SettingsRepository:
        if self._settings_repo is None:
            self._settings_repo = SettingsRepository()
        return self._settings_repo

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def register(self, request: RegisterWarrantyRequest, now: datetime | None = None) -> Warranty:
        """Register an installation as a pending warranty with a fresh code.

        Activates immediately when ``auto_activate_warranties`` is set.

        Raises:
            ConflictError: If no unused activation code could be generated.
        """
        now = ensure_utc(now or utc_now())
        settings = self.settings_repo.get_settings()

        warranty = Warranty(
            customer=request.customer,
            vehicle=request.vehicle,
            installation=request.installation,
            installer_id=request.installer_id,
            installer_name=request.installer_name,
            installer_company=request.installer_company,
            store_location=request.store_location,
            created_at=now,
        )
        self._create_with_unused_code(warranty)

        logger.info(
            "Warranty registered",
            warranty_id=warranty.id,
            installer_id=warranty.installer_id,
        )

        if settings.auto_activate_warranties:
            return self._activate(warranty, now, settings)
        return warranty

    def activate(self, activation_code: str, now: datetime | None = None) -> Warranty:
        """Redeem an activation code.

        Raises:
            NotFoundError: If no warranty carries the code.
            AlreadyActivatedError: If the warranty is already activated.
            WarrantyVoidedError: If the warranty was voided.
            ConflictError: If a concurrent activation won the race.
        """
        now = ensure_utc(now or utc_now())
        code = normalize_activation_code(activation_code)

        warranty = self.warranty_repo.get_by_activation_code(code) if is_valid_activation_code(code) else None
        if warranty is None:
            logger.info("Activation code not found", activation_code=code)
            raise NotFoundError("ActivationCode", code, message="Invalid activation code")

        check_activatable(warranty)
        return self._activate(warranty, now, self.settings_repo.get_settings())

    def void(self, warranty_id: str, now: datetime | None = None) -> Warranty:
        """Void a warranty. Voiding an already voided warranty changes nothing.

        Raises:
            NotFoundError: If the warranty does not exist.
        """
        now = ensure_utc(now or utc_now())
        warranty = self.warranty_repo.get_by_id_or_raise(warranty_id)
        if warranty.is_voided:
            logger.debug("Warranty already voided", warranty_id=warranty_id)
            return warranty

        previous = warranty.status
        warranty.status = WarrantyStatus.VOIDED
        self.warranty_repo.update_warranty(warranty)

        logger.info("Warranty voided", warranty_id=warranty_id, previous_status=previous)

        for reminder_type in TemplateType:
            self.cancel_outstanding(warranty, reminder_type, reason="Warranty voided", now=now)
        return warranty

    def record_inspection(
        self,
        warranty_id: str,
        request: RecordInspectionRequest,
        now: datetime | None = None,
    ) -> Warranty:
        """Log a completed inspection and move the due date on.

        The next due date counts from the inspection date itself.

        Raises:
            NotFoundError: If the warranty does not exist.
            ValidationError: If the warranty is not activated.
        """
        now = ensure_utc(now or utc_now())
        warranty = self.warranty_repo.get_by_id_or_raise(warranty_id)
        if not warranty.is_activated:
            raise ValidationError(
                f"Inspections can only be recorded for activated warranties (status: {WarrantyStatus(warranty.status).value})"
            )

        settings = self.settings_repo.get_settings()
        inspection_date = ensure_utc(request.inspection_date)

        inspection = Inspection(
            warranty_id=warranty.id,
            next_inspection_due=on_inspection_completed(warranty, inspection_date, settings),
            created_at=now,
            **request.model_dump(exclude={"inspection_date"}),
            inspection_date=inspection_date,
        )
        warranty.add_inspection(inspection)
        self.warranty_repo.update_warranty(warranty)

        logger.info(
            "Inspection recorded",
            warranty_id=warranty.id,
            inspection_id=inspection.id,
            passed=inspection.passed,
            next_inspection_due=inspection.next_inspection_due.isoformat(),
        )

        self.cancel_outstanding(
            warranty,
            TemplateType.INSPECTION_DUE,
            reason=f"Superseded by inspection {inspection.id}",
            now=now,
        )
        if settings.enable_email_reminders:
            self.schedule_inspection_reminder(warranty, settings, self.template_repo.list_active())
        return warranty

    def get_display_status(self, warranty_id: str, now: datetime | None = None) -> DisplayStatus:
        """Effective status of a stored warranty at ``now``."""
        warranty = self.warranty_repo.get_by_id_or_raise(warranty_id)
        return resolve_display_status(warranty, now or utc_now(), reminder_window_days())

    # -------------------------------------------------------------------------
    # Reminder side effects
    # -------------------------------------------------------------------------

    def schedule_inspection_reminder(
        self,
        warranty: Warranty,
        settings: SystemSettings,
        templates: list[EmailTemplate],
    ) -> EmailReminder | None:
        """Queue the next inspection reminder unless one is outstanding."""
        if not warranty.is_activated or warranty.next_inspection_due is None:
            return None

        template = find_active_template(templates, TemplateType.INSPECTION_DUE)
        if template is None:
            logger.warning(
                "Template unavailable, inspection reminder skipped",
                warranty_id=warranty.id,
                template_type=TemplateType.INSPECTION_DUE.value,
            )
            return None

        return self._create_pending(create_inspection_reminder(warranty, template, settings))

    def cancel_outstanding(
        self,
        warranty: Warranty,
        reminder_type: TemplateType,
        reason: str,
        now: datetime | None = None,
    ) -> EmailReminder | None:
        """Fail a pending reminder that no longer applies.

        A reminder a dispatcher has already claimed is left to finish, unless
        the claim is older than the claim timeout, in which case it is expired.
        """
        now = ensure_utc(now or utc_now())
        reminder = self.reminder_repo.get_outstanding(warranty.id, reminder_type)
        if reminder is None:
            return None
        if not self.reminder_repo.claim(reminder, now):
            if reminder.is_stale_claim(now, claim_timeout()) and self.reminder_repo.expire_claim(reminder, reason):
                return reminder
            logger.info("Reminder in flight, not cancelled", reminder_id=reminder.id)
            return None

        reminder.mark_failed(reason)
        self.reminder_repo.resolve(reminder)
        logger.info(
            "Reminder cancelled",
            reminder_id=reminder.id,
            warranty_id=warranty.id,
            type=reminder.type,
            reason=reason,
        )
        return reminder

    def _activate(self, warranty: Warranty, now: datetime, settings: SystemSettings) -> Warranty:
        schedule = on_activate(warranty, now, settings)
        warranty.mark_activated(
            activated_at=now,
            expires_at=schedule.expires_at,
            next_inspection_due=schedule.next_inspection_due,
        )
        self.warranty_repo.update_warranty(warranty)

        logger.info(
            "Warranty activated",
            warranty_id=warranty.id,
            expires_at=schedule.expires_at.isoformat(),
            next_inspection_due=schedule.next_inspection_due.isoformat(),
        )

        if not settings.enable_email_reminders:
            return warranty

        templates = self.template_repo.list_active()
        template = find_active_template(templates, TemplateType.WARRANTY_ACTIVATED)
        if template is None:
            logger.warning(
                "Template unavailable, activation email skipped",
                warranty_id=warranty.id,
                template_type=TemplateType.WARRANTY_ACTIVATED.value,
            )
        else:
            self._create_pending(create_activation_reminder(warranty, template, settings, now))

        self.schedule_inspection_reminder(warranty, settings, templates)
        return warranty

    def _create_pending(self, reminder: EmailReminder) -> EmailReminder | None:
        try:
            return self.reminder_repo.create_pending(reminder)
        except ConflictError:
            logger.info(
                "Reminder already outstanding, skipped",
                warranty_id=reminder.warranty_id,
                type=reminder.type,
            )
            return None

    def _create_with_unused_code(self, warranty: Warranty) -> Warranty:
        for _ in range(MAX_CODE_ATTEMPTS):
            warranty.activation_code = generate_activation_code()
            try:
                return self.warranty_repo.create_warranty(warranty)
            except ConflictError:
                logger.warning("Activation code collision, regenerating", warranty_id=warranty.id)
        raise ConflictError("Could not generate a unique activation code", conflict_type="activation_code")

