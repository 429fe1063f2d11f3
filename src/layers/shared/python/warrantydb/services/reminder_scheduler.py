"""Reminder scheduling decisions.

Functions here take snapshots (warranties, existing reminders, templates,
settings) and return new EmailReminder records. Nothing is persisted; the
caller saves what comes back.
"""

from datetime import datetime

import structlog

from warrantydb.models.email_reminder import EmailReminder, ReminderStatus
from warrantydb.models.email_template import EmailTemplate, TemplateType
from warrantydb.models.settings import SystemSettings
from warrantydb.models.warranty import Warranty
from warrantydb.services.template_engine import missing_variables, render
from warrantydb.utils.dates import add_days, ensure_utc, format_date
from warrantydb.utils.exceptions import TemplateUnavailableError

logger = structlog.get_logger()


def find_active_template(
    templates: list[EmailTemplate],
    template_type: TemplateType | str,
) -> EmailTemplate | None:
    """First active template of the given type, if any."""
    wanted = TemplateType(template_type).value
    for template in templates:
        if template.type == wanted and template.is_active:
            return template
    return None


def require_template(
    templates: list[EmailTemplate],
    template_type: TemplateType | str,
) -> EmailTemplate:
    """Like find_active_template but raises TemplateUnavailableError."""
    template = find_active_template(templates, template_type)
    if template is None:
        raise TemplateUnavailableError(TemplateType(template_type).value)
    return template


def _base_variables(warranty: Warranty, settings: SystemSettings) -> dict[str, str]:
    return {
        "customerName": warranty.customer.full_name,
        "vehicleMake": warranty.vehicle.make,
        "vehicleModel": warranty.vehicle.model,
        "vehicleYear": str(warranty.vehicle.year),
        "registrationNumber": warranty.vehicle.registration_number,
        "vin": warranty.vehicle.vin,
        "activationCode": warranty.activation_code,
        "companyName": settings.company_name,
        "companyEmail": settings.company_email,
        "companyPhone": settings.company_phone,
    }


def build_inspection_variables(warranty: Warranty, settings: SystemSettings) -> dict[str, str]:
    """Template variables for an inspection-due message."""
    variables = _base_variables(warranty, settings)
    variables["lastInspectionDate"] = format_date(warranty.last_inspection_date)
    variables["nextInspectionDue"] = format_date(warranty.next_inspection_due)
    return variables


def build_activation_variables(warranty: Warranty, settings: SystemSettings) -> dict[str, str]:
    """Template variables for an activation confirmation."""
    variables = _base_variables(warranty, settings)
    variables["activationDate"] = format_date(warranty.activated_at)
    variables["expiryDate"] = format_date(warranty.expires_at)
    variables["nextInspectionDue"] = format_date(warranty.next_inspection_due)
    return variables


def _new_reminder(
    warranty: Warranty,
    template: EmailTemplate,
    variables: dict[str, str],
    scheduled_for: datetime,
) -> EmailReminder:
    missing = missing_variables(template, variables)
    if missing:
        # Left verbatim in the message
        logger.warning(
            "Template placeholders without values",
            template_id=template.id,
            warranty_id=warranty.id,
            missing=missing,
        )
    message = render(template, variables)
    return EmailReminder(
        warranty_id=warranty.id,
        customer_id=warranty.customer.id,
        customer_email=warranty.customer.email,
        type=template.type,
        scheduled_for=scheduled_for,
        status=ReminderStatus.PENDING,
        subject=message.subject,
        body=message.body,
    )


def create_inspection_reminder(
    warranty: Warranty,
    template: EmailTemplate,
    settings: SystemSettings,
) -> EmailReminder:
    """Build the inspection-due reminder for one warranty.

    Sent ``reminder_days_before`` days ahead of the due date. A date already
    in the past is kept as-is so a late pass still yields a reminder that is
    immediately eligible for dispatch.
    """
    if warranty.next_inspection_due is None:
        raise ValueError(f"Warranty {warranty.id} has no inspection due date")

    scheduled_for = add_days(warranty.next_inspection_due, -settings.reminder_days_before)
    return _new_reminder(
        warranty,
        template,
        build_inspection_variables(warranty, settings),
        scheduled_for,
    )


def create_activation_reminder(
    warranty: Warranty,
    template: EmailTemplate,
    settings: SystemSettings,
    now: datetime,
) -> EmailReminder:
    """Build the one-shot activation confirmation, due immediately."""
    return _new_reminder(
        warranty,
        template,
        build_activation_variables(warranty, settings),
        ensure_utc(now),
    )


def schedule_inspection_reminders(
    warranties: list[Warranty],
    existing_reminders: list[EmailReminder],
    settings: SystemSettings,
    active_templates: list[EmailTemplate],
    now: datetime,
) -> list[EmailReminder]:
    """Decide which activated warranties need a new inspection reminder.

    At most one outstanding inspection reminder exists per warranty. Running
    this twice over the same snapshot plus its own output returns nothing the
    second time.

    Returns:
        New reminders in pending state, not yet persisted.
    """
    if not settings.enable_email_reminders:
        logger.info("Email reminders disabled, skipping inspection scheduling")
        return []

    try:
        template = require_template(active_templates, TemplateType.INSPECTION_DUE)
    except TemplateUnavailableError as e:
        logger.warning("Template unavailable, skipping inspection scheduling", template_type=e.template_type)
        return []

    covered = {
        r.warranty_id
        for r in existing_reminders
        if r.type == TemplateType.INSPECTION_DUE.value and r.is_outstanding
    }
    new_reminders: list[EmailReminder] = []

    for warranty in warranties:
        if not warranty.is_activated or warranty.next_inspection_due is None:
            continue

        if warranty.id in covered:
            logger.debug("Reminder already pending", warranty_id=warranty.id)
            continue

        reminder = create_inspection_reminder(warranty, template, settings)
        new_reminders.append(reminder)
        covered.add(warranty.id)

        logger.debug(
            "Inspection reminder scheduled",
            warranty_id=warranty.id,
            scheduled_for=reminder.scheduled_for.isoformat(),
            overdue_at_creation=reminder.scheduled_for <= ensure_utc(now),
        )

    logger.info(
        "Inspection reminders scheduled",
        candidates=len(warranties),
        created=len(new_reminders),
    )
    return new_reminders
