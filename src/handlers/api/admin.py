"""Admin API handler: settings, email templates, reminders and dashboard."""

import json
from datetime import datetime, timezone
from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError

from warrantydb.models.email_template import UpdateEmailTemplateRequest
from warrantydb.models.settings import UpdateSettingsRequest
from warrantydb.repositories.email_template import EmailTemplateRepository
from warrantydb.repositories.reminder import ReminderRepository
from warrantydb.repositories.settings import SettingsRepository
from warrantydb.repositories.warranty import WarrantyRepository
from warrantydb.services.dashboard import calculate_dashboard_stats
from warrantydb.services.email_service import EmailService
from warrantydb.services.reminder_dispatcher import get_email_stats
from warrantydb.services.reminder_jobs import ReminderJobs
from warrantydb.services.warranty_service import reminder_window_days
from warrantydb.utils.exceptions import NotFoundError, ValidationError, WarrantyDBError
from warrantydb.utils.responses import created, error, from_exception, success, validation_error

logger = structlog.get_logger()


def handler(event: dict[str, Any], context: Any) -> dict:
    """Handle admin API requests.

    Routes:
        GET  /admin/dashboard                 - Dashboard statistics
        GET  /admin/settings                  - Current system settings
        PUT  /admin/settings                  - Update system settings
        GET  /admin/templates                 - List email templates
        POST /admin/templates/seed            - Create default templates
        PUT  /admin/templates/{template_id}   - Update an email template
        GET  /admin/reminders                 - List reminders with stats
        POST /admin/reminders/run             - Run schedule and dispatch passes now
    """
    try:
        http_method = event.get("httpMethod", "").upper()
        path = event.get("path", "")
        path_params = event.get("pathParameters", {}) or {}

        if path.endswith("/dashboard") and http_method == "GET":
            return get_dashboard()
        elif path.endswith("/settings") and http_method == "GET":
            return success(SettingsRepository().get_settings())
        elif path.endswith("/settings") and http_method == "PUT":
            return update_settings(event)
        elif path.endswith("/templates/seed") and http_method == "POST":
            return seed_templates()
        elif path_params.get("template_id") and http_method == "PUT":
            return update_template(path_params["template_id"], event)
        elif path.endswith("/templates") and http_method == "GET":
            return success({"items": [t.model_dump(mode="json") for t in EmailTemplateRepository().list_all()]})
        elif path.endswith("/reminders/run") and http_method == "POST":
            return run_reminders()
        elif path.endswith("/reminders") and http_method == "GET":
            return list_reminders()
        else:
            return error("Method not allowed", 405)

    except PydanticValidationError as e:
        return validation_error(ValidationError.from_pydantic(e).errors)
    except WarrantyDBError as e:
        return from_exception(e)
    except json.JSONDecodeError:
        return error("Invalid JSON body", 400)
    except Exception as e:
        logger.exception("Admin handler error", error=str(e))
        return error("Internal server error", 500)


def get_dashboard() -> dict:
    now = datetime.now(timezone.utc)
    warranties = WarrantyRepository().list_all()
    stats = calculate_dashboard_stats(warranties, now, reminder_window_days())
    return success({
        **stats.to_dict(),
        "emails": get_email_stats(ReminderRepository().list_all()),
    })


def update_settings(event: dict) -> dict:
    request = UpdateSettingsRequest.model_validate(json.loads(event.get("body") or "{}"))
    return success(SettingsRepository().update_settings(request))


def seed_templates() -> dict:
    templates = EmailTemplateRepository().seed_defaults()
    return created({"items": [t.model_dump(mode="json") for t in templates]})


def update_template(template_id: str, event: dict) -> dict:
    request = UpdateEmailTemplateRequest.model_validate(json.loads(event.get("body") or "{}"))
    repo = EmailTemplateRepository()
    template = repo.get_by_id(template_id)
    if template is None:
        raise NotFoundError("EmailTemplate", template_id)

    for field, value in request.model_dump(exclude_none=True).items():
        setattr(template, field, value)
    template.variables = template.placeholders()

    return success(repo.update_template(template))


def list_reminders() -> dict:
    reminders = ReminderRepository().list_all()
    reminders.sort(key=lambda r: r.scheduled_for, reverse=True)
    return success({
        "items": [r.model_dump(mode="json") for r in reminders],
        "stats": get_email_stats(reminders),
    })


def run_reminders() -> dict:
    """Manual trigger for both passes, as the scheduled workers would run them."""
    jobs = ReminderJobs()
    scheduled = jobs.schedule_pass()
    processed = jobs.dispatch_pass(EmailService())
    logger.info("Manual reminder run", scheduled=scheduled.created, **processed.to_dict())
    return success({"scheduled": scheduled.to_dict(), "processed": processed.to_dict()})
