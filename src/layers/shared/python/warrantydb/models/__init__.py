"""Pydantic models for WarrantyDB entities."""

from warrantydb.models.base import BaseModel, TimestampMixin
from warrantydb.models.email_reminder import EmailReminder, ReminderStatus
from warrantydb.models.email_template import (
    DEFAULT_TEMPLATES,
    EmailTemplate,
    TemplateType,
    UpdateEmailTemplateRequest,
)
from warrantydb.models.settings import SystemSettings, UpdateSettingsRequest
from warrantydb.models.warranty import (
    ActivateWarrantyRequest,
    Customer,
    DisplayStatus,
    InstallationDetails,
    Inspection,
    RecordInspectionRequest,
    RegisterWarrantyRequest,
    Vehicle,
    Warranty,
    WarrantyStatus,
    generate_activation_code,
    normalize_activation_code,
)

__all__ = [
    # Base
    "BaseModel",
    "TimestampMixin",
    # Warranty
    "Warranty",
    "WarrantyStatus",
    "DisplayStatus",
    "Customer",
    "Vehicle",
    "InstallationDetails",
    "Inspection",
    "RegisterWarrantyRequest",
    "ActivateWarrantyRequest",
    "RecordInspectionRequest",
    "generate_activation_code",
    "normalize_activation_code",
    # Templates
    "EmailTemplate",
    "TemplateType",
    "UpdateEmailTemplateRequest",
    "DEFAULT_TEMPLATES",
    # Reminders
    "EmailReminder",
    "ReminderStatus",
    # Settings
    "SystemSettings",
    "UpdateSettingsRequest",
]
