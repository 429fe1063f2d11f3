"""Email template model."""

import re
from enum import Enum

from pydantic import BaseModel as PydanticBaseModel, Field

from warrantydb.models.base import BaseModel

PLACEHOLDER_PATTERN = re.compile(r"\{\{([^{}]+)\}\}")


class TemplateType(str, Enum):
    """Kinds of customer notification. Also used as the reminder type."""

    INSPECTION_DUE = "inspection_due"
    WARRANTY_EXPIRING = "warranty_expiring"
    ACTIVATION_REMINDER = "activation_reminder"
    WARRANTY_ACTIVATED = "warranty_activated"


class EmailTemplate(BaseModel):
    """Admin-editable message template with ``{{variable}}`` placeholders.

    Key Pattern:
        PK: TEMPLATES
        SK: TEMPLATE#{id}
    """

    name: str = Field(..., min_length=1, max_length=200)
    type: TemplateType
    subject: str = Field(..., min_length=1)
    body: str = Field(..., min_length=1)
    variables: list[str] = Field(default_factory=list, description="Variable names the template expects")
    is_active: bool = True

    def get_pk(self) -> str:
        return "TEMPLATES"

    def get_sk(self) -> str:
        return f"TEMPLATE#{self.id}"

    def placeholders(self) -> list[str]:
        """Placeholder names used in subject and body, in first-seen order."""
        seen: dict[str, None] = {}
        for text in (self.subject, self.body):
            for name in PLACEHOLDER_PATTERN.findall(text):
                seen.setdefault(name, None)
        return list(seen)


class UpdateEmailTemplateRequest(PydanticBaseModel):
    """Request model for editing a template."""

    name: str | None = Field(None, min_length=1, max_length=200)
    subject: str | None = Field(None, min_length=1)
    body: str | None = Field(None, min_length=1)
    is_active: bool | None = None


DEFAULT_TEMPLATES: list[dict] = [
    {
        "name": "Inspection Due Reminder",
        "type": TemplateType.INSPECTION_DUE,
        "subject": "Your Annual Warranty Inspection is Due - {{customerName}}",
        "body": (
            "Dear {{customerName}},\n\n"
            "This is a friendly reminder that your annual warranty inspection is due for your "
            "{{vehicleMake}} {{vehicleModel}} (Rego: {{registrationNumber}}).\n\n"
            "Your warranty remains valid as long as you complete your annual inspection. "
            "Please contact your nearest authorized installer to schedule your inspection.\n\n"
            "Warranty Details:\n"
            "- Activation Code: {{activationCode}}\n"
            "- Last Inspection: {{lastInspectionDate}}\n"
            "- Due Date: {{nextInspectionDue}}\n\n"
            "If you have any questions, please don't hesitate to contact us.\n\n"
            "Best regards,\n"
            "{{companyName}}"
        ),
    },
    {
        "name": "Warranty Activated",
        "type": TemplateType.WARRANTY_ACTIVATED,
        "subject": "Your Warranty Has Been Activated - {{activationCode}}",
        "body": (
            "Dear {{customerName}},\n\n"
            "Congratulations! Your warranty has been successfully activated.\n\n"
            "Warranty Details:\n"
            "- Activation Code: {{activationCode}}\n"
            "- Vehicle: {{vehicleMake}} {{vehicleModel}} ({{vehicleYear}})\n"
            "- Registration: {{registrationNumber}}\n"
            "- Warranty Valid Until: {{expiryDate}}\n\n"
            "Important: To maintain your warranty coverage, please ensure you complete your "
            "annual inspection. You will receive a reminder when your inspection is due.\n\n"
            "Thank you for choosing {{companyName}}.\n\n"
            "Best regards,\n"
            "{{companyName}} Team"
        ),
    },
]
