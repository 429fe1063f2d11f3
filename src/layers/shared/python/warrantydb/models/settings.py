"""System settings model."""

from pydantic import BaseModel as PydanticBaseModel, Field

from warrantydb.models.base import BaseModel

SETTINGS_ID = "system"


class SystemSettings(BaseModel):
    """Process-wide business settings, edited by administrators.

    Loaded once at the start of each scheduling pass; edits apply from the
    next pass.

    Key Pattern:
        PK: SETTINGS
        SK: SYSTEM
    """

    id: str = Field(default=SETTINGS_ID)

    company_name: str = "WarrantyDB Australia"
    company_email: str = "support@warrantydb.com.au"
    company_phone: str = "1300 WARRANTY"
    warranty_duration_years: int = Field(default=5, ge=1, le=50)
    inspection_interval_months: int = Field(default=12, ge=1, le=120)
    reminder_days_before: int = Field(default=30, ge=0, le=365)
    enable_email_reminders: bool = True
    enable_sms_reminders: bool = False
    auto_activate_warranties: bool = False

    def get_pk(self) -> str:
        return "SETTINGS"

    def get_sk(self) -> str:
        return "SYSTEM"


class UpdateSettingsRequest(PydanticBaseModel):
    """Partial settings update from the admin console."""

    company_name: str | None = None
    company_email: str | None = None
    company_phone: str | None = None
    warranty_duration_years: int | None = Field(None, ge=1, le=50)
    inspection_interval_months: int | None = Field(None, ge=1, le=120)
    reminder_days_before: int | None = Field(None, ge=0, le=365)
    enable_email_reminders: bool | None = None
    enable_sms_reminders: bool | None = None
    auto_activate_warranties: bool | None = None
