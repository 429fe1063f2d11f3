"""Warranty and inspection models."""

import re
import secrets
from datetime import datetime
from enum import Enum

from pydantic import BaseModel as PydanticBaseModel, ConfigDict, Field, field_validator, model_validator

from warrantydb.models.base import BaseModel, generate_ulid, utc_now

# Excludes 0/O and 1/I so codes survive being read aloud or handwritten
ACTIVATION_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
ACTIVATION_CODE_LENGTH = 8

_ACTIVATION_CODE_RE = re.compile(rf"^[{ACTIVATION_CODE_ALPHABET}]{{{ACTIVATION_CODE_LENGTH}}}$")


def generate_activation_code() -> str:
    """Generate a random activation code."""
    return "".join(secrets.choice(ACTIVATION_CODE_ALPHABET) for _ in range(ACTIVATION_CODE_LENGTH))


def normalize_activation_code(code: str) -> str:
    """Normalize user input for case-insensitive code lookup."""
    return code.strip().upper()


def is_valid_activation_code(code: str) -> bool:
    return bool(_ACTIVATION_CODE_RE.match(normalize_activation_code(code)))


class WarrantyStatus(str, Enum):
    """Persisted warranty status."""

    PENDING = "pending"
    ACTIVATED = "activated"
    EXPIRED = "expired"
    VOIDED = "voided"


class DisplayStatus(str, Enum):
    """Status derived from the persisted state and the current time."""

    VOIDED = "voided"
    PENDING_ACTIVATION = "pending_activation"
    EXPIRED = "expired"
    INSPECTION_OVERDUE = "inspection_overdue"
    INSPECTION_DUE_SOON = "inspection_due_soon"
    ACTIVE = "active"

    @property
    def label(self) -> str:
        """Human-readable label."""
        return _DISPLAY_LABELS[self]


_DISPLAY_LABELS = {
    DisplayStatus.VOIDED: "Voided",
    DisplayStatus.PENDING_ACTIVATION: "Pending Activation",
    DisplayStatus.EXPIRED: "Expired",
    DisplayStatus.INSPECTION_OVERDUE: "Inspection Overdue",
    DisplayStatus.INSPECTION_DUE_SOON: "Inspection Due Soon",
    DisplayStatus.ACTIVE: "Active",
}


class Condition(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    CRITICAL = "critical"


class CorrosionSeverity(str, Enum):
    NONE = "none"
    MINOR = "minor"
    MODERATE = "moderate"
    SEVERE = "severe"


class Customer(PydanticBaseModel):
    """Warranty holder contact details."""

    model_config = ConfigDict(use_enum_values=True)

    id: str = Field(default_factory=generate_ulid)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=254)
    phone: str | None = None
    address: str | None = None
    suburb: str | None = None
    state: str | None = Field(None, description="Australian state code, e.g. NSW")
    postcode: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Vehicle(PydanticBaseModel):
    """Vehicle the protection system is fitted to."""

    id: str = Field(default_factory=generate_ulid)
    make: str = Field(..., min_length=1)
    model: str = Field(..., min_length=1)
    year: int = Field(..., ge=1900, le=2100)
    vin: str = Field(..., description="17-character VIN")
    registration_number: str
    registration_state: str | None = None
    color: str | None = None
    body_type: str | None = None


class InstallationDetails(PydanticBaseModel):
    """What the installer fitted and observed on the day."""

    installation_date: datetime
    installer_notes: str | None = None
    generator_serial_numbers: list[str] = Field(default_factory=list)
    coupler_count: int = Field(default=0, ge=0)
    corrosion_check_passed: bool = True
    corrosion_notes: str | None = None


class Inspection(PydanticBaseModel):
    """A completed compliance inspection. Immutable once recorded."""

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    id: str = Field(default_factory=generate_ulid)
    warranty_id: str
    inspector_id: str
    inspector_name: str = ""
    inspection_date: datetime
    findings: str = ""
    corrosion_found: bool = False
    corrosion_severity: CorrosionSeverity | None = None
    corrosion_notes: str | None = None
    overall_condition: Condition = Condition.GOOD
    recommendations: str | None = None
    passed: bool
    next_inspection_due: datetime
    created_at: datetime = Field(default_factory=utc_now)


class Warranty(BaseModel):
    """Warranty aggregate.

    Key Pattern:
        PK: WARRANTY#{id}
        SK: META
        GSI1PK: ACTIVATION#{activation_code}
        GSI1SK: WARRANTY#{id}
    """

    activation_code: str = Field(default_factory=generate_activation_code)
    status: WarrantyStatus = Field(default=WarrantyStatus.PENDING)

    customer: Customer
    vehicle: Vehicle
    installation: InstallationDetails | None = None

    installer_id: str = ""
    installer_name: str = ""
    installer_company: str = ""
    store_location: str | None = None

    activated_at: datetime | None = None
    expires_at: datetime | None = None
    last_inspection_date: datetime | None = None
    next_inspection_due: datetime | None = None

    inspections: list[Inspection] = Field(default_factory=list)

    @field_validator("activation_code")
    @classmethod
    def validate_activation_code(cls, v: str) -> str:
        code = normalize_activation_code(v)
        if not _ACTIVATION_CODE_RE.match(code):
            raise ValueError(
                f"Activation code must be {ACTIVATION_CODE_LENGTH} characters from {ACTIVATION_CODE_ALPHABET}"
            )
        return code

    @model_validator(mode="after")
    def check_pending_has_no_schedule(self) -> "Warranty":
        """A pending warranty carries no activation dates."""
        if self.status == WarrantyStatus.PENDING and (
            self.activated_at or self.expires_at or self.next_inspection_due
        ):
            raise ValueError("Pending warranties cannot have activation, expiry or inspection dates")
        return self

    def get_pk(self) -> str:
        return f"WARRANTY#{self.id}"

    def get_sk(self) -> str:
        return "META"

    def get_gsi1_keys(self) -> dict[str, str]:
        """Get GSI1 keys for activation code lookup."""
        return {
            "GSI1PK": f"ACTIVATION#{self.activation_code}",
            "GSI1SK": f"WARRANTY#{self.id}",
        }

    @property
    def is_pending(self) -> bool:
        return self.status == WarrantyStatus.PENDING

    @property
    def is_activated(self) -> bool:
        return self.status == WarrantyStatus.ACTIVATED

    @property
    def is_voided(self) -> bool:
        return self.status == WarrantyStatus.VOIDED

    def mark_activated(
        self,
        activated_at: datetime,
        expires_at: datetime,
        next_inspection_due: datetime,
    ) -> None:
        """Apply the pending -> activated transition.

        Status is assigned first so that assignment validation sees an
        activated warranty when the dates land.
        """
        self.status = WarrantyStatus.ACTIVATED
        self.activated_at = activated_at
        self.expires_at = expires_at
        self.next_inspection_due = next_inspection_due

    def add_inspection(self, inspection: Inspection) -> None:
        """Append an inspection and advance the schedule from it."""
        self.inspections = [*self.inspections, inspection]
        self.last_inspection_date = inspection.inspection_date
        self.next_inspection_due = inspection.next_inspection_due


class RegisterWarrantyRequest(PydanticBaseModel):
    """Request model for registering a new installation."""

    customer: Customer
    vehicle: Vehicle
    installation: InstallationDetails
    installer_id: str = Field(..., min_length=1)
    installer_name: str = ""
    installer_company: str = ""
    store_location: str | None = None


class ActivateWarrantyRequest(PydanticBaseModel):
    """Request model for redeeming an activation code."""

    activation_code: str = Field(..., min_length=1, max_length=32)


class RecordInspectionRequest(PydanticBaseModel):
    """Request model for logging a completed inspection."""

    model_config = ConfigDict(use_enum_values=True)

    inspector_id: str = Field(..., min_length=1)
    inspector_name: str = ""
    inspection_date: datetime
    findings: str = ""
    corrosion_found: bool = False
    corrosion_severity: CorrosionSeverity | None = None
    corrosion_notes: str | None = None
    overall_condition: Condition = Condition.GOOD
    recommendations: str | None = None
    passed: bool
