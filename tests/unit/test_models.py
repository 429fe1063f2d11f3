"""Tests for Pydantic models."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from warrantydb.models.base import generate_ulid
from warrantydb.models.email_reminder import EmailReminder, ReminderStatus
from warrantydb.models.email_template import EmailTemplate, TemplateType
from warrantydb.models.settings import SystemSettings
from warrantydb.models.warranty import (
    ACTIVATION_CODE_ALPHABET,
    ACTIVATION_CODE_LENGTH,
    DisplayStatus,
    Inspection,
    Warranty,
    WarrantyStatus,
    generate_activation_code,
    is_valid_activation_code,
    normalize_activation_code,
)


class TestBaseModel:
    """Tests for BaseModel."""

    def test_generate_ulid(self):
        """Test ULID generation."""
        ulid1 = generate_ulid()
        ulid2 = generate_ulid()

        assert len(ulid1) == 26
        assert ulid1 != ulid2

    def test_model_timestamps(self, make_warranty):
        """Test automatic timestamps."""
        warranty = make_warranty(status=WarrantyStatus.PENDING)

        assert warranty.created_at is not None
        assert warranty.updated_at is not None
        assert warranty.version == 1

    def test_model_serialization(self, make_warranty):
        """Test DynamoDB serialization."""
        warranty = make_warranty(id="warranty-123")

        db_item = warranty.to_dynamodb()

        assert db_item["id"] == "warranty-123"
        assert db_item["status"] == "activated"
        assert db_item["customer"]["email"] == "jane@example.com"
        assert isinstance(db_item["activated_at"], str)
        # None values are dropped
        assert "last_inspection_date" not in db_item

    def test_model_deserialization(self, make_warranty):
        """Test DynamoDB deserialization ignores key attributes."""
        original = make_warranty(id="warranty-123")
        db_item = {
            **original.to_dynamodb(),
            "PK": "WARRANTY#warranty-123",
            "SK": "META",
            "GSI1PK": f"ACTIVATION#{original.activation_code}",
            "GSI1SK": "WARRANTY#warranty-123",
            "version": Decimal("3"),
        }

        warranty = Warranty.from_dynamodb(db_item)

        assert warranty.id == "warranty-123"
        assert warranty.version == 3
        assert warranty.activated_at == datetime(2024, 1, 15, tzinfo=timezone.utc)
        assert warranty.vehicle.year == 2022

    def test_increment_version(self, settings):
        """Test version increment."""
        settings.increment_version()
        settings.increment_version()

        assert settings.version == 3


class TestActivationCode:
    """Tests for activation code helpers."""

    def test_generated_code_shape(self):
        """Test generated codes use the unambiguous alphabet."""
        code = generate_activation_code()

        assert len(code) == ACTIVATION_CODE_LENGTH
        assert all(c in ACTIVATION_CODE_ALPHABET for c in code)
        assert is_valid_activation_code(code)

    def test_ambiguous_characters_rejected(self):
        """Test that 0, O, 1 and I never appear in a valid code."""
        assert not is_valid_activation_code("ABCD0EFG")
        assert not is_valid_activation_code("ABCDOEFG")
        assert not is_valid_activation_code("ABCD1EFG")
        assert not is_valid_activation_code("ABCDIEFG")

    def test_normalize(self):
        """Test lookup normalization trims and upper-cases."""
        assert normalize_activation_code("  abcd2345 ") == "ABCD2345"
        assert is_valid_activation_code("abcd2345")

    def test_warranty_normalizes_code(self, make_warranty):
        """Test that a warranty stores its code normalized."""
        warranty = make_warranty(activation_code="abcd2345")

        assert warranty.activation_code == "ABCD2345"

    def test_warranty_rejects_bad_code(self, make_warranty):
        """Test that malformed codes fail validation."""
        with pytest.raises(ValidationError):
            make_warranty(activation_code="SHORT")


class TestWarranty:
    """Tests for Warranty model."""

    def test_keys(self, make_warranty):
        """Test primary and activation-code index keys."""
        warranty = make_warranty(id="w-1", activation_code="ABCD2345")

        assert warranty.get_keys() == {"PK": "WARRANTY#w-1", "SK": "META"}
        assert warranty.get_gsi1_keys() == {
            "GSI1PK": "ACTIVATION#ABCD2345",
            "GSI1SK": "WARRANTY#w-1",
        }

    def test_pending_warranty_cannot_carry_dates(self, make_warranty):
        """Test that pending warranties have no activation schedule."""
        with pytest.raises(ValidationError):
            make_warranty(
                status=WarrantyStatus.PENDING,
                activated_at=None,
                expires_at=datetime(2030, 1, 1, tzinfo=timezone.utc),
            )

    def test_mark_activated(self, make_warranty):
        """Test the pending to activated transition."""
        warranty = make_warranty(status=WarrantyStatus.PENDING)
        activated_at = datetime(2024, 1, 15, tzinfo=timezone.utc)

        warranty.mark_activated(
            activated_at=activated_at,
            expires_at=datetime(2029, 1, 15, tzinfo=timezone.utc),
            next_inspection_due=datetime(2025, 1, 15, tzinfo=timezone.utc),
        )

        assert warranty.status == "activated"
        assert warranty.is_activated
        assert warranty.activated_at == activated_at

    def test_add_inspection_advances_schedule(self, make_warranty):
        """Test that an inspection updates last/next inspection dates."""
        warranty = make_warranty()
        inspection = Inspection(
            warranty_id=warranty.id,
            inspector_id="inspector-1",
            inspection_date=datetime(2025, 2, 1, tzinfo=timezone.utc),
            passed=True,
            next_inspection_due=datetime(2026, 2, 1, tzinfo=timezone.utc),
        )

        warranty.add_inspection(inspection)

        assert len(warranty.inspections) == 1
        assert warranty.last_inspection_date == datetime(2025, 2, 1, tzinfo=timezone.utc)
        assert warranty.next_inspection_due == datetime(2026, 2, 1, tzinfo=timezone.utc)

    def test_inspection_is_immutable(self):
        """Test that recorded inspections cannot be edited."""
        inspection = Inspection(
            warranty_id="w-1",
            inspector_id="inspector-1",
            inspection_date=datetime(2025, 2, 1, tzinfo=timezone.utc),
            passed=True,
            next_inspection_due=datetime(2026, 2, 1, tzinfo=timezone.utc),
        )

        with pytest.raises(ValidationError):
            inspection.passed = False

    def test_display_status_labels(self):
        """Test human-readable labels."""
        assert DisplayStatus.INSPECTION_DUE_SOON.label == "Inspection Due Soon"
        assert DisplayStatus.PENDING_ACTIVATION.label == "Pending Activation"


class TestEmailReminder:
    """Tests for EmailReminder model."""

    def _reminder(self, **kwargs) -> EmailReminder:
        data = {
            "id": "r-1",
            "warranty_id": "w-1",
            "customer_id": "c-1",
            "customer_email": "jane@example.com",
            "type": TemplateType.INSPECTION_DUE,
            "scheduled_for": datetime(2024, 12, 16, tzinfo=timezone.utc),
            "subject": "Subject",
            "body": "Body",
        }
        data.update(kwargs)
        return EmailReminder(**data)

    def test_status_index_keys(self):
        """Test GSI1 keys sort by scheduled time within a status."""
        reminder = self._reminder()

        keys = reminder.get_gsi1_keys()

        assert keys["GSI1PK"] == "REMINDERS#pending"
        assert keys["GSI1SK"] == "2024-12-16T00:00:00.000000#r-1"

    def test_naive_schedule_is_utc(self):
        """Test naive timestamps are treated as UTC."""
        reminder = self._reminder(scheduled_for=datetime(2024, 12, 16, 9, 30))

        assert reminder.scheduled_for.tzinfo is not None
        assert reminder.scheduled_for == datetime(2024, 12, 16, 9, 30, tzinfo=timezone.utc)

    def test_is_due(self):
        """Test due means pending and scheduled at or before now."""
        reminder = self._reminder()

        assert reminder.is_due(datetime(2024, 12, 16, tzinfo=timezone.utc))
        assert not reminder.is_due(datetime(2024, 12, 15, tzinfo=timezone.utc))

        reminder.mark_sent(datetime(2024, 12, 16, tzinfo=timezone.utc))
        assert not reminder.is_due(datetime(2025, 1, 1, tzinfo=timezone.utc))

    def test_status_transitions(self):
        """Test sending is outstanding while sent and failed are not."""
        reminder = self._reminder()
        assert reminder.is_outstanding

        reminder.mark_sending()
        assert reminder.status == ReminderStatus.SENDING
        assert reminder.is_outstanding

        reminder.mark_failed("bounced")
        assert reminder.status == "failed"
        assert reminder.failure_reason == "bounced"
        assert not reminder.is_outstanding

    def test_is_stale_claim(self):
        claimed_at = datetime(2024, 12, 16, 9, 0, tzinfo=timezone.utc)
        reminder = self._reminder()
        reminder.mark_sending()
        reminder.updated_at = claimed_at

        assert not reminder.is_stale_claim(claimed_at + timedelta(minutes=59), timedelta(hours=1))
        assert reminder.is_stale_claim(claimed_at + timedelta(hours=1), timedelta(hours=1))

        reminder.mark_failed("expired")
        assert not reminder.is_stale_claim(claimed_at + timedelta(days=1), timedelta(hours=1))


class TestEmailTemplate:
    """Tests for EmailTemplate model."""

    def test_placeholders_in_order(self):
        """Test placeholder discovery across subject and body."""
        template = EmailTemplate(
            name="Test",
            type=TemplateType.INSPECTION_DUE,
            subject="Hi {{customerName}}",
            body="{{vehicleMake}} for {{customerName}} due {{nextInspectionDue}}",
        )

        assert template.placeholders() == ["customerName", "vehicleMake", "nextInspectionDue"]

    def test_keys(self):
        """Test template key layout."""
        template = EmailTemplate(
            id="t-1",
            name="Test",
            type=TemplateType.WARRANTY_ACTIVATED,
            subject="S",
            body="B",
        )

        assert template.get_keys() == {"PK": "TEMPLATES", "SK": "TEMPLATE#t-1"}


class TestSystemSettings:
    """Tests for SystemSettings defaults and bounds."""

    def test_defaults(self):
        settings = SystemSettings()

        assert settings.warranty_duration_years == 5
        assert settings.inspection_interval_months == 12
        assert settings.reminder_days_before == 30
        assert settings.enable_email_reminders is True
        assert settings.auto_activate_warranties is False
        assert settings.get_keys() == {"PK": "SETTINGS", "SK": "SYSTEM"}

    def test_interval_must_be_positive(self):
        with pytest.raises(ValidationError):
            SystemSettings(inspection_interval_months=0)
