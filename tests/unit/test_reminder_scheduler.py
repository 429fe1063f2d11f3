"""Tests for reminder scheduling decisions."""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from warrantydb.models.email_reminder import ReminderStatus
from warrantydb.models.email_template import TemplateType
from warrantydb.models.settings import SystemSettings
from warrantydb.models.warranty import WarrantyStatus
from warrantydb.services.reminder_scheduler import (
    build_inspection_variables,
    create_activation_reminder,
    create_inspection_reminder,
    find_active_template,
    require_template,
    schedule_inspection_reminders,
)
from warrantydb.utils.exceptions import TemplateUnavailableError

NOW = datetime(2024, 12, 1, tzinfo=timezone.utc)


class TestTemplates:
    """Tests for template lookup."""

    def test_find_active_template(self, inspection_template, activation_template):
        templates = [activation_template, inspection_template]

        assert find_active_template(templates, TemplateType.INSPECTION_DUE) is inspection_template
        assert find_active_template(templates, "warranty_activated") is activation_template

    def test_inactive_template_ignored(self, inspection_template):
        inspection_template.is_active = False

        assert find_active_template([inspection_template], TemplateType.INSPECTION_DUE) is None

    def test_require_template_raises(self, activation_template):
        with pytest.raises(TemplateUnavailableError) as exc_info:
            require_template([activation_template], TemplateType.INSPECTION_DUE)

        assert exc_info.value.template_type == "inspection_due"
        assert exc_info.value.status_code == 422


class TestCreateReminders:
    """Tests for building individual reminders."""

    def test_inspection_reminder_schedule(self, make_warranty, inspection_template, settings):
        """Test reminder lands reminder_days_before the due date."""
        warranty = make_warranty()

        reminder = create_inspection_reminder(warranty, inspection_template, settings)

        assert reminder.scheduled_for == datetime(2024, 12, 16, tzinfo=timezone.utc)
        assert reminder.status == ReminderStatus.PENDING
        assert reminder.type == TemplateType.INSPECTION_DUE
        assert reminder.warranty_id == warranty.id
        assert reminder.customer_email == "jane@example.com"

    def test_inspection_reminder_rendered(self, make_warranty, inspection_template, settings):
        warranty = make_warranty(activation_code="ABCD2345")

        reminder = create_inspection_reminder(warranty, inspection_template, settings)

        assert reminder.subject == "Your Annual Warranty Inspection is Due - Jane Citizen"
        assert "Toyota Hilux (Rego: ABC123)" in reminder.body
        assert "Activation Code: ABCD2345" in reminder.body
        assert "Last Inspection: N/A" in reminder.body
        assert "Due Date: 15/01/2025" in reminder.body
        assert "{{" not in reminder.body

    @patch("warrantydb.services.reminder_scheduler.logger")
    def test_unknown_placeholder_logged(self, mock_logger, make_warranty, inspection_template, settings):
        """Test a placeholder with no value is kept verbatim and reported."""
        inspection_template.body += "\nBay: {{serviceBay}}"
        warranty = make_warranty()

        reminder = create_inspection_reminder(warranty, inspection_template, settings)

        assert "Bay: {{serviceBay}}" in reminder.body
        mock_logger.warning.assert_called_once()
        assert mock_logger.warning.call_args.kwargs["missing"] == ["serviceBay"]

    def test_known_placeholders_not_logged(self, make_warranty, inspection_template, settings):
        with patch("warrantydb.services.reminder_scheduler.logger") as mock_logger:
            create_inspection_reminder(make_warranty(), inspection_template, settings)

        mock_logger.warning.assert_not_called()

    def test_inspection_reminder_requires_due_date(self, make_warranty, inspection_template, settings):
        warranty = make_warranty(next_inspection_due=None)

        with pytest.raises(ValueError):
            create_inspection_reminder(warranty, inspection_template, settings)

    def test_activation_reminder_due_now(self, make_warranty, activation_template, settings):
        warranty = make_warranty()

        reminder = create_activation_reminder(warranty, activation_template, settings, NOW)

        assert reminder.scheduled_for == NOW
        assert reminder.type == TemplateType.WARRANTY_ACTIVATED
        assert "Warranty Valid Until: 15/01/2029" in reminder.body
        assert "WarrantyDB Australia Team" in reminder.body

    def test_inspection_variables(self, make_warranty, settings):
        warranty = make_warranty()

        variables = build_inspection_variables(warranty, settings)

        assert variables["customerName"] == "Jane Citizen"
        assert variables["vehicleYear"] == "2022"
        assert variables["nextInspectionDue"] == "15/01/2025"
        assert variables["lastInspectionDate"] == "N/A"


class TestScheduleInspectionReminders:
    """Tests for the batch scheduling decision."""

    def test_creates_reminder_for_activated_warranty(self, make_warranty, inspection_template, settings):
        warranty = make_warranty()

        reminders = schedule_inspection_reminders([warranty], [], settings, [inspection_template], NOW)

        assert len(reminders) == 1
        assert reminders[0].scheduled_for == datetime(2024, 12, 16, tzinfo=timezone.utc)

    def test_second_run_creates_nothing(self, make_warranty, inspection_template, settings):
        """Test feeding the first run's output back in yields no duplicates."""
        warranties = [make_warranty(), make_warranty()]

        first = schedule_inspection_reminders(warranties, [], settings, [inspection_template], NOW)
        second = schedule_inspection_reminders(warranties, first, settings, [inspection_template], NOW)

        assert len(first) == 2
        assert second == []

    def test_in_flight_reminder_blocks_new_one(self, make_warranty, inspection_template, settings):
        warranty = make_warranty()
        existing = schedule_inspection_reminders([warranty], [], settings, [inspection_template], NOW)
        existing[0].mark_sending()

        assert schedule_inspection_reminders([warranty], existing, settings, [inspection_template], NOW) == []

    def test_resolved_reminder_does_not_block(self, make_warranty, inspection_template, settings):
        warranty = make_warranty()
        existing = schedule_inspection_reminders([warranty], [], settings, [inspection_template], NOW)
        existing[0].mark_sent(NOW)

        reminders = schedule_inspection_reminders([warranty], existing, settings, [inspection_template], NOW)

        assert len(reminders) == 1

    def test_other_reminder_types_do_not_block(
        self, make_warranty, inspection_template, activation_template, settings
    ):
        warranty = make_warranty()
        activation = create_activation_reminder(warranty, activation_template, settings, NOW)

        reminders = schedule_inspection_reminders(
            [warranty], [activation], settings, [inspection_template], NOW
        )

        assert len(reminders) == 1

    def test_skips_non_activated(self, make_warranty, inspection_template, settings):
        warranties = [
            make_warranty(status=WarrantyStatus.PENDING),
            make_warranty(status=WarrantyStatus.VOIDED),
            make_warranty(next_inspection_due=None),
        ]

        assert schedule_inspection_reminders(warranties, [], settings, [inspection_template], NOW) == []

    def test_missing_template_yields_nothing(self, make_warranty, activation_template, settings):
        warranty = make_warranty()

        assert schedule_inspection_reminders([warranty], [], settings, [activation_template], NOW) == []

    def test_inactive_template_yields_nothing(self, make_warranty, inspection_template, settings):
        inspection_template.is_active = False

        assert schedule_inspection_reminders([make_warranty()], [], settings, [inspection_template], NOW) == []

    def test_disabled_reminders_yield_nothing(self, make_warranty, inspection_template):
        settings = SystemSettings(enable_email_reminders=False)

        assert schedule_inspection_reminders([make_warranty()], [], settings, [inspection_template], NOW) == []

    def test_past_schedule_kept(self, make_warranty, inspection_template, settings):
        """Test a late pass still yields a reminder dated in the past."""
        warranty = make_warranty()
        late_now = datetime(2025, 3, 1, tzinfo=timezone.utc)

        reminders = schedule_inspection_reminders([warranty], [], settings, [inspection_template], late_now)

        assert reminders[0].scheduled_for == datetime(2024, 12, 16, tzinfo=timezone.utc)
        assert reminders[0].is_due(late_now)
