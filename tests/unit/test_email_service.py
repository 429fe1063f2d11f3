"""Tests for the SES email channel."""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from warrantydb.services.email_service import EmailService
from warrantydb.utils.exceptions import DeliveryError


class TestEmailService:
    """Tests for EmailService."""

    def test_send_with_verified_sender(self, aws_credentials):
        """Test a send through moto's SES."""
        import boto3
        from moto import mock_aws

        with mock_aws():
            ses = boto3.client("ses", region_name="us-east-1")
            ses.verify_email_identity(EmailAddress="reminders@warrantydb.com.au")

            service = EmailService(region_name="us-east-1")
            result = service.send_email(
                to="jane@example.com",
                subject="Inspection due",
                body_text="Please book your inspection.",
            )

            assert result["status"] == "sent"
            assert result["message_id"]
            assert result["to"] == ["jane@example.com"]

    def test_send_returns_true(self):
        service = EmailService(from_email="reminders@warrantydb.com.au")
        service._client = MagicMock()
        service._client.send_email.return_value = {"MessageId": "msg-1"}

        assert service.send("jane@example.com", "Subject", "Body") is True

        kwargs = service._client.send_email.call_args.kwargs
        assert kwargs["Source"] == "reminders@warrantydb.com.au"
        assert kwargs["Destination"] == {"ToAddresses": ["jane@example.com"]}
        assert kwargs["Message"]["Body"]["Text"]["Data"] == "Body"

    def test_ses_rejection_raises_delivery_error(self):
        service = EmailService(from_email="reminders@warrantydb.com.au")
        service._client = MagicMock()
        service._client.send_email.side_effect = ClientError(
            {"Error": {"Code": "MessageRejected", "Message": "Email address is not verified."}},
            "SendEmail",
        )

        with pytest.raises(DeliveryError) as exc_info:
            service.send("jane@example.com", "Subject", "Body")

        assert exc_info.value.details["original_error"] == "MessageRejected"

    def test_missing_recipient(self):
        service = EmailService(from_email="reminders@warrantydb.com.au")

        with pytest.raises(DeliveryError):
            service.send("", "Subject", "Body")

    def test_configuration_set_passed(self):
        service = EmailService(from_email="reminders@warrantydb.com.au", configuration_set="tracking")
        service._client = MagicMock()
        service._client.send_email.return_value = {"MessageId": "msg-1"}

        service.send_email(to=["a@example.com"], subject="S", body_text="B", tags={"type": "inspection_due"})

        kwargs = service._client.send_email.call_args.kwargs
        assert kwargs["ConfigurationSetName"] == "tracking"
        assert kwargs["Tags"] == [{"Name": "type", "Value": "inspection_due"}]
