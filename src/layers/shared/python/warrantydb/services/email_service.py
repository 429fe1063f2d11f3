"""Email delivery channel using Amazon SES."""

import os
from typing import Any

import boto3
import structlog
from botocore.exceptions import ClientError

from warrantydb.utils.exceptions import DeliveryError

logger = structlog.get_logger()


class EmailService:
    """Sends plain-text reminder emails via Amazon SES.

    Implements the reminder dispatcher's delivery channel through ``send``.
    """

    def __init__(
        self,
        region_name: str | None = None,
        from_email: str | None = None,
        configuration_set: str | None = None,
    ):
        """Initialize Email service.

        Args:
            region_name: AWS region for SES. Falls back to AWS_REGION env var.
            from_email: Sender address. Falls back to SES_FROM_EMAIL env var.
            configuration_set: Optional SES configuration set for tracking.
        """
        self.region_name = region_name or os.environ.get("AWS_REGION", "ap-southeast-2")
        self.from_email = from_email or os.environ.get("SES_FROM_EMAIL")
        self.configuration_set = configuration_set or os.environ.get("SES_CONFIGURATION_SET")
        self._client = None

    @property
    def client(self):
        """Get SES client (lazy initialization)."""
        if self._client is None:
            self._client = boto3.client("ses", region_name=self.region_name)
        return self._client

    def send_email(
        self,
        to: str | list[str],
        subject: str,
        body_text: str,
        reply_to: list[str] | None = None,
        tags: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Send an email.

        Args:
            to: Recipient email address(es).
            subject: Email subject.
            body_text: Plain text body.
            reply_to: Reply-to addresses.
            tags: Message tags for tracking.

        Returns:
            Dict with message_id and status.

        Raises:
            DeliveryError: If the request is incomplete or SES rejects it.
        """
        if not self.from_email:
            raise DeliveryError("Sender email address is required")
        if not to:
            raise DeliveryError("Recipient email address is required")
        if not body_text:
            raise DeliveryError("Email body is required")

        if isinstance(to, str):
            to = [to]

        logger.info(
            "Sending email",
            to=to,
            subject=subject[:50] + "..." if len(subject) > 50 else subject,
        )

        kwargs: dict[str, Any] = {
            "Source": self.from_email,
            "Destination": {"ToAddresses": to},
            "Message": {
                "Subject": {"Data": subject, "Charset": "UTF-8"},
                "Body": {"Text": {"Data": body_text, "Charset": "UTF-8"}},
            },
        }
        if reply_to:
            kwargs["ReplyToAddresses"] = reply_to
        if self.configuration_set:
            kwargs["ConfigurationSetName"] = self.configuration_set
        if tags:
            kwargs["Tags"] = [{"Name": k, "Value": v} for k, v in tags.items()]

        try:
            response = self.client.send_email(**kwargs)
        except ClientError as e:
            error_code = e.response["Error"]["Code"]
            error_message = e.response["Error"]["Message"]
            logger.error(
                "SES send failed",
                error_code=error_code,
                error_message=error_message,
                to=to,
            )
            raise DeliveryError(
                f"Failed to send email: {error_message}",
                original_error=error_code,
            ) from e

        logger.info("Email sent successfully", message_id=response["MessageId"])
        return {
            "message_id": response["MessageId"],
            "status": "sent",
            "to": to,
            "subject": subject,
        }

    def send(self, to: str, subject: str, body: str) -> bool:
        """Delivery channel entry point used by the reminder dispatcher."""
        self.send_email(to=to, subject=subject, body_text=body)
        return True
