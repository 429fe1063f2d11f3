"""Pytest configuration and fixtures."""

import json
import os
from datetime import datetime, timezone

import pytest

# Set environment variables before imports
os.environ["TABLE_NAME"] = "warrantydb-test"
os.environ["STAGE"] = "test"
os.environ["AWS_DEFAULT_REGION"] = "us-east-1"
os.environ["AWS_REGION"] = "us-east-1"
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
os.environ["SES_FROM_EMAIL"] = "reminders@warrantydb.com.au"


@pytest.fixture
def aws_credentials():
    """Mock AWS credentials for moto."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"


@pytest.fixture
def dynamodb_table(aws_credentials):
    """Create mocked DynamoDB table."""
    import boto3
    from moto import mock_aws

    with mock_aws():
        dynamodb = boto3.resource("dynamodb", region_name="us-east-1")

        table = dynamodb.create_table(
            TableName="warrantydb-test",
            KeySchema=[
                {"AttributeName": "PK", "KeyType": "HASH"},
                {"AttributeName": "SK", "KeyType": "RANGE"},
            ],
            AttributeDefinitions=[
                {"AttributeName": "PK", "AttributeType": "S"},
                {"AttributeName": "SK", "AttributeType": "S"},
                {"AttributeName": "GSI1PK", "AttributeType": "S"},
                {"AttributeName": "GSI1SK", "AttributeType": "S"},
            ],
            GlobalSecondaryIndexes=[
                {
                    "IndexName": "GSI1",
                    "KeySchema": [
                        {"AttributeName": "GSI1PK", "KeyType": "HASH"},
                        {"AttributeName": "GSI1SK", "KeyType": "RANGE"},
                    ],
                    "Projection": {"ProjectionType": "ALL"},
                },
            ],
            BillingMode="PAY_PER_REQUEST",
        )

        table.wait_until_exists()

        yield table


@pytest.fixture
def settings():
    """Default system settings."""
    from warrantydb.models.settings import SystemSettings

    return SystemSettings()


@pytest.fixture
def sample_customer():
    """Create a sample customer."""
    from warrantydb.models.warranty import Customer

    return Customer(
        id="cust-001",
        first_name="Jane",
        last_name="Citizen",
        email="jane@example.com",
        phone="0400 111 222",
        state="NSW",
        postcode="2000",
    )


@pytest.fixture
def sample_vehicle():
    """Create a sample vehicle."""
    from warrantydb.models.warranty import Vehicle

    return Vehicle(
        make="Toyota",
        model="Hilux",
        year=2022,
        vin="JTEBU3FJ10K123456",
        registration_number="ABC123",
        registration_state="NSW",
    )


@pytest.fixture
def make_warranty(sample_customer, sample_vehicle):
    """Factory for warranties in any status.

    Activated warranties get the default 5 year / 12 month schedule from
    ``activated_at`` unless dates are passed explicitly.
    """
    from warrantydb.models.warranty import Warranty, WarrantyStatus
    from warrantydb.utils.dates import add_months, add_years

    def _make(
        status: str = WarrantyStatus.ACTIVATED,
        activated_at: datetime | None = datetime(2024, 1, 15, tzinfo=timezone.utc),
        **kwargs,
    ):
        data = {
            "customer": sample_customer,
            "vehicle": sample_vehicle,
            "installer_id": "installer-001",
            "installer_name": "Demo Installer",
            "status": status,
        }
        if status != WarrantyStatus.PENDING and activated_at is not None:
            data["activated_at"] = activated_at
            data["expires_at"] = add_years(activated_at, 5)
            data["next_inspection_due"] = add_months(activated_at, 12)
        data.update(kwargs)
        return Warranty(**data)

    return _make


@pytest.fixture
def inspection_template():
    """Active inspection-due template."""
    from warrantydb.models.email_template import DEFAULT_TEMPLATES, EmailTemplate

    return EmailTemplate(id="template-001", **DEFAULT_TEMPLATES[0])


@pytest.fixture
def activation_template():
    """Active warranty-activated template."""
    from warrantydb.models.email_template import DEFAULT_TEMPLATES, EmailTemplate

    return EmailTemplate(id="template-002", **DEFAULT_TEMPLATES[1])


@pytest.fixture
def api_gateway_event():
    """Create a sample API Gateway event."""
    def _create_event(
        method: str = "GET",
        path: str = "/",
        path_params: dict = None,
        query_params: dict = None,
        body: dict = None,
    ):
        return {
            "httpMethod": method,
            "path": path,
            "pathParameters": path_params or {},
            "queryStringParameters": query_params or {},
            "body": body if isinstance(body, str) else (json.dumps(body) if body else None),
            "headers": {
                "Content-Type": "application/json",
            },
        }

    return _create_event


class LambdaContext:
    """Mock Lambda context."""

    def __init__(self):
        self.function_name = "test-function"
        self.memory_limit_in_mb = 128
        self.invoked_function_arn = "arn:aws:lambda:us-east-1:123456789:function:test"
        self.aws_request_id = "test-request-id"

    def get_remaining_time_in_millis(self):
        return 30000


@pytest.fixture
def lambda_context():
    """Create a mock Lambda context."""
    return LambdaContext()
