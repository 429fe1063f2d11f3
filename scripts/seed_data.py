#!/usr/bin/env python3
"""Seed development data into DynamoDB."""

import argparse
import os
import sys
from datetime import datetime, timedelta, timezone

import boto3

# Add the shared layer to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src", "layers", "shared", "python"))

from warrantydb.models.email_template import DEFAULT_TEMPLATES, EmailTemplate
from warrantydb.models.settings import SystemSettings
from warrantydb.models.warranty import Customer, InstallationDetails, Vehicle, Warranty
from warrantydb.repositories.warranty import WarrantyRepository
from warrantydb.services.inspection_scheduler import on_activate


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Seed development data")
    parser.add_argument("--stage", default="dev", help="Deployment stage")
    parser.add_argument("--region", default="ap-southeast-2", help="AWS region")
    args = parser.parse_args()

    table_name = f"warrantydb-{args.stage}"
    print(f"Seeding data to table: {table_name}")

    dynamodb = boto3.resource("dynamodb", region_name=args.region)
    table = dynamodb.Table(table_name)

    settings = SystemSettings()
    put_item(table, settings)
    print(f"Saved settings for: {settings.company_name}")

    for data in DEFAULT_TEMPLATES:
        template = EmailTemplate(**data)
        template.variables = template.placeholders()
        put_item(table, template)
        print(f"Created template: {template.name}")

    now = datetime.now(timezone.utc)

    pending = Warranty(
        activation_code="DEMA2345",
        customer=Customer(
            first_name="John",
            last_name="Smith",
            email="john.smith@example.com",
            phone="0412 345 678",
            state="NSW",
            postcode="2000",
        ),
        vehicle=Vehicle(
            make="Toyota",
            model="LandCruiser",
            year=2023,
            vin="JTMHV05J404123456",
            registration_number="ABC123",
            registration_state="NSW",
        ),
        installation=InstallationDetails(
            installation_date=now - timedelta(days=2),
            generator_serial_numbers=["GEN-0001"],
            coupler_count=2,
        ),
        installer_id="demo-installer",
        installer_name="Demo Installer",
        installer_company="Demo Installations Pty Ltd",
    )
    put_item(table, pending)
    table.put_item(Item=WarrantyRepository.activation_guard(pending))
    print(f"Created pending warranty: {pending.activation_code}")

    # Activated eleven months ago so its inspection falls inside the reminder window
    activated_at = now - timedelta(days=335)
    activated = Warranty(
        activation_code="DEMB6789",
        customer=Customer(
            first_name="Sarah",
            last_name="Jones",
            email="sarah.jones@example.com",
            state="VIC",
            postcode="3000",
        ),
        vehicle=Vehicle(
            make="Ford",
            model="Ranger",
            year=2022,
            vin="MNAUMFF50NW123456",
            registration_number="XYZ789",
            registration_state="VIC",
        ),
        installation=InstallationDetails(installation_date=activated_at, coupler_count=2),
        installer_id="demo-installer",
        installer_name="Demo Installer",
    )
    schedule = on_activate(activated, activated_at, settings)
    activated.mark_activated(activated_at, schedule.expires_at, schedule.next_inspection_due)
    put_item(table, activated)
    table.put_item(Item=WarrantyRepository.activation_guard(activated))
    print(f"Created activated warranty: {activated.activation_code}")

    print("\nSeed data created successfully!")


def put_item(table, item):
    """Put an item into DynamoDB."""
    db_item = item.to_dynamodb()
    db_item.update(item.get_keys())
    if hasattr(item, "get_gsi1_keys"):
        db_item.update(item.get_gsi1_keys())
    table.put_item(Item=db_item)


if __name__ == "__main__":
    main()
