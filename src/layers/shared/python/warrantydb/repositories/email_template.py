"""Email template repository for DynamoDB operations."""

import structlog

from warrantydb.models.email_template import DEFAULT_TEMPLATES, EmailTemplate
from warrantydb.repositories.base import BaseRepository

logger = structlog.get_logger()


class EmailTemplateRepository(BaseRepository[EmailTemplate]):
    """Repository for EmailTemplate records."""

    def __init__(self, table_name: str | None = None):
        """Initialize template repository."""
        super().__init__(EmailTemplate, table_name)

    def get_by_id(self, template_id: str) -> EmailTemplate | None:
        return self.get(pk="TEMPLATES", sk=f"TEMPLATE#{template_id}")

    def list_all(self) -> list[EmailTemplate]:
        return self.query_all(pk="TEMPLATES", sk_begins_with="TEMPLATE#")

    def list_active(self) -> list[EmailTemplate]:
        """Templates visible to the scheduler."""
        return [t for t in self.list_all() if t.is_active]

    def create_template(self, template: EmailTemplate) -> EmailTemplate:
        if not template.variables:
            template.variables = template.placeholders()
        return self.create(template)

    def update_template(self, template: EmailTemplate) -> EmailTemplate:
        return self.update(template)

    def seed_defaults(self) -> list[EmailTemplate]:
        """Create the stock templates when the table has none.

        Returns:
            The templates created, empty if templates already existed.
        """
        if self.list_all():
            return []

        created = [self.create_template(EmailTemplate(**data)) for data in DEFAULT_TEMPLATES]
        logger.info("Default email templates seeded", count=len(created))
        return created
