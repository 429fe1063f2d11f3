"""Warranty repository for DynamoDB operations.

Activation codes are kept unique by a guard item written in the same
transaction as the warranty:

    PK: ACTIVATION#{activation_code}
    SK: CODE
"""

import structlog
from botocore.exceptions import ClientError

from warrantydb.models.warranty import Warranty, normalize_activation_code
from warrantydb.repositories.base import BaseRepository, is_condition_failure
from warrantydb.utils.exceptions import ConflictError

logger = structlog.get_logger()


class WarrantyRepository(BaseRepository[Warranty]):
    """Repository for Warranty aggregates, inspections included."""

    def __init__(self, table_name: str | None = None):
        """Initialize warranty repository."""
        super().__init__(Warranty, table_name)

    @staticmethod
    def activation_guard(warranty: Warranty) -> dict[str, str]:
        """Item reserving the warranty's activation code."""
        return {
            "PK": f"ACTIVATION#{normalize_activation_code(warranty.activation_code)}",
            "SK": "CODE",
            "warranty_id": warranty.id,
        }

    def get_by_id(self, warranty_id: str) -> Warranty | None:
        return self.get(pk=f"WARRANTY#{warranty_id}", sk="META")

    def get_by_id_or_raise(self, warranty_id: str) -> Warranty:
        """Get a warranty or raise NotFoundError."""
        return self.get_or_raise(f"WARRANTY#{warranty_id}", "META", "Warranty")

    def get_by_activation_code(self, code: str) -> Warranty | None:
        """Look up a warranty by activation code, case-insensitively.

        Args:
            code: Activation code as typed by the customer.

        Returns:
            Warranty or None if no warranty carries the code.
        """
        items, _ = self.query(
            pk=f"ACTIVATION#{normalize_activation_code(code)}",
            index_name="GSI1",
            limit=1,
        )
        return items[0] if items else None

    def list_all(self) -> list[Warranty]:
        """All warranties, for scheduling passes and reporting."""
        return self.scan_all(pk_prefix="WARRANTY#", sk="META")

    def create_warranty(self, warranty: Warranty) -> Warranty:
        """Create a new warranty and reserve its activation code.

        Raises:
            ConflictError: If the activation code (or warranty ID) is taken.
        """
        warranty.update_timestamp()
        try:
            self.client.transact_write_items(
                TransactItems=[
                    {
                        "Put": {
                            "TableName": self.table_name,
                            "Item": self.activation_guard(warranty),
                            "ConditionExpression": "attribute_not_exists(PK)",
                        }
                    },
                    {
                        "Put": {
                            "TableName": self.table_name,
                            "Item": self._to_item(warranty),
                            "ConditionExpression": "attribute_not_exists(PK)",
                        }
                    },
                ]
            )
        except ClientError as e:
            if is_condition_failure(e):
                raise ConflictError("Activation code already in use", conflict_type="activation_code")
            logger.error("DynamoDB warranty transaction failed", error=str(e))
            raise

        logger.debug("Warranty created", warranty_id=warranty.id)
        return warranty

    def update_warranty(self, warranty: Warranty) -> Warranty:
        """Save a warranty with optimistic locking.

        Raises:
            ConflictError: If another writer changed the warranty first.
        """
        return self.update(warranty)
