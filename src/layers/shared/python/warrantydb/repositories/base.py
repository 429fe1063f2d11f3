"""Base repository class for DynamoDB operations."""

import os
from typing import Any, Generic, TypeVar

import boto3
import structlog
from botocore.exceptions import ClientError

from warrantydb.models.base import BaseModel
from warrantydb.utils.exceptions import ConflictError, NotFoundError

logger = structlog.get_logger()

T = TypeVar("T", bound=BaseModel)


def is_condition_failure(error: ClientError) -> bool:
    """Whether a ClientError is a failed condition (plain or transactional)."""
    code = error.response["Error"]["Code"]
    if code == "ConditionalCheckFailedException":
        return True
    if code == "TransactionCanceledException":
        reasons = error.response.get("CancellationReasons") or []
        if any(r.get("Code") == "ConditionalCheckFailed" for r in reasons):
            return True
        return "ConditionalCheckFailed" in error.response["Error"].get("Message", "")
    return False


class BaseRepository(Generic[T]):
    """Base repository for DynamoDB single-table design.

    Provides common CRUD operations with optimistic locking support.
    """

    def __init__(
        self,
        model_class: type[T],
        table_name: str | None = None,
    ):
        """Initialize repository.

        Args:
            model_class: The Pydantic model class for this repository.
            table_name: DynamoDB table name. Defaults to TABLE_NAME env var.
        """
        self.model_class = model_class
        self.table_name = table_name or os.environ.get("TABLE_NAME", "warrantydb-dev")
        self._dynamodb = None
        self._table = None

    @property
    def dynamodb(self):
        """Get DynamoDB resource (lazy initialization)."""
        if self._dynamodb is None:
            self._dynamodb = boto3.resource("dynamodb")
        return self._dynamodb

    @property
    def table(self):
        """Get DynamoDB table (lazy initialization)."""
        if self._table is None:
            self._table = self.dynamodb.Table(self.table_name)
        return self._table

    @property
    def client(self):
        """Client for transactions; accepts plain Python values like the table."""
        return self.dynamodb.meta.client

    def _build_key(self, pk: str, sk: str) -> dict[str, str]:
        return {"PK": pk, "SK": sk}

    def _to_item(self, item: T) -> dict[str, Any]:
        """Full DynamoDB item including primary and GSI keys."""
        db_item = item.to_dynamodb()
        db_item.update(item.get_keys())
        if hasattr(item, "get_gsi1_keys"):
            db_item.update(item.get_gsi1_keys())
        return db_item

    def get(self, pk: str, sk: str) -> T | None:
        """Get an item by its primary key.

        Args:
            pk: Partition key value.
            sk: Sort key value.

        Returns:
            Model instance or None if not found.
        """
        try:
            response = self.table.get_item(Key=self._build_key(pk, sk))
            item = response.get("Item")

            if not item:
                return None

            return self.model_class.from_dynamodb(item)

        except ClientError as e:
            logger.error("DynamoDB get_item failed", error=str(e), pk=pk, sk=sk)
            raise

    def get_or_raise(self, pk: str, sk: str, resource_type: str) -> T:
        """Get an item or raise NotFoundError.

        Raises:
            NotFoundError: If item not found.
        """
        item = self.get(pk, sk)
        if not item:
            resource_id = pk.split("#", 1)[-1] if "#" in pk else pk
            raise NotFoundError(resource_type, resource_id)
        return item

    def put(
        self,
        item: T,
        condition_expression: str | None = None,
        expression_names: dict | None = None,
        expression_values: dict | None = None,
    ) -> T:
        """Put an item into DynamoDB.

        Args:
            item: Model instance to save.
            condition_expression: Optional condition expression.
            expression_names: Attribute names used by the condition.
            expression_values: Attribute values used by the condition.

        Returns:
            The saved model instance.

        Raises:
            ConflictError: If the condition fails.
        """
        try:
            item.update_timestamp()
            db_item = self._to_item(item)

            kwargs: dict[str, Any] = {"Item": db_item}
            if condition_expression:
                kwargs["ConditionExpression"] = condition_expression
            if expression_names:
                kwargs["ExpressionAttributeNames"] = expression_names
            if expression_values:
                kwargs["ExpressionAttributeValues"] = expression_values

            self.table.put_item(**kwargs)

            logger.debug(
                "Item saved",
                pk=db_item["PK"],
                sk=db_item["SK"],
                model=self.model_class.__name__,
            )
            return item

        except ClientError as e:
            if is_condition_failure(e):
                raise ConflictError("Item already exists or version mismatch")
            logger.error("DynamoDB put_item failed", error=str(e))
            raise

    def create(self, item: T) -> T:
        """Create a new item (fails if exists).

        Raises:
            ConflictError: If item already exists.
        """
        return self.put(item, condition_expression="attribute_not_exists(PK)")

    def update(self, item: T, check_version: bool = True) -> T:
        """Update an existing item with optimistic locking.

        Args:
            item: Model instance to update.
            check_version: Whether to check version for optimistic locking.

        Returns:
            The updated model instance.

        Raises:
            ConflictError: If version mismatch (concurrent modification).
        """
        old_version = item.version
        item.increment_version()
        item.update_timestamp()

        try:
            db_item = self._to_item(item)

            kwargs: dict[str, Any] = {"Item": db_item}
            if check_version:
                kwargs["ConditionExpression"] = "version = :old_version"
                kwargs["ExpressionAttributeValues"] = {":old_version": old_version}

            self.table.put_item(**kwargs)

            logger.debug(
                "Item updated",
                pk=db_item["PK"],
                sk=db_item["SK"],
                version=item.version,
            )
            return item

        except ClientError as e:
            item.version = old_version
            if is_condition_failure(e):
                raise ConflictError("Item was modified by another process", conflict_type="version")
            logger.error("DynamoDB update failed", error=str(e))
            raise

    def query(
        self,
        pk: str,
        sk_begins_with: str | None = None,
        index_name: str | None = None,
        limit: int | None = None,
        scan_forward: bool = True,
        filter_expression: str | None = None,
        expression_values: dict | None = None,
        expression_names: dict | None = None,
        last_key: dict | None = None,
    ) -> tuple[list[T], dict | None]:
        """Query items by partition key.

        Args:
            pk: Partition key value.
            sk_begins_with: Sort key prefix for begins_with condition.
            index_name: Optional GSI name ("GSI1").
            limit: Maximum items to return.
            scan_forward: Sort direction (True = ascending).
            filter_expression: Optional filter expression.
            expression_values: Expression attribute values.
            expression_names: Expression attribute names.
            last_key: Last evaluated key for pagination.

        Returns:
            Tuple of (items, last_evaluated_key).
        """
        pk_attr, sk_attr = ("GSI1PK", "GSI1SK") if index_name == "GSI1" else ("PK", "SK")

        key_condition = f"{pk_attr} = :pk"
        expr_values: dict[str, Any] = {":pk": pk}
        if sk_begins_with:
            key_condition += f" AND begins_with({sk_attr}, :sk_prefix)"
            expr_values[":sk_prefix"] = sk_begins_with
        if expression_values:
            expr_values.update(expression_values)

        kwargs: dict[str, Any] = {
            "KeyConditionExpression": key_condition,
            "ExpressionAttributeValues": expr_values,
            "ScanIndexForward": scan_forward,
        }
        if index_name:
            kwargs["IndexName"] = index_name
        if limit:
            kwargs["Limit"] = limit
        if filter_expression:
            kwargs["FilterExpression"] = filter_expression
        if expression_names:
            kwargs["ExpressionAttributeNames"] = expression_names
        if last_key:
            kwargs["ExclusiveStartKey"] = last_key

        try:
            response = self.table.query(**kwargs)
        except ClientError as e:
            logger.error("DynamoDB query failed", error=str(e), pk=pk)
            raise

        items = [self.model_class.from_dynamodb(item) for item in response.get("Items", [])]
        return items, response.get("LastEvaluatedKey")

    def query_all(self, **kwargs: Any) -> list[T]:
        """Run ``query`` and follow pagination to the end."""
        items: list[T] = []
        last_key = None
        while True:
            page, last_key = self.query(last_key=last_key, **kwargs)
            items.extend(page)
            if not last_key:
                return items

    def scan_all(self, pk_prefix: str, sk: str) -> list[T]:
        """Scan every item whose PK starts with ``pk_prefix`` and whose SK equals ``sk``.

        Scheduling passes read the whole collection once per run.
        """
        kwargs: dict[str, Any] = {
            "FilterExpression": "begins_with(PK, :pk_prefix) AND SK = :sk",
            "ExpressionAttributeValues": {":pk_prefix": pk_prefix, ":sk": sk},
        }
        items: list[T] = []
        try:
            while True:
                response = self.table.scan(**kwargs)
                items.extend(self.model_class.from_dynamodb(i) for i in response.get("Items", []))
                last_key = response.get("LastEvaluatedKey")
                if not last_key:
                    return items
                kwargs["ExclusiveStartKey"] = last_key
        except ClientError as e:
            logger.error("DynamoDB scan failed", error=str(e), pk_prefix=pk_prefix)
            raise
