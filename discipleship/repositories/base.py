"""Shared DynamoDB access for the entity repositories."""

import base64
import binascii
import json
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar
from uuid import uuid4

import structlog
from botocore.exceptions import ClientError
from fastapi.concurrency import run_in_threadpool

from discipleship.core.exceptions import ValidationException
from discipleship.schemas.common import PatchModel, utcnow

logger = structlog.get_logger()

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


@dataclass
class Page(Generic[T]):
    """One page of a list query."""

    items: list[T] = field(default_factory=list)
    next_cursor: str | None = None


def encode_cursor(last_evaluated_key: dict[str, Any] | None) -> str | None:
    """Opaque cursor for a DynamoDB continuation key."""
    if not last_evaluated_key:
        return None
    raw = json.dumps(last_evaluated_key, sort_keys=True, default=str)
    return base64.urlsafe_b64encode(raw.encode()).decode()


def decode_cursor(cursor: str | None) -> dict[str, Any] | None:
    """
    Decode a cursor produced by :func:`encode_cursor`.

    Raises:
        ValidationException: If the cursor is not one we issued
    """
    if not cursor:
        return None
    try:
        key = json.loads(base64.urlsafe_b64decode(cursor.encode()))
    except (binascii.Error, UnicodeDecodeError, ValueError) as e:
        raise ValidationException("Invalid pagination cursor") from e
    if not isinstance(key, dict) or not all(isinstance(v, str) for v in key.values()):
        raise ValidationException("Invalid pagination cursor")
    return key


def new_id() -> str:
    return uuid4().hex


def _error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "")


class BaseRepository:
    """
    Thin async wrapper over a boto3 ``Table``.

    Every boto3 call blocks, so each one is pushed to the threadpool.
    """

    def __init__(self, table: Any):
        """Initialize repository with the application table."""
        self.table = table

    async def _run(self, func: Callable[..., Any], **kwargs: Any) -> Any:
        return await run_in_threadpool(func, **kwargs)

    async def _get(self, key: dict[str, str]) -> dict[str, Any] | None:
        response = await self._run(self.table.get_item, Key=key)
        return response.get("Item")

    async def _put_new(self, item: dict[str, Any]) -> None:
        """Insert an item that must not already exist."""
        await self._run(
            self.table.put_item,
            Item=item,
            ConditionExpression="attribute_not_exists(PK)",
        )

    async def _put_with_lock(self, item: dict[str, Any], lock: dict[str, Any]) -> bool:
        """
        Insert an item together with a uniqueness lock row.

        Returns:
            False if the lock row already exists
        """
        client = self.table.meta.client
        try:
            await self._run(
                client.transact_write_items,
                TransactItems=[
                    {
                        "Put": {
                            "TableName": self.table.name,
                            "Item": item,
                            "ConditionExpression": "attribute_not_exists(PK)",
                        }
                    },
                    {
                        "Put": {
                            "TableName": self.table.name,
                            "Item": lock,
                            "ConditionExpression": "attribute_not_exists(PK)",
                        }
                    },
                ],
            )
        except ClientError as e:
            if _error_code(e) == "TransactionCanceledException":
                logger.info("unique_write_rejected", lock=lock["PK"])
                return False
            raise
        return True

    async def _query_page(
        self,
        limit: int,
        cursor: str | None,
        **query: Any,
    ) -> tuple[list[dict[str, Any]], str | None]:
        """Run one page of a query and return its items and continuation cursor."""
        start_key = decode_cursor(cursor)
        if start_key:
            query["ExclusiveStartKey"] = start_key
        response = await self._run(
            self.table.query,
            Limit=max(1, min(limit, MAX_PAGE_SIZE)),
            **query,
        )
        return response.get("Items", []), encode_cursor(response.get("LastEvaluatedKey"))

    async def _query_all(self, **query: Any) -> list[dict[str, Any]]:
        """Follow a query across every page."""
        items: list[dict[str, Any]] = []
        while True:
            response = await self._run(self.table.query, **query)
            items.extend(response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return items
            query["ExclusiveStartKey"] = last_key

    async def _scan_all(self, **scan: Any) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        while True:
            response = await self._run(self.table.scan, **scan)
            items.extend(response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return items
            scan["ExclusiveStartKey"] = last_key

    async def _update(self, key: dict[str, str], patch: PatchModel) -> dict[str, Any] | None:
        """
        Apply a patch to an existing item.

        Fields set to ``None`` are removed; ``updatedAt`` is always stamped.

        Returns:
            The updated item, or None if the item does not exist
        """
        changes = patch.changes()
        changes["updatedAt"] = utcnow().isoformat()

        names: dict[str, str] = {}
        values: dict[str, Any] = {}
        set_clauses: list[str] = []
        remove_clauses: list[str] = []
        for index, (attribute, value) in enumerate(sorted(changes.items())):
            name = f"#f{index}"
            names[name] = attribute
            if value is None:
                remove_clauses.append(name)
            else:
                values[f":v{index}"] = value
                set_clauses.append(f"{name} = :v{index}")

        expression = "SET " + ", ".join(set_clauses)
        if remove_clauses:
            expression += " REMOVE " + ", ".join(remove_clauses)

        try:
            response = await self._run(
                self.table.update_item,
                Key=key,
                UpdateExpression=expression,
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
                ConditionExpression="attribute_exists(PK)",
                ReturnValues="ALL_NEW",
            )
        except ClientError as e:
            if _error_code(e) == "ConditionalCheckFailedException":
                return None
            raise
        return response.get("Attributes")

    @staticmethod
    def _timestamps() -> dict[str, str]:
        now = utcnow().isoformat()
        return {"createdAt": now, "updatedAt": now}
