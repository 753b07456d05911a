"""Shared schema building blocks."""

import json
from datetime import UTC, datetime
from decimal import Decimal
from typing import Annotated, Any, ClassVar, Generic, TypeVar

from pydantic import AfterValidator, BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel

DataT = TypeVar("DataT")


def utcnow() -> datetime:
    """Current UTC time, the timestamp used for every stored date."""
    return datetime.now(UTC)


def _assume_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value


# Client supplied dates without an offset are taken as UTC
UtcDatetime = Annotated[datetime, AfterValidator(_assume_utc)]


def to_attribute(value: Any) -> Any:
    """Re-encode a JSON-safe value for boto3, which only accepts Decimal numbers."""
    return json.loads(json.dumps(value), parse_float=Decimal)


def from_attribute(value: Any) -> Any:
    """Turn the Decimals boto3 returns back into ints and floats."""
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {key: from_attribute(item) for key, item in value.items()}
    if isinstance(value, list):
        return [from_attribute(item) for item in value]
    return value


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys in JSON and DynamoDB."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_item(self) -> dict[str, Any]:
        """Attribute map for storage. Unset optional fields are omitted."""
        return to_attribute(self.model_dump(mode="json", by_alias=True, exclude_none=True))


class PatchModel(CamelModel):
    """
    Explicit set of mutable fields for an entity.

    Identity and tenant fields are never declared on a patch, and unknown
    keys are rejected.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    # Fields a client may omit but never null out
    non_nullable: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="after")
    def reject_nulls(self) -> "PatchModel":
        """Reject explicit nulls for required attributes."""
        for name in sorted(self.non_nullable & self.model_fields_set):
            if getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} cannot be null")
        return self

    def changes(self) -> dict[str, Any]:
        """
        Stored attribute name to new value, for fields explicitly set.

        A value of ``None`` means the attribute is removed.
        """
        changes: dict[str, Any] = {}
        for name in sorted(self.model_fields_set):
            value = getattr(self, name)
            attribute = type(self).model_fields[name].alias or name
            if isinstance(value, BaseModel):
                changes[attribute] = to_attribute(
                    value.model_dump(mode="json", by_alias=True, exclude_none=True)
                )
            else:
                changes[attribute] = to_attribute(self.model_dump(mode="json", include={name})[name])
        return changes


class ApiResponse(BaseModel, Generic[DataT]):
    """Success envelope."""

    success: bool = True
    data: DataT


class PaginatedResponse(BaseModel, Generic[DataT]):
    """Success envelope for list endpoints."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = True
    data: list[DataT]
    next_cursor: str | None = None
