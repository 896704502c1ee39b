from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, cast
from uuid import UUID

from boto3.dynamodb.types import TypeDeserializer, TypeSerializer

from .exceptions import SerializationError


class StoreSerializer:
    """
    Converts between plain Python values and the low-level DynamoDB format.

    The store only ever hands back whole items (read path) and only ever
    needs single values for predicate placeholders (write path), so those
    are the two directions exposed here.
    """

    def __init__(self) -> None:
        self._serializer = TypeSerializer()
        self._deserializer = TypeDeserializer()

    def to_store_value(self, value: Any) -> dict[str, Any]:
        """
        Serializes a single value to DynamoDB format.
        Used for predicate placeholders: 4.5 -> {'N': '4.5'}
        """
        clean_value = self._prepare(value)
        try:
            return cast(dict[str, Any], self._serializer.serialize(clean_value))
        except TypeError as e:
            raise SerializationError(
                f"Cannot encode {value!r} for the store: {e!s}", original_error=e
            ) from e

    def from_store(self, item: dict[str, Any]) -> dict[str, Any]:
        """Converts a DynamoDB item back to a plain Python dict."""
        python_data = {k: self._deserializer.deserialize(v) for k, v in item.items()}
        result = self._restore(python_data)
        assert isinstance(result, dict)
        return result

    def _prepare(self, value: Any) -> Any:
        """
        Recursively prepares Python values for boto3's TypeSerializer.

        float -> Decimal, datetime/date -> ISO 8601, UUID -> str, Enum -> value.
        """
        if isinstance(value, float):
            # Go through str to avoid binary float artifacts in the Decimal
            return Decimal(str(value))
        if isinstance(value, datetime):
            utc_offset = value.utcoffset()
            if utc_offset is not None and utc_offset.total_seconds() == 0:
                # Match pydantic's 'Z' suffix for UTC
                return value.replace(tzinfo=None).isoformat() + "Z"
            return value.isoformat()
        if isinstance(value, date):
            return value.isoformat()
        if isinstance(value, UUID):
            return str(value)
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, (set, frozenset)):
            return {self._prepare(v) for v in value}
        if isinstance(value, (list, tuple)):
            return [self._prepare(v) for v in value]
        if isinstance(value, dict):
            return {k: self._prepare(v) for k, v in value.items()}
        return value

    def _restore(self, value: Any) -> Any:
        """Decimal -> int for whole numbers, float otherwise."""
        if isinstance(value, Decimal):
            if value % 1 == 0:
                return int(value)
            return float(value)
        if isinstance(value, list):
            return [self._restore(v) for v in value]
        if isinstance(value, dict):
            return {k: self._restore(v) for k, v in value.items()}
        return value
