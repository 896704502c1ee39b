"""
Store-backed data source for pagewise.

Records live in a DynamoDB table and are described by StoreRecord models:

    class Book(StoreRecord):
        class Meta:
            table_name = "books"

        isbn: str
        title: str
        year: int

    source = QueryableStore(Book, StoreContext(), predicate=Book.year >= 2000)

DynamoDB has no offset-based reads, so every fetch scans all matching
records and slices the requested window locally. The reported slice and
total are the same as paging through a fully materialised result set.
"""

from typing import Any, ClassVar, TypeVar

import boto3
from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

# Inherit from Pydantic's internal metaclass to coexist with BaseModel
from pydantic._internal._model_construction import ModelMetaclass

from ._logging import logger
from .conditions import Attr, PredicateLike, compile_predicate, wrap_predicate
from .config import RecordOptions, SourceKind
from .exceptions import RecordValidationError, handle_store_errors
from .pagination import PageResult, PageWindow
from .serializer import StoreSerializer
from .sources import DataSource

T = TypeVar("T", bound="StoreRecord")


class RecordMeta(ModelMetaclass):
    """
    Reads the inner ``class Meta`` of a StoreRecord subclass into ``_meta``
    and exposes each field as an Attr builder through class attribute access.
    """

    def __new__(
        cls, name: str, bases: tuple[type, ...], namespace: dict[str, Any], **kwargs: Any
    ) -> Any:
        new_cls = super().__new__(cls, name, bases, namespace, **kwargs)

        if name == "StoreRecord" and namespace.get("__module__") == __name__:
            return new_cls

        meta_cls = namespace.get("Meta")
        if meta_cls is None:
            # Plain subclass of a configured record: share the table
            for base in bases:
                base_meta = getattr(base, "_meta", None)
                if isinstance(base_meta, RecordOptions):
                    new_cls._meta = RecordOptions(  # type: ignore[attr-defined]
                        table_name=base_meta.table_name,
                        index_name=base_meta.index_name,
                        region=base_meta.region,
                    )
                    break
            else:
                raise ValueError(f"Record {name} is missing a 'class Meta' with 'table_name'.")
        else:
            if not hasattr(meta_cls, "table_name"):
                raise ValueError(f"Record {name} is missing a 'table_name' in class Meta.")
            new_cls._meta = RecordOptions(  # type: ignore[attr-defined]
                table_name=meta_cls.table_name,
                index_name=getattr(meta_cls, "index_name", None),
                region=getattr(meta_cls, "region", None),
            )

        return new_cls

    def __getattr__(cls, item: str) -> Any:
        """
        Resolves ``Book.year`` to an Attr builder, enabling ``Book.year >= 2000``.

        Pydantic removes field attributes from the class, so this only runs for
        field names. Builders are not stored on the class: a stored value would
        be picked up as the field default by subclasses.
        """
        fields = cls.__dict__.get("__pydantic_fields__") or cls.__dict__.get("model_fields")
        if isinstance(fields, dict) and item in fields:
            return Attr(fields[item].alias or item)
        return super().__getattr__(item)


class StoreRecord(BaseModel, metaclass=RecordMeta):
    """Base class for records a QueryableStore can page through."""

    _meta: ClassVar[RecordOptions]

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class StoreContext:
    """
    Connection to the record store.

    Holds the boto3 DynamoDB client (created lazily unless injected) and the
    record base type entities must derive from.
    """

    def __init__(
        self,
        client: Any | None = None,
        region: str | None = None,
        endpoint_url: str | None = None,
        record_base: type = StoreRecord,
    ) -> None:
        self.region = region
        self.endpoint_url = endpoint_url
        self.record_base = record_base
        self.serializer = StoreSerializer()
        self._client = client

    def get_client(self) -> Any:
        if self._client is None:
            kwargs: dict[str, Any] = {}
            if self.region:
                kwargs["region_name"] = self.region
            if self.endpoint_url:
                kwargs["endpoint_url"] = self.endpoint_url
            self._client = boto3.client("dynamodb", **kwargs)
        return self._client

    def set_client(self, client: Any) -> None:
        """Swaps the store client. Useful for testing."""
        self._client = client


class QueryableStore(DataSource):
    """
    An entity type plus an optional filter predicate against a StoreContext.

    Args:
        entity: StoreRecord subclass describing the table and its items
        context: Store connection
        predicate: Optional filter applied as a Scan FilterExpression
        order_by: Optional field name to sort the matching records by
        descending: Reverse the ``order_by`` sort
    """

    kind = SourceKind.QUERYABLE_STORE

    def __init__(
        self,
        entity: type[Any],
        context: StoreContext,
        predicate: PredicateLike | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> None:
        self.entity = entity
        self.context = context
        self.predicate = wrap_predicate(predicate) if predicate is not None else None
        self.order_by = order_by
        self.descending = descending

    def is_compatible(self) -> bool:
        """True when the entity is a configured subclass of the store's record base."""
        return (
            isinstance(self.entity, type)
            and issubclass(self.entity, self.context.record_base)
            and isinstance(getattr(self.entity, "_meta", None), RecordOptions)
        )

    def fetch(self, window: PageWindow) -> PageResult[Any]:
        if not self.is_compatible():
            logger.warning(
                "Entity is not a store record, reporting an empty page",
                extra={
                    "entity": getattr(self.entity, "__name__", repr(self.entity)),
                    "record_base": self.context.record_base.__name__,
                },
            )
            return PageResult.empty()

        records = self.fetch_all()
        if not records:
            return PageResult.empty()
        return PageResult(items=window.apply(records), total=len(records))

    def fetch_all(self) -> list[Any]:
        """
        Scans every record matching the predicate.
        WARNING: Reads the whole matching set on every call.
        """
        options: RecordOptions = self.entity._meta
        serializer = self.context.serializer

        kwargs: dict[str, Any] = {"TableName": options.table_name}
        if options.index_name:
            kwargs["IndexName"] = options.index_name
        if self.predicate is not None:
            kwargs.update(compile_predicate(self.predicate, serializer))

        logger.info(
            "Scanning store",
            extra={
                "table": options.table_name,
                "index": options.index_name,
                "has_filter": self.predicate is not None,
            },
        )

        records: list[Any] = []
        with handle_store_errors(table_name=options.table_name):
            paginator = self.context.get_client().get_paginator("scan")
            for page in paginator.paginate(**kwargs):
                for item in page["Items"]:
                    records.append(self._deserialize(serializer.from_store(item)))

        if self.order_by is not None:
            records.sort(key=lambda r: getattr(r, self.order_by), reverse=self.descending)

        logger.debug("Scan complete", extra={"table": options.table_name, "total": len(records)})
        return records

    def _deserialize(self, raw_data: dict[str, Any]) -> Any:
        try:
            return self.entity.model_validate(raw_data)
        except PydanticValidationError as e:
            raise RecordValidationError(
                f"Stored item does not match {self.entity.__name__}: "
                f"{e.error_count()} error(s)",
                original_error=e,
            ) from e
