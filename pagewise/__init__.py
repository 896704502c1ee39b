from .conditions import Attr, Predicate
from .config import DEFAULT_PAGE_SIZE, PaginatorOptions, PaginatorStatus, SourceKind
from .controller import PaginationController, PaginatorState
from .exceptions import (
    InvalidPageSizeError,
    PagewiseError,
    RecordValidationError,
    RemoteFetchError,
    RemotePayloadError,
    RequestTimeoutError,
    SerializationError,
    StoreError,
    StoreValidationError,
    TableNotFoundError,
    ThrottlingError,
    UnsupportedSourceKindError,
)
from .pagination import FetchFailure, FetchSuccess, PageResult, PageWindow
from .sinks import CallbackSink, ResultSink
from .sources import DataSource, InMemorySequence, RemoteJson, RemoteSource, RemoteUrl
from .store import QueryableStore, StoreContext, StoreRecord

__all__ = [
    "PaginationController",
    "PaginatorState",
    "PaginatorOptions",
    "PaginatorStatus",
    "SourceKind",
    "DEFAULT_PAGE_SIZE",
    # Sinks
    "ResultSink",
    "CallbackSink",
    # Sources
    "DataSource",
    "InMemorySequence",
    "RemoteSource",
    "RemoteUrl",
    "RemoteJson",
    "QueryableStore",
    "StoreContext",
    "StoreRecord",
    # Predicate DSL
    "Attr",
    "Predicate",
    # Page types
    "PageWindow",
    "PageResult",
    "FetchSuccess",
    "FetchFailure",
    # Exceptions
    "PagewiseError",
    "UnsupportedSourceKindError",
    "InvalidPageSizeError",
    "StoreError",
    "TableNotFoundError",
    "ThrottlingError",
    "StoreValidationError",
    "RequestTimeoutError",
    "SerializationError",
    "RecordValidationError",
    "RemoteFetchError",
    "RemotePayloadError",
]
