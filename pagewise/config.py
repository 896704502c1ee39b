from dataclasses import dataclass
from enum import Enum

from .exceptions import InvalidPageSizeError

DEFAULT_PAGE_SIZE = 10


class SourceKind(Enum):
    """Tag identifying how and where a data source fetches records."""

    IN_MEMORY = "in_memory"
    QUERYABLE_STORE = "queryable_store"
    REMOTE_URL = "remote_url"
    REMOTE_JSON = "remote_json"


class PaginatorStatus(Enum):
    NONE = "none"
    IN_PROGRESS = "in_progress"
    DONE = "done"


@dataclass(frozen=True)
class PaginatorOptions:
    """
    Validated construction options for a PaginationController.

    Raises:
        InvalidPageSizeError: If page_size is not a positive integer
    """

    page_size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self) -> None:
        # bool is an int subclass; True would silently mean a page size of 1
        if isinstance(self.page_size, bool) or not isinstance(self.page_size, int):
            raise InvalidPageSizeError(self.page_size)
        if self.page_size <= 0:
            raise InvalidPageSizeError(self.page_size)


@dataclass
class RecordOptions:
    """
    Internal container for StoreRecord metadata.
    Populated by the metaclass from the model's inner ``class Meta``.
    """

    table_name: str
    index_name: str | None = None
    region: str | None = None
