"""
Data sources a PaginationController can page through.

Every source answers one question: given a PageWindow, which records fall
inside it and how many records exist in total. Sources signal failure by
raising a PagewiseError; the controller turns that into a failure callback.

The store-backed variant lives in ``pagewise.store``.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any, ClassVar

import httpx
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ._logging import logger, redact_url
from .config import SourceKind
from .exceptions import RecordValidationError, RemotePayloadError, handle_remote_errors
from .pagination import PageResult, PageWindow

DEFAULT_TIMEOUT = 10.0


class DataSource(ABC):
    """
    Capability contract shared by every source kind.

    Subclasses set ``kind`` and implement fetch().
    """

    kind: ClassVar[SourceKind]

    @abstractmethod
    def fetch(self, window: PageWindow) -> PageResult[Any]:
        """Returns the records inside ``window`` plus the source's total count."""


class InMemorySequence(DataSource):
    """
    A pre-loaded ordered sequence.

    The sequence is held by reference, so appending to it between fetches
    is reflected in the next reported total.
    """

    kind = SourceKind.IN_MEMORY

    def __init__(self, items: Sequence[Any]) -> None:
        self.items = items

    def fetch(self, window: PageWindow) -> PageResult[Any]:
        if len(self.items) == 0:
            return PageResult.empty()
        return PageResult(items=window.apply(self.items), total=len(self.items))

    def __repr__(self) -> str:
        return f"InMemorySequence(<{len(self.items)} items>)"


class RemoteSource(DataSource):
    """
    Shared plumbing for HTTP sources: client lifecycle, request logging,
    error translation, JSON decoding and optional item validation.
    """

    def __init__(
        self,
        url: str,
        *,
        client: httpx.Client | None = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        item_model: Any | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.url = url
        self.params = dict(params or {})
        self.headers = dict(headers or {})
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None
        self._adapter: TypeAdapter[Any] | None = (
            TypeAdapter(list[item_model]) if item_model is not None else None
        )

    def _get_client(self) -> httpx.Client:
        """Returns the injected client, creating a private one on first use."""
        if self._client is None:
            self._client = httpx.Client(timeout=self.timeout, headers=self.headers)
        return self._client

    def close(self) -> None:
        """Closes the HTTP client if this source created it."""
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    def _get_json(self, params: dict[str, Any]) -> Any:
        query = {**self.params, **params}
        logger.debug(
            "Requesting remote page",
            extra={"url": redact_url(self.url), "source_kind": self.kind.value, "params": params},
        )
        with handle_remote_errors(self.url):
            response = self._get_client().get(self.url, params=query)
            response.raise_for_status()

        try:
            return response.json()
        except ValueError as e:
            raise RemotePayloadError(
                f"Response from {redact_url(self.url)} is not valid JSON", original_error=e
            ) from e

    def _validate_items(self, items: Any) -> list[Any]:
        if not isinstance(items, list):
            raise RemotePayloadError(
                f"Expected a JSON array of items, got {type(items).__name__}"
            )
        if self._adapter is None:
            return items
        try:
            return list(self._adapter.validate_python(items))
        except PydanticValidationError as e:
            raise RecordValidationError(
                f"Remote items failed validation: {e.error_count()} error(s)",
                domain="remote",
                original_error=e,
            ) from e


class RemoteUrl(RemoteSource):
    """
    A server-paged endpoint.

    Issues ``GET url?offset=<offset>&limit=<length>`` and expects a JSON
    object of the form ``{"items": [...], "total": <int>}``. The query
    parameter names and envelope keys are configurable.
    """

    kind = SourceKind.REMOTE_URL

    def __init__(
        self,
        url: str,
        *,
        offset_param: str = "offset",
        limit_param: str = "limit",
        items_key: str = "items",
        total_key: str = "total",
        **kwargs: Any,
    ) -> None:
        super().__init__(url, **kwargs)
        self.offset_param = offset_param
        self.limit_param = limit_param
        self.items_key = items_key
        self.total_key = total_key

    def fetch(self, window: PageWindow) -> PageResult[Any]:
        body = self._get_json({self.offset_param: window.offset, self.limit_param: window.length})

        if not isinstance(body, dict):
            raise RemotePayloadError(
                f"Expected a JSON object envelope, got {type(body).__name__}"
            )
        if self.items_key not in body or self.total_key not in body:
            raise RemotePayloadError(
                f"Envelope is missing '{self.items_key}' or '{self.total_key}'"
            )

        total = body[self.total_key]
        if isinstance(total, bool) or not isinstance(total, int) or total < 0:
            raise RemotePayloadError(f"'{self.total_key}' must be a non-negative integer")

        return PageResult(items=self._validate_items(body[self.items_key]), total=total)


class RemoteJson(RemoteSource):
    """
    A remote JSON document holding the whole record array.

    The document is downloaded on every fetch and sliced locally. Pass
    ``items_key`` when the array is nested inside an object.
    """

    kind = SourceKind.REMOTE_JSON

    def __init__(self, url: str, *, items_key: str | None = None, **kwargs: Any) -> None:
        super().__init__(url, **kwargs)
        self.items_key = items_key

    def fetch(self, window: PageWindow) -> PageResult[Any]:
        body = self._get_json({})

        if self.items_key is not None:
            if not isinstance(body, dict) or self.items_key not in body:
                raise RemotePayloadError(f"Document has no '{self.items_key}' array")
            body = body[self.items_key]

        records = self._validate_items(body)
        if not records:
            return PageResult.empty()
        return PageResult(items=window.apply(records), total=len(records))
