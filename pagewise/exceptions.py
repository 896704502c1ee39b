from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

import httpx
from botocore.exceptions import ClientError

WRONG_PAGINATION_TYPE = "Wrong pagination type"


class PagewiseError(Exception):
    """Base exception for all pagewise errors.

    Carries a human-readable message plus a ``code`` and ``domain`` tag so
    failure callbacks can branch without parsing the message.
    """

    def __init__(
        self,
        message: str,
        code: str = "unknown",
        domain: str = "pagewise",
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.domain = domain
        self.original_error = original_error


class UnsupportedSourceKindError(PagewiseError):
    """Raised when a controller is bound to something it cannot page through."""

    def __init__(self, source: Any = None) -> None:
        super().__init__(WRONG_PAGINATION_TYPE)
        self.source = source


class InvalidPageSizeError(PagewiseError, ValueError):
    """Raised at construction time for a non-positive page size."""

    def __init__(self, page_size: Any) -> None:
        super().__init__(
            f"page_size must be a positive integer, got {page_size!r}", code="invalid_page_size"
        )
        self.page_size = page_size


class StoreError(PagewiseError):
    """Raised when the record store rejects or fails a fetch."""

    def __init__(
        self, message: str, code: str = "unknown", original_error: Exception | None = None
    ) -> None:
        super().__init__(message, code=code, domain="store", original_error=original_error)


class TableNotFoundError(StoreError):
    """Raised when the backing table does not exist."""

    def __init__(self, table_name: str, original_error: Exception | None = None) -> None:
        super().__init__(
            f"Table '{table_name}' not found",
            code="ResourceNotFoundException",
            original_error=original_error,
        )
        self.table_name = table_name


class ThrottlingError(StoreError):
    """Raised when the store throttles requests."""

    def __init__(
        self,
        message: str = "Request rate exceeded",
        code: str = "ThrottlingException",
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, code=code, original_error=original_error)


class StoreValidationError(StoreError):
    """Raised when the store rejects the request as malformed."""

    def __init__(
        self,
        message: str,
        code: str = "ValidationException",
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, code=code, original_error=original_error)


class RequestTimeoutError(StoreError):
    """Raised when a store request times out."""

    def __init__(
        self, message: str = "Request timed out", original_error: Exception | None = None
    ) -> None:
        super().__init__(message, code="RequestTimeout", original_error=original_error)


class SerializationError(PagewiseError):
    """Raised when a predicate value cannot be encoded for the store."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(
            message, code="serialization", domain="store", original_error=original_error
        )


class RecordValidationError(PagewiseError):
    """Raised when a fetched record does not validate against its model."""

    def __init__(
        self, message: str, domain: str = "store", original_error: Exception | None = None
    ) -> None:
        super().__init__(
            message, code="record_validation", domain=domain, original_error=original_error
        )


class RemoteFetchError(PagewiseError):
    """Raised when a remote source cannot be reached or answers with an error status."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        original_error: Exception | None = None,
    ) -> None:
        code = f"http_{status_code}" if status_code is not None else "transport"
        super().__init__(message, code=code, domain="remote", original_error=original_error)
        self.status_code = status_code


class RemotePayloadError(PagewiseError):
    """Raised when a remote response body is not the expected JSON shape."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(
            message, code="bad_payload", domain="remote", original_error=original_error
        )


@contextmanager
def handle_store_errors(table_name: str | None = None) -> Generator[None, None, None]:
    """
    Context manager that catches botocore.exceptions.ClientError
    and raises the appropriate StoreError subclass.

    Usage:
        with handle_store_errors(table_name="books"):
            client.scan(...)
    """
    try:
        yield
    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code", "Unknown")
        error_message = e.response.get("Error", {}).get("Message", str(e))

        if error_code == "ResourceNotFoundException":
            raise TableNotFoundError(table_name=table_name or "unknown", original_error=e) from e

        if error_code in (
            "ProvisionedThroughputExceededException",
            "ThrottlingException",
            "RequestLimitExceeded",
        ):
            raise ThrottlingError(message=error_message, code=error_code, original_error=e) from e

        if error_code in ("ValidationException", "SerializationException"):
            raise StoreValidationError(
                message=error_message, code=error_code, original_error=e
            ) from e

        if error_code in ("RequestTimeout", "RequestTimeoutException"):
            raise RequestTimeoutError(message=error_message, original_error=e) from e

        raise StoreError(
            message=f"Store error ({error_code}): {error_message}",
            code=error_code,
            original_error=e,
        ) from e


@contextmanager
def handle_remote_errors(url: str | None = None) -> Generator[None, None, None]:
    """
    Context manager that translates httpx errors into RemoteFetchError.

    Usage:
        with handle_remote_errors(url):
            response = client.get(url)
            response.raise_for_status()
    """
    try:
        yield
    except httpx.HTTPStatusError as e:
        status_code = e.response.status_code
        raise RemoteFetchError(
            f"Remote source answered {status_code} for {url or e.request.url}",
            status_code=status_code,
            original_error=e,
        ) from e
    except httpx.HTTPError as e:
        raise RemoteFetchError(
            f"Remote source unreachable: {e!s}", original_error=e
        ) from e
