"""
The pagination controller.

A PaginationController walks a data source one page at a time:

    None --load()/fetch_next_page()--> InProgress --completion/failure--> Done
      ^                                                                   |
      +------------------------------ reset() ----------------------------+

Done is quiescent: fetch_next_page() moves back to InProgress until the last
page has been fetched. Results accumulate across pages and every success
callback receives the whole collection so far.

Fetching is synchronous unless an Executor is supplied, in which case each
fetch runs on the executor and completes on the worker thread. In both modes
at most one fetch is outstanding per controller.
"""

import threading
from collections.abc import Sequence
from concurrent.futures import Executor, Future
from concurrent.futures import wait as wait_futures
from dataclasses import dataclass
from typing import Any

from ._logging import logger
from .conditions import PredicateLike
from .config import DEFAULT_PAGE_SIZE, PaginatorOptions, PaginatorStatus, SourceKind
from .exceptions import PagewiseError, UnsupportedSourceKindError
from .pagination import FetchFailure, FetchOutcome, FetchSuccess, PageWindow, page_count
from .sinks import ResultSink
from .sources import DataSource, InMemorySequence, RemoteJson, RemoteUrl
from .store import QueryableStore, StoreContext


@dataclass(frozen=True)
class PaginatorState:
    """Point-in-time snapshot of a controller's counters."""

    status: PaginatorStatus
    page_size: int
    current_page: int
    total_count: int
    total_page_count: int
    result_count: int


class PaginationController:
    """
    Drives the fetch, accumulate and notify cycle over one DataSource.

    Args:
        source: The data source to page through
        sink: Receives accumulated results, failures and reset notifications
        page_size: Records per page, must be a positive int
        executor: Optional executor to run fetches on

    Raises:
        InvalidPageSizeError: If page_size is not a positive int
    """

    def __init__(
        self,
        source: DataSource,
        sink: ResultSink,
        page_size: int = DEFAULT_PAGE_SIZE,
        executor: Executor | None = None,
    ) -> None:
        self._options = PaginatorOptions(page_size=page_size)
        self.source = source
        self.sink = sink
        self._executor = executor
        self._lock = threading.RLock()
        # Bumped by reset() and cancel(); completions from an older generation are dropped
        self._generation = 0
        self._last_future: Future[None] | None = None
        self._set_default_values()

    # --- FACTORIES ---

    @classmethod
    def for_sequence(
        cls,
        items: Sequence[Any],
        sink: ResultSink,
        page_size: int = DEFAULT_PAGE_SIZE,
        executor: Executor | None = None,
    ) -> "PaginationController":
        return cls(InMemorySequence(items), sink, page_size=page_size, executor=executor)

    @classmethod
    def for_store(
        cls,
        entity: type[Any],
        context: StoreContext,
        sink: ResultSink,
        predicate: PredicateLike | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        order_by: str | None = None,
        executor: Executor | None = None,
    ) -> "PaginationController":
        source = QueryableStore(entity, context, predicate=predicate, order_by=order_by)
        return cls(source, sink, page_size=page_size, executor=executor)

    @classmethod
    def for_url(
        cls,
        url: str,
        sink: ResultSink,
        page_size: int = DEFAULT_PAGE_SIZE,
        executor: Executor | None = None,
        **source_kwargs: Any,
    ) -> "PaginationController":
        return cls(RemoteUrl(url, **source_kwargs), sink, page_size=page_size, executor=executor)

    @classmethod
    def for_json(
        cls,
        url: str,
        sink: ResultSink,
        page_size: int = DEFAULT_PAGE_SIZE,
        executor: Executor | None = None,
        **source_kwargs: Any,
    ) -> "PaginationController":
        return cls(RemoteJson(url, **source_kwargs), sink, page_size=page_size, executor=executor)

    # --- STATE ---

    def _set_default_values(self) -> None:
        self._total_count = 0
        self._total_page_count = 0
        self._current_page = 0
        self._results: list[Any] = []
        self._status = PaginatorStatus.NONE
        self._last_error: PagewiseError | None = None

    @property
    def source_kind(self) -> SourceKind | None:
        """The bound source's kind, or None for anything that isn't a DataSource."""
        if not isinstance(self.source, DataSource):
            return None
        kind = getattr(self.source, "kind", None)
        return kind if isinstance(kind, SourceKind) else None

    @property
    def page_size(self) -> int:
        return self._options.page_size

    @property
    def status(self) -> PaginatorStatus:
        return self._status

    @property
    def current_page(self) -> int:
        return self._current_page

    @property
    def total_count(self) -> int:
        return self._total_count

    @property
    def total_page_count(self) -> int:
        return self._total_page_count

    @property
    def results(self) -> list[Any]:
        """Copy of the records accumulated in this session."""
        with self._lock:
            return list(self._results)

    @property
    def last_error(self) -> PagewiseError | None:
        """Error from the most recent fetch, None if it succeeded."""
        return self._last_error

    @property
    def state(self) -> PaginatorState:
        with self._lock:
            return PaginatorState(
                status=self._status,
                page_size=self.page_size,
                current_page=self._current_page,
                total_count=self._total_count,
                total_page_count=self._total_page_count,
                result_count=len(self._results),
            )

    # --- PUBLIC OPERATIONS ---

    def load(self) -> None:
        """Resets the session and fetches the first page."""
        self.reset()
        self.fetch_next_page()

    def fetch_first_page(self) -> None:
        self.load()

    def reset(self) -> None:
        """
        Zeroes every counter and clears accumulated results.
        Any fetch still outstanding is invalidated.
        """
        with self._lock:
            self._generation += 1
            self._set_default_values()

        logger.info(
            "Paginator reset",
            extra={"source_kind": self._kind_label(), "page_size": self.page_size},
        )
        self.sink.on_reset(self)

    def is_last_page(self) -> bool:
        with self._lock:
            if self._status is PaginatorStatus.NONE:
                return False
            return self._current_page >= self._total_page_count

    def fetch_next_page(self) -> bool:
        """
        Starts fetching the next page.

        Returns:
            True if a fetch was started, False if one is already in progress,
            the last page has been reached, or the executor refused the fetch.
            A refused fetch is reported through on_failure.
        """
        submit_error: PagewiseError | None = None
        with self._lock:
            if self._status is PaginatorStatus.IN_PROGRESS:
                logger.debug("Fetch already in progress, ignoring request")
                return False
            if self.is_last_page():
                logger.debug("Last page reached, nothing to fetch")
                return False

            self._status = PaginatorStatus.IN_PROGRESS
            generation = self._generation
            window = PageWindow.for_page(
                self._current_page + 1, self.page_size, known_total=self._total_count
            )

            if self._executor is not None:
                try:
                    self._last_future = self._executor.submit(
                        self._fetch_in_background, window, generation
                    )
                    return True
                except Exception as e:
                    logger.exception(
                        "Executor refused page fetch",
                        extra={"source_kind": self._kind_label(), "page": window.page},
                    )
                    submit_error = PagewiseError(
                        f"Could not schedule page fetch: {e!s}", original_error=e
                    )

        if submit_error is not None:
            self._received_failure(submit_error, generation)
            return False

        self._fetch(window, generation)
        return True

    def fetch_remaining(self) -> list[Any]:
        """
        Fetches pages until the last one, stopping early on failure.
        Synchronous controllers only.

        Returns:
            The accumulated results.
        """
        if self._executor is not None:
            raise RuntimeError("fetch_remaining() needs a synchronous controller")

        while not self.is_last_page():
            if not self.fetch_next_page() or self._last_error is not None:
                break
        return self.results

    def cancel(self) -> bool:
        """
        Abandons the outstanding fetch.

        The controller goes back to None without calling either sink callback
        and keeps everything accumulated so far, so the session can continue.

        Returns:
            True if a fetch was outstanding.
        """
        with self._lock:
            if self._status is not PaginatorStatus.IN_PROGRESS:
                return False
            self._generation += 1
            self._status = PaginatorStatus.NONE
            future = self._last_future

        if future is not None:
            future.cancel()
        logger.warning(
            "Fetch cancelled",
            extra={"source_kind": self._kind_label(), "page": self._current_page + 1},
        )
        return True

    def wait(self, timeout: float | None = None) -> bool:
        """
        Blocks until the fetch submitted to the executor has finished.

        Returns:
            False if the timeout expired first.
        """
        future = self._last_future
        if future is None:
            return True
        _, not_done = wait_futures([future], timeout=timeout)
        return not not_done

    def close(self) -> None:
        """Releases what the source holds, such as an HTTP client it created."""
        close = getattr(self.source, "close", None)
        if callable(close):
            close()

    def __enter__(self) -> "PaginationController":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # --- FETCH PROTOCOL ---

    def _fetch(self, window: PageWindow, generation: int) -> None:
        outcome = self._resolve(window)
        if isinstance(outcome, FetchSuccess):
            self._received_results(outcome.items, outcome.total, generation)
        else:
            self._received_failure(outcome.error, generation)

    def _fetch_in_background(self, window: PageWindow, generation: int) -> None:
        # Nobody reads the future's exception, so sink errors are logged here
        try:
            self._fetch(window, generation)
        except Exception:
            logger.exception(
                "Result sink raised on executor thread",
                extra={"source_kind": self._kind_label(), "page": window.page},
            )

    def _resolve(self, window: PageWindow) -> FetchOutcome:
        """Asks the source for ``window``. Never raises."""
        if self.source_kind is None:
            return FetchFailure(page=window.page, error=UnsupportedSourceKindError(self.source))

        logger.info(
            "Fetching page",
            extra={
                "source_kind": self._kind_label(),
                "page": window.page,
                "page_size": window.page_size,
                "offset": window.offset,
                "length": window.length,
            },
        )

        try:
            result = self.source.fetch(window)
        except PagewiseError as e:
            return FetchFailure(page=window.page, error=e)
        except Exception as e:
            logger.exception(
                "Unexpected error while fetching page",
                extra={"source_kind": self._kind_label(), "page": window.page},
            )
            return FetchFailure(
                page=window.page,
                error=PagewiseError(f"Unexpected error while fetching page: {e!s}", original_error=e),
            )

        return FetchSuccess(page=window.page, items=list(result.items), total=result.total)

    def _received_results(self, items: list[Any], total: int, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                logger.debug("Dropping results of an abandoned fetch")
                return
            self._results.extend(items)
            self._total_count = total
            self._total_page_count = page_count(total, self.page_size)
            # Clamped so an empty or shrunken source can't overshoot the page count
            self._current_page = min(self._current_page + 1, self._total_page_count)
            self._status = PaginatorStatus.DONE
            self._last_error = None
            results = list(self._results)
            current_page = self._current_page

        logger.info(
            "Page received",
            extra={
                "source_kind": self._kind_label(),
                "page": current_page,
                "count": len(items),
                "total": total,
            },
        )
        self.sink.on_results(self, results)

    def _received_failure(self, error: PagewiseError, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                logger.debug("Dropping failure of an abandoned fetch")
                return
            self._status = PaginatorStatus.DONE
            self._last_error = error

        logger.info(
            "Page fetch failed",
            extra={"source_kind": self._kind_label(), "code": error.code, "domain": error.domain},
        )
        self.sink.on_failure(self, error)

    def _kind_label(self) -> str:
        kind = self.source_kind
        return kind.value if kind is not None else type(self.source).__name__

    def __repr__(self) -> str:
        return (
            f"PaginationController(source_kind={self._kind_label()!r}, "
            f"page={self._current_page}/{self._total_page_count}, status={self._status.name})"
        )
