from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .controller import PaginationController
    from .exceptions import PagewiseError


class ResultSink(ABC):
    """
    Receives what a PaginationController produces.

    on_results() is required. on_failure() and on_reset() are optional:
    the defaults do nothing, so a sink that doesn't override on_failure()
    silently drops failures.
    """

    @abstractmethod
    def on_results(self, controller: "PaginationController", results: list[Any]) -> None:
        """Called once per successful page with the full accumulated collection."""

    def on_failure(self, controller: "PaginationController", error: "PagewiseError") -> None:
        pass

    def on_reset(self, controller: "PaginationController") -> None:
        pass


class CallbackSink(ResultSink):
    """
    Adapts plain callables to the ResultSink contract.

    Usage:
        sink = CallbackSink(lambda ctl, results: print(len(results)))
    """

    def __init__(
        self,
        on_results: Callable[["PaginationController", list[Any]], None],
        on_failure: Callable[["PaginationController", "PagewiseError"], None] | None = None,
        on_reset: Callable[["PaginationController"], None] | None = None,
    ) -> None:
        self._on_results = on_results
        self._on_failure = on_failure
        self._on_reset = on_reset

    def on_results(self, controller: "PaginationController", results: list[Any]) -> None:
        self._on_results(controller, results)

    def on_failure(self, controller: "PaginationController", error: "PagewiseError") -> None:
        if self._on_failure is not None:
            self._on_failure(controller, error)

    def on_reset(self, controller: "PaginationController") -> None:
        if self._on_reset is not None:
            self._on_reset(controller)
