"""
Example walking an in-memory sequence page by page.

51 strings ("0".."50") with a page size of 15 come back as pages of
15, 15, 15 and 6. Every success callback receives the whole collection
fetched so far.
"""

import logging

from pagewise import CallbackSink, PaginationController

logging.basicConfig(level=logging.INFO)

numbers = [str(value) for value in range(51)]


def show(controller, results):
    print(
        f"page {controller.current_page}/{controller.total_page_count}: "
        f"{len(results)} of {controller.total_count} -> last item {results[-1]!r}"
    )


def show_failure(controller, error):
    print(f"failed ({error.domain}/{error.code}): {error.message}")


sink = CallbackSink(show, on_failure=show_failure)
controller = PaginationController.for_sequence(numbers, sink, page_size=15)

print("Loading first page...")
controller.load()

while not controller.is_last_page():
    controller.fetch_next_page()

print(f"Done: {len(controller.results)} results, last page reached: {controller.is_last_page()}")

# Nothing more to fetch
assert controller.fetch_next_page() is False

# Start over
controller.reset()
print(f"After reset: {controller.state}")

# Binding something that isn't a data source reports a failure instead of raising
PaginationController(object(), sink).load()  # type: ignore[arg-type]
