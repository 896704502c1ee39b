"""
Example paging a DynamoDB table with a filter predicate.

Run LocalStack first:
    docker run -p 4566:4566 localstack/localstack

NOTE: Examples use Attr() for mypy compatibility. The metaclass DSL (Book.year >= 2000)
works at runtime but mypy doesn't understand it.
"""

from concurrent.futures import ThreadPoolExecutor

import boto3

from pagewise import Attr, CallbackSink, PaginationController, StoreContext, StoreRecord


class Book(StoreRecord):
    class Meta:
        table_name = "Books"

    isbn: str
    title: str
    year: int
    rating: float = 0.0


client = boto3.client(
    "dynamodb",
    endpoint_url="http://localhost:4566",
    region_name="eu-south-1",
    aws_access_key_id="test",
    aws_secret_access_key="test",
)

try:
    client.create_table(
        TableName="Books",
        KeySchema=[{"AttributeName": "isbn", "KeyType": "HASH"}],
        AttributeDefinitions=[{"AttributeName": "isbn", "AttributeType": "S"}],
        BillingMode="PAY_PER_REQUEST",
    )
    client.get_waiter("table_exists").wait(TableName="Books")
except client.exceptions.ResourceInUseException:
    pass

print("Creating test books...")
for i in range(40):
    client.put_item(
        TableName="Books",
        Item={
            "isbn": {"S": f"978-{i:04d}"},
            "title": {"S": f"Volume {i}"},
            "year": {"N": str(1985 + i)},
            "rating": {"N": str(round(3 + (i % 5) * 0.4, 1))},
        },
    )

context = StoreContext(client=client)

# --- Synchronous paging with a predicate ---
print("\nBooks from 2000 on with a rating of at least 4.0:")
sink = CallbackSink(
    lambda ctl, results: print(f"  page {ctl.current_page}: {len(results)}/{ctl.total_count}"),
    on_failure=lambda ctl, error: print(f"  failed: {error.message}"),
)
predicate = (Attr("year") >= 2000) & (Attr("rating") >= 4.0)
controller = PaginationController.for_store(
    Book, context, sink, predicate=predicate, page_size=5, order_by="year"
)
for book in controller.fetch_remaining():
    print(f"  {book.year} {book.title} ({book.rating})")

# --- Fetching on a worker thread ---
print("\nFirst page on an executor:")
with ThreadPoolExecutor(max_workers=1) as executor:
    background = PaginationController.for_store(
        Book, context, sink, page_size=10, executor=executor
    )
    background.load()
    background.wait(timeout=10)
    print(f"  {background.state}")
