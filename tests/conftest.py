"""
Shared pytest fixtures and configuration for pagewise tests.

This module provides common fixtures used across unit and integration tests,
including a recording result sink, mocked boto3 clients, LocalStack clients,
and test record definitions.
"""

import os
from typing import Any
from unittest.mock import MagicMock

import boto3
import pytest

from pagewise import PaginationController, ResultSink, StoreRecord


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests with mocked dependencies")
    config.addinivalue_line("markers", "integration: Integration tests against LocalStack")


class RecordingSink(ResultSink):
    """Result sink that remembers every callback it receives."""

    def __init__(self) -> None:
        self.results: list[list[Any]] = []
        self.failures: list[Any] = []
        self.resets = 0

    def on_results(self, controller: PaginationController, results: list[Any]) -> None:
        self.results.append(results)

    def on_failure(self, controller: PaginationController, error: Any) -> None:
        self.failures.append(error)

    def on_reset(self, controller: PaginationController) -> None:
        self.resets += 1

    @property
    def latest(self) -> list[Any]:
        return self.results[-1] if self.results else []


class Book(StoreRecord):
    class Meta:
        table_name = "test_books"

    isbn: str
    title: str
    year: int
    rating: float = 0.0


def book_item(isbn: str, title: str, year: int, rating: float = 0.0) -> dict[str, Any]:
    """A Book in low-level DynamoDB JSON, as a Scan returns it."""
    return {
        "isbn": {"S": isbn},
        "title": {"S": title},
        "year": {"N": str(year)},
        "rating": {"N": str(rating)},
    }


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def numbers() -> list[str]:
    """The integers 0..50 as strings (51 items)."""
    return [str(value) for value in range(51)]


@pytest.fixture
def mock_client():
    """
    Creates a fully mocked boto3 DynamoDB client.

    Set ``mock_client.get_paginator.return_value.paginate.return_value``
    to a list of Scan pages to control what the store returns.
    """
    client = MagicMock()
    client.get_paginator.return_value.paginate.return_value = [{"Items": []}]
    return client


@pytest.fixture
def book_items() -> list[dict[str, Any]]:
    """23 books spread across two Scan pages."""
    items = [
        book_item(f"isbn-{i:03d}", f"Book {i}", 1990 + i, rating=round(i * 0.2, 1))
        for i in range(23)
    ]
    return items


@pytest.fixture
def stocked_client(mock_client, book_items):
    """Mock client whose Scan paginator yields the 23 sample books in two pages."""
    mock_client.get_paginator.return_value.paginate.return_value = [
        {"Items": book_items[:12]},
        {"Items": book_items[12:]},
    ]
    return mock_client


# Integration Test Fixtures


@pytest.fixture(scope="session")
def localstack_endpoint() -> str:
    """Get LocalStack endpoint URL from environment or default."""
    return os.getenv("LOCALSTACK_ENDPOINT", "http://localhost:4566")


@pytest.fixture(scope="session")
def localstack_client(localstack_endpoint: str):
    """
    Creates a boto3 client connected to LocalStack.

    Skips the requesting test when LocalStack is not reachable.
    """
    from botocore.config import Config
    from botocore.exceptions import BotoCoreError, ClientError

    client = boto3.client(
        "dynamodb",
        endpoint_url=localstack_endpoint,
        region_name="eu-south-1",
        aws_access_key_id="test",
        aws_secret_access_key="test",
        config=Config(connect_timeout=2, read_timeout=5, retries={"max_attempts": 1}),
    )
    try:
        client.list_tables(Limit=1)
    except (BotoCoreError, ClientError) as e:
        pytest.skip(f"LocalStack not available at {localstack_endpoint}: {e}")
    return client


@pytest.fixture
def books_table(localstack_client):
    """Creates an empty ``test_books`` table and drops its items afterwards."""
    table_name = Book._meta.table_name
    try:
        localstack_client.create_table(
            TableName=table_name,
            KeySchema=[{"AttributeName": "isbn", "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": "isbn", "AttributeType": "S"}],
            ProvisionedThroughput={"ReadCapacityUnits": 5, "WriteCapacityUnits": 5},
        )
    except localstack_client.exceptions.ResourceInUseException:
        pass

    localstack_client.get_waiter("table_exists").wait(TableName=table_name)
    _delete_all_items(localstack_client, table_name)

    yield table_name

    _delete_all_items(localstack_client, table_name)


def _delete_all_items(client, table_name: str) -> None:
    paginator = client.get_paginator("scan")
    for page in paginator.paginate(TableName=table_name):
        for item in page["Items"]:
            client.delete_item(TableName=table_name, Key={"isbn": item["isbn"]})
