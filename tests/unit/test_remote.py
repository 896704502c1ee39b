"""
Unit tests for the HTTP data sources.

Requests are answered by httpx.MockTransport handlers, so no network
access is needed.
"""

import json

import httpx
import pytest
from pydantic import BaseModel

from pagewise import (
    PageWindow,
    PaginationController,
    PaginatorStatus,
    RecordValidationError,
    RemoteFetchError,
    RemoteJson,
    RemotePayloadError,
    RemoteUrl,
    SourceKind,
)

NUMBERS = [str(i) for i in range(51)]


class Item(BaseModel):
    id: int
    name: str


def paged_api(records, requests=None):
    """Handler emulating an offset/limit endpoint over ``records``."""

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        offset = int(request.url.params["offset"])
        limit = int(request.url.params["limit"])
        return httpx.Response(
            200, json={"items": records[offset : offset + limit], "total": len(records)}
        )

    return handler


def client_for(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


@pytest.mark.unit
class TestRemoteUrl:
    def test_kind(self):
        assert RemoteUrl("https://api.example.com/items").kind is SourceKind.REMOTE_URL

    def test_sends_offset_and_limit(self):
        requests = []
        source = RemoteUrl(
            "https://api.example.com/items",
            client=client_for(paged_api(NUMBERS, requests)),
            params={"sort": "asc"},
        )

        result = source.fetch(PageWindow.for_page(2, 15, known_total=51))

        assert result.items == [str(i) for i in range(15, 30)]
        assert result.total == 51
        params = requests[0].url.params
        assert params["offset"] == "15"
        assert params["limit"] == "15"
        assert params["sort"] == "asc"

    def test_custom_param_and_envelope_names(self):
        def handler(request):
            assert request.url.params["start"] == "0"
            assert request.url.params["size"] == "10"
            return httpx.Response(200, json={"data": ["a", "b"], "count": 2})

        source = RemoteUrl(
            "https://api.example.com/items",
            client=client_for(handler),
            offset_param="start",
            limit_param="size",
            items_key="data",
            total_key="count",
        )

        result = source.fetch(PageWindow.for_page(1, 10))

        assert result.items == ["a", "b"]
        assert result.total == 2

    def test_item_model_validation(self):
        handler = paged_api([{"id": 1, "name": "one"}, {"id": 2, "name": "two"}])
        source = RemoteUrl("https://x.test/", client=client_for(handler), item_model=Item)

        result = source.fetch(PageWindow.for_page(1, 10))

        assert result.items == [Item(id=1, name="one"), Item(id=2, name="two")]

    def test_item_model_validation_failure(self):
        handler = paged_api([{"id": "not-a-number"}])
        source = RemoteUrl("https://x.test/", client=client_for(handler), item_model=Item)

        with pytest.raises(RecordValidationError) as exc_info:
            source.fetch(PageWindow.for_page(1, 10))
        assert exc_info.value.domain == "remote"

    @pytest.mark.parametrize(
        "body",
        [
            ["not", "an", "envelope"],
            {"items": []},
            {"total": 3},
            {"items": "abc", "total": 3},
            {"items": [], "total": -1},
            {"items": [], "total": "3"},
        ],
    )
    def test_malformed_envelope(self, body):
        source = RemoteUrl(
            "https://x.test/", client=client_for(lambda r: httpx.Response(200, json=body))
        )
        with pytest.raises(RemotePayloadError):
            source.fetch(PageWindow.for_page(1, 10))

    def test_non_json_body(self):
        source = RemoteUrl(
            "https://x.test/", client=client_for(lambda r: httpx.Response(200, text="<html>"))
        )
        with pytest.raises(RemotePayloadError, match="not valid JSON"):
            source.fetch(PageWindow.for_page(1, 10))

    def test_http_error_status(self):
        source = RemoteUrl(
            "https://x.test/", client=client_for(lambda r: httpx.Response(503))
        )

        with pytest.raises(RemoteFetchError) as exc_info:
            source.fetch(PageWindow.for_page(1, 10))

        assert exc_info.value.status_code == 503
        assert exc_info.value.code == "http_503"
        assert isinstance(exc_info.value.original_error, httpx.HTTPStatusError)

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        source = RemoteUrl("https://x.test/", client=client_for(handler))

        with pytest.raises(RemoteFetchError) as exc_info:
            source.fetch(PageWindow.for_page(1, 10))

        assert exc_info.value.status_code is None
        assert exc_info.value.code == "transport"


@pytest.mark.unit
class TestRemoteJson:
    def test_kind(self):
        assert RemoteJson("https://x.test/all.json").kind is SourceKind.REMOTE_JSON

    def test_slices_top_level_array(self):
        source = RemoteJson(
            "https://x.test/all.json",
            client=client_for(lambda r: httpx.Response(200, json=NUMBERS)),
        )

        result = source.fetch(PageWindow.for_page(4, 15, known_total=51))

        assert result.items == [str(i) for i in range(45, 51)]
        assert result.total == 51

    def test_nested_array(self):
        body = {"meta": {}, "records": [1, 2, 3]}
        source = RemoteJson(
            "https://x.test/all.json",
            client=client_for(lambda r: httpx.Response(200, json=body)),
            items_key="records",
        )

        result = source.fetch(PageWindow.for_page(1, 2))

        assert result.items == [1, 2]
        assert result.total == 3

    def test_missing_nested_key(self):
        source = RemoteJson(
            "https://x.test/all.json",
            client=client_for(lambda r: httpx.Response(200, json={"other": []})),
            items_key="records",
        )
        with pytest.raises(RemotePayloadError):
            source.fetch(PageWindow.for_page(1, 2))

    def test_empty_document(self):
        source = RemoteJson(
            "https://x.test/all.json", client=client_for(lambda r: httpx.Response(200, json=[]))
        )

        result = source.fetch(PageWindow.for_page(1, 10))

        assert result.items == []
        assert result.total == 0


@pytest.mark.unit
class TestClientLifecycle:
    def test_private_client_created_lazily_and_closed(self):
        source = RemoteUrl("https://x.test/", timeout=3.0, headers={"X-Token": "t"})
        assert source._client is None

        client = source._get_client()
        assert isinstance(client, httpx.Client)
        assert client.headers["X-Token"] == "t"
        assert source._get_client() is client

        source.close()
        assert client.is_closed
        assert source._client is None

    def test_injected_client_is_not_closed(self):
        client = httpx.Client()
        source = RemoteUrl("https://x.test/", client=client)

        source.close()

        assert not client.is_closed
        client.close()

    def test_controller_close_releases_private_client(self, sink):
        controller = PaginationController.for_url("https://x.test/", sink)
        client = controller.source._get_client()

        controller.close()

        assert client.is_closed

    def test_controller_as_context_manager(self, sink):
        with PaginationController.for_json("https://x.test/all.json", sink) as controller:
            client = controller.source._get_client()
            assert not client.is_closed

        assert client.is_closed

    def test_close_without_closable_source(self, sink):
        controller = PaginationController.for_sequence([1, 2], sink)
        controller.close()
        controller.load()
        assert controller.results == [1, 2]


@pytest.mark.unit
class TestRemoteController:
    def test_pages_through_remote_url(self, sink):
        requests = []
        controller = PaginationController.for_url(
            "https://api.example.com/items",
            sink,
            page_size=15,
            client=client_for(paged_api(NUMBERS, requests)),
        )

        controller.load()
        controller.fetch_remaining()

        assert controller.source_kind is SourceKind.REMOTE_URL
        assert controller.results == NUMBERS
        assert controller.total_page_count == 4
        assert [r.url.params["limit"] for r in requests] == ["15", "15", "15", "6"]

    def test_pages_through_remote_json(self, sink):
        controller = PaginationController.for_json(
            "https://x.test/all.json",
            sink,
            page_size=20,
            client=client_for(lambda r: httpx.Response(200, content=json.dumps(NUMBERS))),
        )

        controller.fetch_remaining()

        assert [len(r) for r in sink.results] == [20, 40, 51]
        assert controller.is_last_page() is True

    def test_http_failure_reaches_sink(self, sink):
        controller = PaginationController.for_url(
            "https://x.test/", sink, client=client_for(lambda r: httpx.Response(500))
        )

        controller.load()

        assert len(sink.failures) == 1
        assert isinstance(sink.failures[0], RemoteFetchError)
        assert sink.failures[0].domain == "remote"
        assert controller.status is PaginatorStatus.DONE
        assert controller.results == []
