import httpx
import pytest

from gridexport.domain.grid_source import GridSource
from gridexport.domain.paging import iter_grid_rows
from gridexport.domain.ports.grid_source import SearchCriteria
from gridexport.infra.http.grid_api_client import ApiError, GridApiClient
from gridexport.infra.sources.api_grid_source import ApiGridSourceType

ROWS = [{"sku": f"S{i}", "name": f"Item {i}", "price": i} for i in range(5)]


def paged_responder(rows, total_key="total"):
    requests: list[httpx.Request] = []

    def responder(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        page = int(request.url.params["page"])
        size = int(request.url.params["rows"])
        start = (page - 1) * size
        return httpx.Response(200, json={"items": rows[start:start + size], total_key: len(rows)})

    return responder, requests


def make_client(responder, retries: int = 0) -> GridApiClient:
    return GridApiClient(
        baseUrl="https://api.local",
        username="user",
        password="secret",
        retries=retries,
        retryBackoffSeconds=0,
        transport=httpx.MockTransport(responder),
    )


def test_column_keys_discovered_from_first_record():
    responder, requests = paged_responder(ROWS)
    source_type = ApiGridSourceType(make_client(responder), "/products")

    assert source_type.get_column_keys() == ["sku", "name", "price"]
    assert requests[0].url.params["rows"] == "1"


def test_configured_column_keys_skip_probe_request():
    responder, requests = paged_responder(ROWS)
    source_type = ApiGridSourceType(make_client(responder), "/products", column_keys=["price", "sku"])

    assert source_type.get_column_keys() == ["price", "sku"]
    assert requests == []


def test_fetch_data_sends_paging_filters_and_sort():
    responder, requests = paged_responder(ROWS, total_key="totalCount")
    source_type = ApiGridSourceType(make_client(responder), "/products")

    raw = source_type.fetch_data(
        SearchCriteria(page_size=2, current_page=2, filters={"kind": "a"}, sort_field="price", sort_direction="desc")
    )

    params = requests[0].url.params
    assert params["page"] == "2"
    assert params["rows"] == "2"
    assert params["filter[kind]"] == "a"
    assert params["sort"] == "price"
    assert params["direction"] == "desc"
    assert raw.total_count == 5
    assert [source_type.extract_value(r, "sku") for r in raw.records] == ["S2", "S3"]


def test_plain_list_response_without_total():
    def responder(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=ROWS[:2])

    source_type = ApiGridSourceType(make_client(responder), "/products")
    raw = source_type.fetch_data(SearchCriteria(page_size=10))

    assert raw.total_count == 2
    assert len(raw.records) == 2


def test_stream_over_api_source():
    responder, requests = paged_responder(ROWS)
    grid_source = GridSource(ApiGridSourceType(make_client(responder), "/products"))

    result = list(iter_grid_rows(grid_source, page_size=2))

    assert [row["sku"] for _index, row in result] == [r["sku"] for r in ROWS]
    assert [int(r.url.params["page"]) for r in requests] == [1, 2, 3]


def test_basic_auth_header_is_sent():
    responder, requests = paged_responder(ROWS)
    ApiGridSourceType(make_client(responder), "/products").fetch_data(SearchCriteria())

    assert requests[0].headers["authorization"].startswith("Basic ")


def test_retries_on_server_error_then_succeeds():
    calls = {"n": 0}

    def responder(request: httpx.Request) -> httpx.Response:
        calls["n"] += 1
        if calls["n"] == 1:
            return httpx.Response(503, text="busy")
        return httpx.Response(200, json={"items": ROWS, "total": 5})

    client = make_client(responder, retries=2)
    raw = ApiGridSourceType(client, "/products").fetch_data(SearchCriteria())

    assert raw.total_count == 5
    assert client.getRetryAttempts() == 1


def test_http_error_propagates_as_api_error():
    def responder(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, text="unauthorized")

    source_type = ApiGridSourceType(make_client(responder), "/products")

    with pytest.raises(ApiError) as exc_info:
        source_type.fetch_data(SearchCriteria())
    assert exc_info.value.status_code == 401
    assert exc_info.value.code == "HTTP_401"


def test_invalid_json_raises_api_error():
    def responder(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="not json")

    with pytest.raises(ApiError) as exc_info:
        ApiGridSourceType(make_client(responder), "/products").fetch_data(SearchCriteria())
    assert exc_info.value.code == "INVALID_JSON"


def test_response_without_items_array_is_rejected():
    def responder(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"unexpected": True})

    with pytest.raises(ApiError) as exc_info:
        ApiGridSourceType(make_client(responder), "/products").fetch_data(SearchCriteria())
    assert exc_info.value.code == "INVALID_ITEMS_FORMAT"
