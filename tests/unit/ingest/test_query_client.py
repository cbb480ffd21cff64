"""Unit tests for the Redash query client."""

from __future__ import annotations

import json
from typing import Callable

import httpx
import pytest

from core.config import FeedPrepConfig
from core.errors import FeedConfigError, FeedQueryError
from core.types import QueryResultTable
from ingest.query_client import (
    RedashQueryClient,
    build_query_client,
    export_result_csv,
    format_cell,
    parse_query_result,
)

_BASE_URL = "https://redash.test"
_QUERY_PAYLOAD = {
    "id": 7,
    "name": "Discussion feed",
    "description": "Daily feed",
    "query": "select 1",
    "data_source_id": 2,
    "latest_query_data_id": 55,
}
_RESULT_PAYLOAD = {
    "query_result": {
        "id": 99,
        "retrieved_at": "2025-01-01T00:00:00Z",
        "runtime": 0.5,
        "data": {
            "columns": [{"name": "discussionid"}, {"name": "score"}],
            "rows": [{"discussionid": 1, "score": 0.5}, {"discussionid": 2, "score": None}],
        },
    }
}

Handler = Callable[[httpx.Request], httpx.Response]


def _client(handler: Handler, max_poll_attempts: int = 3) -> RedashQueryClient:
    return RedashQueryClient(
        base_url=_BASE_URL,
        api_key="secret",
        timeout_seconds=5,
        poll_interval_seconds=0,
        max_poll_attempts=max_poll_attempts,
        transport=httpx.MockTransport(handler),
        sleep=lambda _seconds: None,
    )


def _job_handler(job_states: list[dict[str, object]]) -> tuple[Handler, list[str]]:
    requested: list[str] = []
    remaining = list(job_states)

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(f"{request.method} {request.url.path}")
        path = request.url.path
        if path == "/api/queries/7":
            return httpx.Response(200, json=_QUERY_PAYLOAD)
        if path == "/api/queries/7/refresh":
            return httpx.Response(200, json={"job": {"id": "job-1", "status": 1}})
        if path == "/api/jobs/job-1":
            return httpx.Response(200, json={"job": remaining.pop(0)})
        if path == "/api/query_results/99.json":
            return httpx.Response(200, json=_RESULT_PAYLOAD)
        return httpx.Response(404, json={"message": "not found"})

    return handler, requested


def test_execute_query_polls_until_success() -> None:
    """Execution should poll the job and fetch the produced result."""
    handler, requested = _job_handler(
        [{"status": 1}, {"status": 2}, {"status": 3, "query_result_id": 99, "result": 99}]
    )

    with _client(handler) as client:
        result = client.execute_query(7)

    assert result.columns == ("discussionid", "score")
    assert requested.count("GET /api/jobs/job-1") == 3
    assert requested[-1] == "GET /api/query_results/99.json"


def test_execute_query_sends_parameters_and_api_key() -> None:
    """Refresh requests should carry parameters and the key header."""
    captured: dict[str, object] = {}
    base_handler, _ = _job_handler([{"status": 3, "result": {"id": 99}}])

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/refresh"):
            captured["body"] = json.loads(request.content)
            captured["authorization"] = request.headers["Authorization"]
        return base_handler(request)

    with _client(handler) as client:
        client.execute_query(7, {"day": "2025-01-01"})

    assert captured == {
        "body": {"parameters": {"day": "2025-01-01"}},
        "authorization": "Key secret",
    }


def test_execute_query_raises_on_job_failure() -> None:
    """A failed job should surface its error message."""
    handler, _ = _job_handler([{"status": 4, "error": "syntax error"}])

    with _client(handler) as client, pytest.raises(FeedQueryError, match="syntax error"):
        client.execute_query(7)


def test_execute_query_times_out_after_poll_budget() -> None:
    """Jobs that never finish should time out after the attempt budget."""
    handler, requested = _job_handler([{"status": 2}] * 2)

    with _client(handler, max_poll_attempts=2) as client, pytest.raises(
        FeedQueryError, match="timed out"
    ):
        client.execute_query(7)

    assert requested.count("GET /api/jobs/job-1") == 2


def test_execute_query_rejects_unknown_job_status() -> None:
    """Unexpected status codes should fail loudly."""
    handler, _ = _job_handler([{"status": 9}])

    with _client(handler) as client, pytest.raises(FeedQueryError, match="Unknown job status"):
        client.execute_query(7)


def test_execute_query_retries_transient_poll_errors() -> None:
    """A failed status request should be retried on the next attempt."""
    handler, _ = _job_handler([{"status": 3, "result": 99}])
    calls = {"jobs": 0}

    def flaky(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/jobs/job-1" and calls["jobs"] == 0:
            calls["jobs"] += 1
            return httpx.Response(502)
        return handler(request)

    with _client(flaky) as client:
        result = client.execute_query(7)

    assert len(result.rows) == 2


def test_get_query_reports_server_message() -> None:
    """HTTP errors should include the Redash error message."""
    with _client(lambda _request: httpx.Response(403, json={"message": "No access"})) as client:
        with pytest.raises(FeedQueryError, match="No access"):
            client.get_query(7)


def test_get_cached_result_reads_latest_result() -> None:
    """Cached lookups should use the latest query data id."""

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/queries/7":
            return httpx.Response(200, json=_QUERY_PAYLOAD)
        if request.url.path == "/api/queries/7/results/55.json":
            return httpx.Response(200, json=_RESULT_PAYLOAD)
        return httpx.Response(404)

    with _client(handler) as client:
        result = client.get_cached_result(7)

    assert result is not None and result.runtime_seconds == 0.5


def test_get_cached_result_returns_none_without_cached_data() -> None:
    """Queries never executed should have no cached result."""
    payload = {**_QUERY_PAYLOAD, "latest_query_data_id": None}

    with _client(lambda _request: httpx.Response(200, json=payload)) as client:
        assert client.get_cached_result(7) is None


def test_get_cached_result_returns_none_on_request_failure() -> None:
    """Request failures should degrade to no cached result."""
    with _client(lambda _request: httpx.Response(500)) as client:
        assert client.get_cached_result(7) is None


def test_list_queries_passes_paging() -> None:
    """Listing should request the given page and parse each entry."""
    seen: dict[str, str] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.url.params)
        return httpx.Response(200, json={"count": 1, "results": [_QUERY_PAYLOAD]})

    with _client(handler) as client:
        listing = client.list_queries(page=2, page_size=10)

    assert seen == {"page": "2", "page_size": "10"}
    assert listing.total_count == 1 and listing.queries[0].name == "Discussion feed"


def test_parse_query_result_accepts_top_level_table() -> None:
    """Bare payloads with top-level columns and rows should parse."""
    table = parse_query_result({"columns": [{"name": "a"}], "rows": [{"a": 1}]})

    assert table.columns == ("a",) and table.rows == ({"a": 1},)


def test_parse_query_result_rejects_missing_table() -> None:
    """Payloads without columns and rows should be rejected."""
    with pytest.raises(FeedQueryError, match="valid data structure"):
        parse_query_result({"query_result": {"id": 1}})


def test_export_result_csv_renders_cells(tmp_path) -> None:
    """Export should write a header and render nulls as empty fields."""
    result = QueryResultTable(
        columns=("discussionid", "discussiontype", "score"),
        rows=(
            {"discussionid": 1, "discussiontype": "note, pinned", "score": 0.5},
            {"discussionid": 2, "discussiontype": None, "score": 3.0},
        ),
    )
    output_path = tmp_path / "raw" / "query.csv"

    row_count = export_result_csv(result, output_path)

    assert row_count == 2
    assert output_path.read_text(encoding="utf-8") == (
        'discussionid,discussiontype,score\n1,"note, pinned",0.5\n2,,3'
    )


@pytest.mark.parametrize(
    ("value", "expected"),
    [(True, "true"), (False, "false"), (12, "12"), ({"a": [1, 2]}, '{"a":[1,2]}'), ("x", "x")],
)
def test_format_cell_renders_json_values(value: object, expected: str) -> None:
    """JSON cell values should render as plain artifact text."""
    assert format_cell(value) == expected


def test_build_query_client_requires_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    """Building a client without credentials should fail with a config error."""
    monkeypatch.delenv("REDASH_BASE_URL", raising=False)
    monkeypatch.delenv("REDASH_API_KEY", raising=False)

    with pytest.raises(FeedConfigError):
        build_query_client(FeedPrepConfig.from_env())


@pytest.mark.parametrize(
    "columns",
    [[{"type": "integer"}], ["discussionid"], [None]],
)
def test_parse_query_result_rejects_malformed_columns(columns: list[object]) -> None:
    """Column entries without a name should raise a query error."""
    with pytest.raises(FeedQueryError, match="column #1"):
        parse_query_result({"columns": columns, "rows": []})


def test_parse_query_result_rejects_non_object_rows() -> None:
    """Rows that are not keyed by column name should raise a query error."""
    with pytest.raises(FeedQueryError, match="JSON objects"):
        parse_query_result({"columns": [{"name": "a"}], "rows": [[1]]})


def test_get_query_rejects_non_numeric_id() -> None:
    """A malformed query id should raise a query error."""
    payload = {**_QUERY_PAYLOAD, "id": "abc"}

    with _client(lambda _request: httpx.Response(200, json=payload)) as client:
        with pytest.raises(FeedQueryError, match="'id' must be an integer"):
            client.get_query(7)


def test_get_query_accepts_numeric_string_id() -> None:
    """Numeric string ids should be read as integers."""
    payload = {**_QUERY_PAYLOAD, "id": "7", "data_source_id": "2"}

    with _client(lambda _request: httpx.Response(200, json=payload)) as client:
        query = client.get_query(7)

    assert (query.query_id, query.data_source_id) == (7, 2)
