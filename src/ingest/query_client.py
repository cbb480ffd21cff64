"""Redash query client.

This module executes saved Redash queries, polls their jobs to
completion, and exports tabular results in the feed artifact format.
It is the only component of feedprep that performs network I/O.
"""

from __future__ import annotations

from enum import IntEnum
import json
from pathlib import Path
import time
from typing import Any, Callable, Mapping

import httpx

from core.config import FeedPrepConfig
from core.constants import DEFAULT_QUERY_PAGE_SIZE
from core.errors import FeedQueryError
from core.logging_config import get_logger
from core.types import QueryInfo, QueryListing, QueryResultTable
from ingest.tabular_codec import encode_rows
from store.artifact_io import write_text_artifact
from transforms.score_scaling import format_score

_LOGGER = get_logger(__name__)


class JobStatus(IntEnum):
    """Redash background job states."""

    PENDING = 1
    STARTED = 2
    SUCCESS = 3
    FAILURE = 4
    RETRY = 5


class RedashQueryClient:
    """Synchronous client for the Redash query API."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout_seconds: float,
        poll_interval_seconds: float,
        max_poll_attempts: int,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers={
                "Authorization": f"Key {api_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout_seconds,
            transport=transport,
        )
        self._poll_interval_seconds = poll_interval_seconds
        self._max_poll_attempts = max_poll_attempts
        self._sleep = sleep

    def __enter__(self) -> "RedashQueryClient":
        return self

    def __exit__(self, *_exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Release the underlying HTTP connection pool."""
        self._client.close()

    def get_query(self, query_id: int) -> QueryInfo:
        """Fetch query metadata.

        Args:
            query_id: Redash query id.

        Returns:
            Query metadata.

        Raises:
            FeedQueryError: If the request fails.
        """
        payload = self._request_json("GET", f"/api/queries/{query_id}")
        return _query_info_from_payload(payload)

    def execute_query(
        self,
        query_id: int,
        parameters: Mapping[str, object] | None = None,
    ) -> QueryResultTable:
        """Refresh a query and wait for its fresh result.

        Args:
            query_id: Redash query id.
            parameters: Optional query parameters.

        Returns:
            Result table of the completed job.

        Raises:
            FeedQueryError: If the job fails, times out, or a request fails.
        """
        query_info = self.get_query(query_id)
        _LOGGER.info("query_execution_started", query_id=query_id, query_name=query_info.name)
        payload = self._request_json(
            "POST",
            f"/api/queries/{query_id}/refresh",
            json={"parameters": dict(parameters or {})},
        )
        job = payload.get("job")
        if not isinstance(job, Mapping) or "id" not in job:
            raise FeedQueryError(
                f"Redash did not return a job for query {query_id}. "
                "Check the query id and that the API key can execute it."
            )
        job_id = str(job["id"])
        _LOGGER.info("query_job_started", query_id=query_id, job_id=job_id)
        result = self._poll_job(job_id)
        _LOGGER.info(
            "query_execution_completed",
            query_id=query_id,
            row_count=len(result.rows),
            runtime_seconds=result.runtime_seconds,
        )
        return result

    def get_query_result(self, result_id: int) -> QueryResultTable:
        """Fetch a stored query result by id."""
        payload = self._request_json("GET", f"/api/query_results/{result_id}.json")
        return parse_query_result(payload)

    def get_cached_result(self, query_id: int) -> QueryResultTable | None:
        """Fetch the latest cached result of a query.

        Args:
            query_id: Redash query id.

        Returns:
            Cached result table, or None when the query has no cached data
            or it cannot be retrieved.
        """
        try:
            query_info = self.get_query(query_id)
            if query_info.latest_query_data_id is None:
                return None
            payload = self._request_json(
                "GET",
                f"/api/queries/{query_id}/results/{query_info.latest_query_data_id}.json",
            )
            return parse_query_result(payload)
        except FeedQueryError as error:
            _LOGGER.warning("cached_result_unavailable", query_id=query_id, reason=str(error))
            return None

    def list_queries(self, page: int = 1, page_size: int = DEFAULT_QUERY_PAGE_SIZE) -> QueryListing:
        """List one page of saved queries."""
        payload = self._request_json(
            "GET",
            "/api/queries",
            params={"page": page, "page_size": page_size},
        )
        results = payload.get("results") or []
        if not isinstance(results, list):
            raise FeedQueryError("Redash query listing returned a non-list 'results' field.")
        return QueryListing(
            page=page,
            total_count=int(payload.get("count") or 0),
            queries=tuple(_query_info_from_payload(item) for item in results),
        )

    def _poll_job(self, job_id: str) -> QueryResultTable:
        for attempt in range(1, self._max_poll_attempts + 1):
            try:
                payload = self._request_json("GET", f"/api/jobs/{job_id}")
            except FeedQueryError as error:
                if attempt == self._max_poll_attempts:
                    raise
                _LOGGER.warning(
                    "query_job_poll_failed",
                    job_id=job_id,
                    attempt=attempt,
                    reason=str(error),
                )
                self._sleep(self._poll_interval_seconds)
                continue
            job = payload.get("job")
            if not isinstance(job, Mapping):
                raise FeedQueryError(f"Redash job {job_id} response is missing the 'job' object.")
            status = _parse_job_status(job)
            if status is JobStatus.SUCCESS:
                return self.get_query_result(_job_result_id(job))
            if status is JobStatus.FAILURE:
                raise FeedQueryError(
                    f"Query execution failed: {job.get('error') or 'Unknown error'}"
                )
            _LOGGER.info(
                "query_job_waiting",
                job_id=job_id,
                status=status.name,
                attempt=attempt,
                max_attempts=self._max_poll_attempts,
            )
            self._sleep(self._poll_interval_seconds)
        raise FeedQueryError(
            f"Query execution timed out after {self._max_poll_attempts} status polls. "
            "Raise FEEDPREP_MAX_POLL_ATTEMPTS or check the Redash worker queue."
        )

    def _request_json(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = self._client.request(method, path, **kwargs)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as error:
            raise FeedQueryError(
                f"Redash request {method} {path} failed: {_error_message(error)}"
            ) from error
        except ValueError as error:
            raise FeedQueryError(
                f"Redash request {method} {path} returned invalid JSON: {error}"
            ) from error
        if not isinstance(payload, dict):
            raise FeedQueryError(
                f"Redash request {method} {path} returned {type(payload).__name__}, "
                "expected a JSON object."
            )
        return payload


def build_query_client(
    config: FeedPrepConfig,
    transport: httpx.BaseTransport | None = None,
) -> RedashQueryClient:
    """Build a query client from runtime configuration.

    Raises:
        FeedConfigError: If Redash credentials are not configured.
    """
    base_url, api_key = config.require_redash_credentials()
    return RedashQueryClient(
        base_url=base_url,
        api_key=api_key,
        timeout_seconds=config.request_timeout_seconds,
        poll_interval_seconds=config.poll_interval_seconds,
        max_poll_attempts=config.max_poll_attempts,
        transport=transport,
    )


def parse_query_result(payload: Mapping[str, Any]) -> QueryResultTable:
    """Extract the result table from a Redash result payload.

    Accepts both the ``query_result`` wrapper and a bare result, with
    columns and rows either nested under ``data`` or at the top level.

    Raises:
        FeedQueryError: If no column/row structure is present.
    """
    result = payload.get("query_result", payload)
    if not isinstance(result, Mapping):
        raise FeedQueryError("Query result payload is not a JSON object.")
    data = result.get("data")
    if isinstance(data, Mapping) and _has_table(data):
        columns, rows = data["columns"], data["rows"]
    elif _has_table(result):
        columns, rows = result["columns"], result["rows"]
    else:
        raise FeedQueryError(
            "Query result does not contain valid data structure. "
            f"Found properties: {', '.join(result.keys())}"
        )
    if not isinstance(columns, list):
        raise FeedQueryError("Query result columns is not an array.")
    if not isinstance(rows, list):
        raise FeedQueryError("Query result rows is not an array.")
    if not all(isinstance(row, Mapping) for row in rows):
        raise FeedQueryError("Query result rows must be JSON objects keyed by column name.")
    runtime = result.get("runtime")
    return QueryResultTable(
        columns=tuple(_column_name(column, index) for index, column in enumerate(columns)),
        rows=tuple(rows),
        retrieved_at=result.get("retrieved_at"),
        runtime_seconds=float(runtime) if isinstance(runtime, (int, float)) else None,
    )


def export_result_csv(result: QueryResultTable, output_path: Path) -> int:
    """Write a result table as a raw feed artifact.

    Args:
        result: Query result table.
        output_path: Destination file.

    Returns:
        Number of data rows written.

    Raises:
        FeedStoreError: If the file cannot be written.
    """
    rows = [list(result.columns)]
    rows.extend([format_cell(row.get(column)) for column in result.columns] for row in result.rows)
    write_text_artifact(output_path, encode_rows(rows))
    _LOGGER.info(
        "query_result_exported",
        output_path=str(output_path),
        row_count=len(result.rows),
        column_count=len(result.columns),
    )
    return len(result.rows)


def format_cell(value: object) -> str:
    """Render a JSON cell value as artifact text; nulls become empty."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return format_score(value)
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


def _has_table(payload: Mapping[str, Any]) -> bool:
    return payload.get("columns") is not None and payload.get("rows") is not None


def _column_name(column: object, index: int) -> str:
    if not isinstance(column, Mapping) or column.get("name") is None:
        raise FeedQueryError(f"Query result column #{index + 1} is missing its 'name' field.")
    return str(column["name"])


def _query_info_from_payload(payload: object) -> QueryInfo:
    if not isinstance(payload, Mapping) or "id" not in payload:
        raise FeedQueryError("Redash query payload is missing the 'id' field.")
    data_source_id = payload.get("data_source_id")
    latest_id = payload.get("latest_query_data_id")
    return QueryInfo(
        query_id=_payload_int(payload["id"], "id"),
        name=str(payload.get("name") or ""),
        description=str(payload.get("description") or ""),
        query=str(payload.get("query") or ""),
        data_source_id=(
            _payload_int(data_source_id, "data_source_id") if data_source_id is not None else None
        ),
        latest_query_data_id=(
            _payload_int(latest_id, "latest_query_data_id") if latest_id is not None else None
        ),
    )


def _payload_int(value: object, field_name: str) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    raise FeedQueryError(f"Redash query field '{field_name}' must be an integer, got {value!r}.")


def _parse_job_status(job: Mapping[str, Any]) -> JobStatus:
    raw_status = job.get("status")
    try:
        return JobStatus(raw_status)
    except ValueError as error:
        raise FeedQueryError(f"Unknown job status: {raw_status}") from error


def _job_result_id(job: Mapping[str, Any]) -> int:
    result = job.get("result")
    if isinstance(result, Mapping):
        result = result.get("id")
    if isinstance(result, bool) or not isinstance(result, int):
        raise FeedQueryError("Job completed but no valid result id was returned.")
    return result


def _error_message(error: httpx.HTTPError) -> str:
    if isinstance(error, httpx.HTTPStatusError):
        try:
            body = error.response.json()
        except ValueError:
            body = None
        if isinstance(body, Mapping) and body.get("message"):
            return str(body["message"])
        return f"HTTP {error.response.status_code}"
    return str(error) or type(error).__name__
