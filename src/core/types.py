"""Shared typed models.

This module defines immutable data models used by the codec, transforms,
materializer, snapshot differ, and query client to keep interfaces explicit.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping

RawRecord = Mapping[str, str]
NormalizedRecord = dict[str, str]


@dataclass(frozen=True)
class FieldMapping:
    """Ordered raw-to-normalized field name mapping.

    Attributes:
        pairs: Ordered ``(raw_name, normalized_name)`` pairs. Order defines
            the column order of every normalized artifact.
    """

    pairs: tuple[tuple[str, str], ...]

    @property
    def raw_names(self) -> tuple[str, ...]:
        """Raw input column names in mapping order."""
        return tuple(raw_name for raw_name, _ in self.pairs)

    @property
    def normalized_names(self) -> tuple[str, ...]:
        """Normalized output column names in mapping order."""
        return tuple(normalized_name for _, normalized_name in self.pairs)

    def raw_name_for(self, normalized_name: str) -> str | None:
        """Return the raw column feeding a normalized column, if mapped."""
        for raw_name, candidate in self.pairs:
            if candidate == normalized_name:
                return raw_name
        return None


@dataclass(frozen=True)
class SnapshotDiff:
    """Outcome of comparing two generational snapshots.

    Attributes:
        current_path: Snapshot being published.
        previous_path: Most recent earlier snapshot.
        current_key_count: Distinct keys found in the current snapshot.
        previous_key_count: Distinct keys found in the previous snapshot.
        removed_ids: Keys present previously but absent now, in previous order.
        report_path: Persisted removal report, when one was written.
        report_error: Reason the removal report could not be written.
        previous_unavailable: Whether the previous snapshot could not be read
            or lacks the key column, so no comparison was possible.
    """

    current_path: Path
    previous_path: Path
    current_key_count: int
    previous_key_count: int
    removed_ids: tuple[str, ...]
    report_path: Path | None = None
    report_error: str | None = None
    previous_unavailable: bool = False

    @property
    def removed_count(self) -> int:
        """Number of removed keys."""
        return len(self.removed_ids)


@dataclass(frozen=True)
class MaterializeSummary:
    """Summary of one feed materialization run.

    Attributes:
        input_path: Raw input file.
        output_path: Written normalized artifact.
        row_count: Number of data rows written.
        entity_type_change_count: Rows whose final entity type is the rewrite target.
        scale_factor: Score multiplier that was applied.
        missing_headers: Expected raw columns absent from the input header.
        snapshot_diff: Result of the generational comparison, when one ran.
    """

    input_path: Path
    output_path: Path
    row_count: int
    entity_type_change_count: int
    scale_factor: float
    missing_headers: tuple[str, ...] = ()
    snapshot_diff: SnapshotDiff | None = None


@dataclass(frozen=True)
class QueryInfo:
    """Redash query metadata."""

    query_id: int
    name: str
    description: str
    query: str
    data_source_id: int | None
    latest_query_data_id: int | None = None


@dataclass(frozen=True)
class QueryResultTable:
    """Tabular payload of a Redash query result.

    Attributes:
        columns: Column names in result order.
        rows: Row objects keyed by column name.
        retrieved_at: Server-side retrieval timestamp, when reported.
        runtime_seconds: Query runtime, when reported.
    """

    columns: tuple[str, ...]
    rows: tuple[Mapping[str, Any], ...]
    retrieved_at: str | None = None
    runtime_seconds: float | None = None


@dataclass(frozen=True)
class QueryListing:
    """One page of Redash query summaries."""

    page: int
    total_count: int
    queries: tuple[QueryInfo, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class PreparedFeed:
    """Result of an end-to-end production feed preparation.

    Attributes:
        query_id: Redash query that produced the raw feed.
        timestamp: Timestamp encoded into the snapshot file name.
        raw_path: Temporary raw download location (removed after success).
        summary: Materialization summary for the published snapshot.
    """

    query_id: int
    timestamp: datetime
    raw_path: Path
    summary: MaterializeSummary
