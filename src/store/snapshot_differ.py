"""Generational snapshot comparison.

This module extracts the key column from two normalized snapshots,
reports keys that disappeared between them, and persists a removal
report next to the current snapshot. Lookup and report failures are
absorbed so a publish never fails because of the comparison.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

from core.constants import (
    ARTIFACT_ENCODING,
    ARTIFACT_SUFFIX,
    KEY_FIELD_NAME,
    REMOVAL_REPORT_SUFFIX,
)
from core.errors import FeedStoreError
from core.logging_config import get_logger
from core.types import SnapshotDiff
from ingest.tabular_codec import decode_table, encode_rows
from store.artifact_io import write_text_artifact
from store.snapshot_catalog import SnapshotLister, find_previous_snapshot_path, list_snapshot_names

_LOGGER = get_logger(__name__)


def removal_report_path(current_path: Path) -> Path:
    """Return ``<current-stem>-removed-entries.csv`` beside the snapshot."""
    return current_path.parent / f"{current_path.stem}{REMOVAL_REPORT_SUFFIX}{ARTIFACT_SUFFIX}"


def extract_snapshot_keys(artifact_path: Path, key_field: str = KEY_FIELD_NAME) -> tuple[str, ...]:
    """Read the distinct key values of a snapshot in file order.

    Args:
        artifact_path: Normalized artifact to read.
        key_field: Header name of the key column.

    Returns:
        Distinct keys; empty when the file is unreadable, has no key
        column, or has no data rows.
    """
    keys = _read_snapshot_keys(artifact_path, key_field)
    return keys if keys is not None else ()


def _read_snapshot_keys(artifact_path: Path, key_field: str) -> tuple[str, ...] | None:
    """Return distinct keys, or None when the snapshot cannot be compared."""
    try:
        text = artifact_path.read_text(encoding=ARTIFACT_ENCODING)
    except (OSError, UnicodeDecodeError) as error:
        _LOGGER.warning(
            "snapshot_keys_unavailable",
            artifact_path=str(artifact_path),
            reason=str(error),
        )
        return None
    table = decode_table(text)
    key_index = table.column_index(key_field)
    if key_index is None:
        _LOGGER.warning(
            "snapshot_keys_unavailable",
            artifact_path=str(artifact_path),
            reason=f"column '{key_field}' not found",
        )
        return None
    if not table.rows:
        _LOGGER.warning(
            "snapshot_keys_unavailable",
            artifact_path=str(artifact_path),
            reason="no data rows",
        )
        return ()
    keys: dict[str, None] = {}
    for row in table.rows:
        if len(row) > key_index:
            keys.setdefault(row[key_index], None)
    return tuple(keys)


def diff_snapshots(
    current_path: Path,
    previous_path: Path,
    key_field: str = KEY_FIELD_NAME,
) -> SnapshotDiff:
    """Report keys present in the previous snapshot but not the current one.

    Additions are not reported. A removal report is written only when
    something was removed; a failed write is recorded on the result.

    Args:
        current_path: Snapshot being published.
        previous_path: Most recent earlier snapshot.
        key_field: Header name of the key column.

    Returns:
        Comparison outcome.
    """
    current_keys = extract_snapshot_keys(current_path, key_field)
    previous_read = _read_snapshot_keys(previous_path, key_field)
    previous_keys = previous_read if previous_read is not None else ()
    current_key_set = set(current_keys)
    removed_ids = tuple(key for key in previous_keys if key not in current_key_set)
    _LOGGER.info(
        "snapshots_compared",
        current_path=str(current_path),
        previous_path=str(previous_path),
        current_key_count=len(current_keys),
        previous_key_count=len(previous_keys),
        removed_count=len(removed_ids),
        previous_unavailable=previous_read is None,
    )
    diff = SnapshotDiff(
        current_path=current_path,
        previous_path=previous_path,
        current_key_count=len(current_keys),
        previous_key_count=len(previous_keys),
        removed_ids=removed_ids,
        previous_unavailable=previous_read is None,
    )
    if not removed_ids:
        return diff
    return _persist_removal_report(diff, key_field)


def compare_with_previous_snapshot(
    current_path: Path,
    key_field: str = KEY_FIELD_NAME,
    snapshot_lister: SnapshotLister = list_snapshot_names,
) -> SnapshotDiff | None:
    """Diff a snapshot against its most recent predecessor, if any.

    Args:
        current_path: Snapshot being published.
        key_field: Header name of the key column.
        snapshot_lister: Provider of candidate snapshot names.

    Returns:
        Comparison outcome, or None when there is nothing to compare.
    """
    previous_path = find_previous_snapshot_path(current_path, snapshot_lister)
    if previous_path is None:
        _LOGGER.info("previous_snapshot_not_found", current_path=str(current_path))
        return None
    return diff_snapshots(current_path, previous_path, key_field)


def _persist_removal_report(diff: SnapshotDiff, key_field: str) -> SnapshotDiff:
    report_path = removal_report_path(diff.current_path)
    rows = [[key_field], *([removed_id] for removed_id in diff.removed_ids)]
    try:
        write_text_artifact(report_path, encode_rows(rows))
    except FeedStoreError as error:
        _LOGGER.error(
            "removal_report_write_failed",
            report_path=str(report_path),
            removed_count=diff.removed_count,
            reason=str(error),
        )
        return replace(diff, report_error=str(error))
    _LOGGER.warning(
        "snapshot_entries_removed",
        report_path=str(report_path),
        removed_count=diff.removed_count,
    )
    return replace(diff, report_path=report_path)
