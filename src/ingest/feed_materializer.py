"""Feed materialization pipeline.

This module reads a raw feed download, decodes it, transforms every
row, and writes the normalized artifact. When the artifact is a
generational snapshot it also compares it with the previous one.
"""

from __future__ import annotations

from pathlib import Path

from core.constants import (
    ARTIFACT_ENCODING,
    ARTIFACT_SUFFIX,
    DEFAULT_FIELD_VALUE,
    TRANSFORMED_NAME_SUFFIX,
)
from core.errors import EmptyInputError, FeedIngestError, FeedPrepError, InputNotFoundError
from core.feed_profile import FeedProfile, default_feed_profile
from core.logging_config import get_logger
from core.types import MaterializeSummary, NormalizedRecord, RawRecord, SnapshotDiff
from ingest.tabular_codec import DecodedTable, decode_table
from store.artifact_io import write_artifact
from store.snapshot_catalog import SnapshotLister, is_generational_snapshot, list_snapshot_names
from store.snapshot_differ import compare_with_previous_snapshot
from transforms.row_transformer import transform_record

_LOGGER = get_logger(__name__)


def materialize_feed(
    input_path: str | Path,
    output_path: str | Path | None = None,
    profile: FeedProfile | None = None,
    snapshot_lister: SnapshotLister = list_snapshot_names,
) -> MaterializeSummary:
    """Normalize a raw feed file into an artifact.

    Args:
        input_path: Raw delimited feed file.
        output_path: Destination artifact; derived from the input name
            when omitted.
        profile: Field mapping and rules; production defaults when omitted.
        snapshot_lister: Provider of candidate snapshot names used by the
            generational comparison.

    Returns:
        Transformation summary.

    Raises:
        InputNotFoundError: If the input path does not exist.
        EmptyInputError: If the input is blank.
        FeedStoreError: If the artifact cannot be written.
    """
    feed_profile = profile or default_feed_profile()
    source_path = Path(input_path).expanduser()
    table = decode_table(_read_input_text(source_path))
    if table.is_empty:
        raise EmptyInputError(
            f"Input file is empty: {source_path}. Re-fetch the feed before materializing."
        )
    missing_headers = find_missing_headers(table, feed_profile)
    if missing_headers:
        _LOGGER.warning(
            "header_mismatch",
            input_path=str(source_path),
            missing_headers=list(missing_headers),
        )
    records = [
        transform_record(build_raw_record(table, row, feed_profile), feed_profile)
        for row in table.rows
    ]
    target_path = (
        Path(output_path).expanduser() if output_path else derive_output_path(source_path)
    )
    write_artifact(target_path, feed_profile.field_mapping.normalized_names, records)
    change_count = count_entity_type_rewrites(records, feed_profile)
    _LOGGER.info(
        "feed_materialized",
        input_path=str(source_path),
        output_path=str(target_path),
        row_count=len(records),
        entity_type_change_count=change_count,
        scale_factor=feed_profile.scale_factor,
    )
    snapshot_diff = _compare_if_snapshot(target_path, feed_profile, snapshot_lister)
    return MaterializeSummary(
        input_path=source_path,
        output_path=target_path,
        row_count=len(records),
        entity_type_change_count=change_count,
        scale_factor=feed_profile.scale_factor,
        missing_headers=missing_headers,
        snapshot_diff=snapshot_diff,
    )


def derive_output_path(input_path: Path) -> Path:
    """Return ``<input-dir>/<input-stem>_transformed.csv``."""
    return input_path.parent / f"{input_path.stem}{TRANSFORMED_NAME_SUFFIX}{ARTIFACT_SUFFIX}"


def find_missing_headers(table: DecodedTable, profile: FeedProfile) -> tuple[str, ...]:
    """Return expected raw columns absent from the decoded header."""
    return tuple(name for name in profile.field_mapping.raw_names if name not in table.header)


def build_raw_record(
    table: DecodedTable,
    row: tuple[str, ...],
    profile: FeedProfile,
) -> RawRecord:
    """Resolve a decoded row into a raw record by header name.

    Args:
        table: Decoded table providing header positions.
        row: One decoded data row.
        profile: Field mapping naming the raw columns to resolve.

    Returns:
        Raw record with defaults for absent or empty fields.
    """
    score_column = profile.field_mapping.raw_name_for(profile.score_field)
    record: dict[str, str] = {}
    for raw_name in profile.field_mapping.raw_names:
        default = profile.score_default if raw_name == score_column else DEFAULT_FIELD_VALUE
        record[raw_name] = table.value(row, raw_name, default)
    return record


def count_entity_type_rewrites(records: list[NormalizedRecord], profile: FeedProfile) -> int:
    """Count rows whose final entity type is the rewrite target.

    Rows that already carried the target value are counted as well.
    """
    return sum(
        1
        for record in records
        if record.get(profile.entity_type_field) == profile.entity_type_target
    )


def _read_input_text(source_path: Path) -> str:
    """Read raw input text.

    Args:
        source_path: Raw feed file.

    Returns:
        File content.

    Raises:
        InputNotFoundError: If the path does not exist.
        FeedIngestError: If the file cannot be read.
    """
    if not source_path.exists():
        raise InputNotFoundError(
            f"Input file not found: {source_path}. Provide an existing raw feed file."
        )
    try:
        text = source_path.read_text(encoding=ARTIFACT_ENCODING)
    except (OSError, UnicodeDecodeError) as error:
        raise FeedIngestError(
            f"Failed to read input file {source_path}: {error}. "
            "Check file permissions and that the file is UTF-8 text."
        ) from error
    return text


def _compare_if_snapshot(
    target_path: Path,
    profile: FeedProfile,
    snapshot_lister: SnapshotLister,
) -> SnapshotDiff | None:
    if not is_generational_snapshot(target_path.name):
        return None
    try:
        return compare_with_previous_snapshot(target_path, profile.key_field, snapshot_lister)
    except (FeedPrepError, OSError) as error:
        _LOGGER.warning(
            "snapshot_comparison_failed",
            output_path=str(target_path),
            reason=str(error),
        )
        return None
