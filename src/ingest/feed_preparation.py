"""Production feed preparation workflow.

This module runs one production refresh end to end: execute the feed
query, export the raw result to a work directory, materialize it as a
timestamped ``prod_feed`` snapshot, and remove the raw download.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from core.constants import ARTIFACT_SUFFIX, SNAPSHOT_TIMESTAMP_FORMAT
from core.feed_profile import FeedProfile
from core.logging_config import get_logger
from core.types import PreparedFeed
from ingest.feed_materializer import materialize_feed
from ingest.query_client import RedashQueryClient, export_result_csv
from store.snapshot_catalog import SnapshotLister, build_snapshot_name, list_snapshot_names

_LOGGER = get_logger(__name__)


def prepare_prod_feed(
    client: RedashQueryClient,
    query_id: int,
    output_dir: Path,
    work_dir: Path,
    profile: FeedProfile,
    now: datetime | None = None,
    snapshot_lister: SnapshotLister = list_snapshot_names,
) -> PreparedFeed:
    """Fetch, normalize, and publish one production feed snapshot.

    The raw download is kept when any step fails so it can be inspected.

    Args:
        client: Redash query client.
        query_id: Feed query id.
        output_dir: Directory receiving ``prod_feed_<timestamp>.csv``.
        work_dir: Directory for the temporary raw download.
        profile: Normalization profile.
        now: Snapshot timestamp; local time when omitted.
        snapshot_lister: Provider of candidate snapshot names.

    Returns:
        Prepared feed description including the materialization summary.
    """
    timestamp = now or datetime.now()
    stamp = timestamp.strftime(SNAPSHOT_TIMESTAMP_FORMAT)
    raw_path = work_dir / f"query_{query_id}_raw_{stamp}{ARTIFACT_SUFFIX}"
    snapshot_path = output_dir / build_snapshot_name(timestamp)
    _LOGGER.info(
        "feed_preparation_started",
        query_id=query_id,
        raw_path=str(raw_path),
        snapshot_path=str(snapshot_path),
    )
    result = client.execute_query(query_id)
    export_result_csv(result, raw_path)
    summary = materialize_feed(raw_path, snapshot_path, profile, snapshot_lister)
    _remove_work_files(raw_path, work_dir)
    _LOGGER.info(
        "feed_preparation_completed",
        query_id=query_id,
        snapshot_path=str(snapshot_path),
        row_count=summary.row_count,
    )
    return PreparedFeed(query_id=query_id, timestamp=timestamp, raw_path=raw_path, summary=summary)


def _remove_work_files(raw_path: Path, work_dir: Path) -> None:
    """Delete the raw download and the work directory when left empty."""
    raw_path.unlink(missing_ok=True)
    if work_dir.is_dir() and not any(work_dir.iterdir()):
        work_dir.rmdir()
        _LOGGER.info("work_dir_removed", work_dir=str(work_dir))
