"""Public SDK surface for feedprep.

This module provides a stable import path for pipeline users.
It re-exports the materializer, snapshot differ, codec, and query client.
"""

from __future__ import annotations

from core.config import FeedPrepConfig
from core.feed_profile import FeedProfile, default_feed_profile, load_feed_profile
from core.types import FieldMapping, MaterializeSummary, PreparedFeed, SnapshotDiff
from ingest.feed_materializer import materialize_feed
from ingest.feed_preparation import prepare_prod_feed
from ingest.query_client import RedashQueryClient, build_query_client
from ingest.tabular_codec import decode_rows, decode_table, encode_rows
from store.snapshot_catalog import find_previous_snapshot, list_snapshot_names
from store.snapshot_differ import diff_snapshots, extract_snapshot_keys
from transforms.row_transformer import transform_record

__all__ = [
    "FeedPrepConfig",
    "FeedProfile",
    "FieldMapping",
    "MaterializeSummary",
    "PreparedFeed",
    "RedashQueryClient",
    "SnapshotDiff",
    "build_query_client",
    "decode_rows",
    "decode_table",
    "default_feed_profile",
    "diff_snapshots",
    "encode_rows",
    "extract_snapshot_keys",
    "find_previous_snapshot",
    "list_snapshot_names",
    "load_feed_profile",
    "materialize_feed",
    "prepare_prod_feed",
    "transform_record",
]
