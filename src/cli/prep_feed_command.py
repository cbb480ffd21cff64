"""Production feed preparation command wiring for feedprep CLI."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from cli.summary_output import print_materialize_summary
from core.config import FeedPrepConfig
from core.errors import FeedConfigError
from core.feed_profile import FeedProfile
from ingest.feed_preparation import prepare_prod_feed
from ingest.query_client import build_query_client


def add_prep_feed_command(subparsers: Any) -> None:
    """Register prep-feed subcommand."""
    parser = subparsers.add_parser(
        "prep-feed",
        help="Fetch the feed query and publish a timestamped prod_feed snapshot",
    )
    parser.add_argument("--query-id", type=int, help="Override FEEDPREP_QUERY_ID")
    parser.add_argument(
        "--output-dir",
        default=".",
        help="Directory receiving prod_feed_<timestamp>.csv snapshots",
    )


def run_prep_feed_command(
    config: FeedPrepConfig,
    profile: FeedProfile,
    args: argparse.Namespace,
) -> int:
    """Run the production feed preparation workflow."""
    query_id = args.query_id if args.query_id is not None else config.query_id
    if query_id is None:
        raise FeedConfigError(
            "No feed query id configured. Pass --query-id or set FEEDPREP_QUERY_ID."
        )
    with build_query_client(config) as client:
        prepared = prepare_prod_feed(
            client,
            query_id=query_id,
            output_dir=Path(args.output_dir).expanduser(),
            work_dir=config.work_dir,
            profile=profile,
        )
    print(f"query_id={prepared.query_id}")
    print_materialize_summary(prepared.summary)
    return 0
