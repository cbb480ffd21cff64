"""feedprep CLI entry points.
This module exposes feed materialization, snapshot diff, and Redash commands.
It maps argparse commands onto pipeline calls and exit codes.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any, Sequence

from dotenv import load_dotenv

from cli.prep_feed_command import add_prep_feed_command, run_prep_feed_command
from cli.query_commands import (
    add_query_commands,
    run_fetch_cached_command,
    run_fetch_command,
    run_list_queries_command,
    run_query_info_command,
)
from cli.summary_output import print_materialize_summary, print_snapshot_diff
from core.config import FeedPrepConfig
from core.errors import FeedPrepError
from core.feed_profile import FeedProfile, resolve_feed_profile
from core.logging_config import configure_logging
from ingest.feed_materializer import materialize_feed
from store.snapshot_differ import compare_with_previous_snapshot, diff_snapshots


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(
        prog="feedprep",
        description="Feed normalization and snapshot drift CLI",
    )
    parser.add_argument("--profile", help="YAML feed profile overriding the default schema")
    parser.add_argument(
        "--scale-factor",
        type=float,
        help="Override FEEDPREP_SCORE_SCALE for this command",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_materialize_command(subparsers)
    _add_diff_command(subparsers)
    add_query_commands(subparsers)
    add_prep_feed_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the feedprep CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = FeedPrepConfig.from_env()
        configure_logging(config.log_level)
        profile = resolve_feed_profile(args.profile, config.score_scale_factor, args.scale_factor)
        return _dispatch(parser, config, profile, args)
    except FeedPrepError as error:
        print(f"error={error}")
        return 1


def _dispatch(
    parser: argparse.ArgumentParser,
    config: FeedPrepConfig,
    profile: FeedProfile,
    args: argparse.Namespace,
) -> int:
    if args.command == "materialize":
        return _run_materialize_command(profile, args)
    if args.command == "diff":
        return _run_diff_command(profile, args)
    if args.command == "fetch":
        return run_fetch_command(config, args)
    if args.command == "fetch-cached":
        return run_fetch_cached_command(config, args)
    if args.command == "list-queries":
        return run_list_queries_command(config, args)
    if args.command == "query-info":
        return run_query_info_command(config, args)
    if args.command == "prep-feed":
        return run_prep_feed_command(config, profile, args)
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _run_materialize_command(profile: FeedProfile, args: argparse.Namespace) -> int:
    """Handle materialize command.

    Args:
        profile: Effective feed profile.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    summary = materialize_feed(args.input, args.output, profile)
    print_materialize_summary(summary)
    return 0


def _run_diff_command(profile: FeedProfile, args: argparse.Namespace) -> int:
    """Handle diff command.

    Args:
        profile: Effective feed profile providing the key column.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    current_path = Path(args.current).expanduser()
    if args.previous:
        diff = diff_snapshots(current_path, Path(args.previous).expanduser(), profile.key_field)
    else:
        diff = compare_with_previous_snapshot(current_path, profile.key_field)
    if diff is None:
        print("previous_snapshot=-")
        return 0
    print_snapshot_diff(diff)
    return 0


def _add_materialize_command(subparsers: Any) -> None:
    """Register materialize subcommand."""
    parser = subparsers.add_parser(
        "materialize",
        help="Normalize a raw feed CSV and compare generational snapshots",
    )
    parser.add_argument("input", help="Raw feed CSV file")
    parser.add_argument(
        "output",
        nargs="?",
        help="Output path; defaults to <input>_transformed.csv",
    )


def _add_diff_command(subparsers: Any) -> None:
    """Register diff subcommand."""
    parser = subparsers.add_parser(
        "diff",
        help="Report entries removed since the previous snapshot",
    )
    parser.add_argument("current", help="Current normalized snapshot")
    parser.add_argument(
        "--previous",
        help="Explicit previous snapshot; defaults to the latest sibling prod_feed file",
    )
