"""Redash query command wiring for feedprep CLI."""

from __future__ import annotations

import argparse
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from core.config import FeedPrepConfig
from core.constants import DEFAULT_QUERY_PAGE_SIZE
from ingest.query_client import build_query_client, export_result_csv


def add_query_commands(subparsers: Any) -> None:
    """Register Redash query subcommands."""
    fetch_parser = subparsers.add_parser("fetch", help="Execute a Redash query and save CSV")
    fetch_parser.add_argument("query_id", type=int, help="Redash query id")
    fetch_parser.add_argument("output", nargs="?", help="Optional output CSV path")

    cached_parser = subparsers.add_parser(
        "fetch-cached",
        help="Save the latest cached result of a Redash query",
    )
    cached_parser.add_argument("query_id", type=int, help="Redash query id")
    cached_parser.add_argument("output", nargs="?", help="Optional output CSV path")

    list_parser = subparsers.add_parser("list-queries", help="List saved Redash queries")
    list_parser.add_argument("--page", type=int, default=1, help="Result page number")
    list_parser.add_argument(
        "--page-size",
        type=int,
        default=DEFAULT_QUERY_PAGE_SIZE,
        help="Queries per page",
    )

    info_parser = subparsers.add_parser("query-info", help="Show Redash query details")
    info_parser.add_argument("query_id", type=int, help="Redash query id")


def run_fetch_command(config: FeedPrepConfig, args: argparse.Namespace) -> int:
    """Execute a query and export its fresh result."""
    output_path = _output_path(args.output, f"query_{args.query_id}")
    with build_query_client(config) as client:
        result = client.execute_query(args.query_id)
    row_count = export_result_csv(result, output_path)
    print(f"output_path={output_path}")
    print(f"rows={row_count}")
    print(f"columns={len(result.columns)}")
    return 0


def run_fetch_cached_command(config: FeedPrepConfig, args: argparse.Namespace) -> int:
    """Export the latest cached result of a query, if one exists."""
    with build_query_client(config) as client:
        result = client.get_cached_result(args.query_id)
    if result is None:
        print("cached_result=-")
        return 0
    output_path = _output_path(args.output, f"query_{args.query_id}_cached")
    row_count = export_result_csv(result, output_path)
    print(f"retrieved_at={result.retrieved_at or '-'}")
    print(f"output_path={output_path}")
    print(f"rows={row_count}")
    print(f"columns={len(result.columns)}")
    return 0


def run_list_queries_command(config: FeedPrepConfig, args: argparse.Namespace) -> int:
    """Print one page of saved queries."""
    with build_query_client(config) as client:
        listing = client.list_queries(page=args.page, page_size=args.page_size)
    for query in listing.queries:
        print(f"{query.query_id}\t{query.name}\t{query.description or '-'}")
    print(f"total={listing.total_count}")
    return 0


def run_query_info_command(config: FeedPrepConfig, args: argparse.Namespace) -> int:
    """Print metadata and SQL of one query."""
    with build_query_client(config) as client:
        query = client.get_query(args.query_id)
    print(f"id={query.query_id}")
    print(f"name={query.name}")
    print(f"description={query.description or '-'}")
    print(f"data_source_id={query.data_source_id if query.data_source_id is not None else '-'}")
    print(f"query={query.query}")
    return 0


def _output_path(explicit_path: str | None, default_stem: str) -> Path:
    if explicit_path:
        return Path(explicit_path).expanduser()
    timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%fZ")
    return Path(f"{default_stem}_{timestamp}.csv")
