"""Unit tests for snapshot naming and discovery."""

from __future__ import annotations

from datetime import datetime

from store.snapshot_catalog import (
    build_snapshot_name,
    find_previous_snapshot,
    find_previous_snapshot_path,
    is_generational_snapshot,
    list_snapshot_names,
)


def test_find_previous_snapshot_picks_latest_other_generation() -> None:
    """The newest sibling other than the current snapshot should win."""
    candidates = [
        "prod_feed_20250101_120000.csv",
        "prod_feed_20250102_120000.csv",
        "prod_feed_20250103_120000.csv",
    ]

    previous = find_previous_snapshot("prod_feed_20250103_120000.csv", candidates)

    assert previous == "prod_feed_20250102_120000.csv"


def test_find_previous_snapshot_ignores_unrelated_names() -> None:
    """Only conforming snapshot names should be considered."""
    candidates = ["notes.csv", "prod_feed_20250101_120000.csv", "prod_feed_latest.csv"]

    previous = find_previous_snapshot("prod_feed_20250102_000000.csv", candidates)

    assert previous == "prod_feed_20250101_120000.csv"


def test_find_previous_snapshot_returns_none_for_single_generation() -> None:
    """A lone snapshot has no predecessor."""
    name = "prod_feed_20250101_120000.csv"

    assert find_previous_snapshot(name, [name]) is None


def test_find_previous_snapshot_returns_none_for_non_snapshot_current() -> None:
    """Non-conforming current names should not be compared."""
    assert find_previous_snapshot("feed.csv", ["prod_feed_20250101_120000.csv"]) is None


def test_is_generational_snapshot_requires_exact_pattern() -> None:
    """Near-miss names should be rejected."""
    assert is_generational_snapshot("prod_feed_20250101_120000.csv")
    assert not is_generational_snapshot("prod_feed_20250101_120000-removed-entries.csv")
    assert not is_generational_snapshot("prod_feed_2025011_120000.csv")


def test_build_snapshot_name_formats_timestamp() -> None:
    """Snapshot names should embed a zero-padded timestamp."""
    assert build_snapshot_name(datetime(2025, 3, 4, 5, 6, 7)) == "prod_feed_20250304_050607.csv"


def test_list_snapshot_names_scans_directory(tmp_path) -> None:
    """Directory listing should return sorted snapshot names only."""
    for name in ("prod_feed_20250102_000000.csv", "prod_feed_20250101_000000.csv", "x.csv"):
        (tmp_path / name).write_text("discussionId", encoding="utf-8")

    assert list_snapshot_names(tmp_path) == [
        "prod_feed_20250101_000000.csv",
        "prod_feed_20250102_000000.csv",
    ]
    assert list_snapshot_names(tmp_path / "missing") == []


def test_find_previous_snapshot_path_uses_injected_lister(tmp_path) -> None:
    """Candidate names should come from the supplied lister."""
    current_path = tmp_path / "prod_feed_20250102_000000.csv"

    previous_path = find_previous_snapshot_path(
        current_path,
        lambda directory: ["prod_feed_20250101_000000.csv"] if directory == tmp_path else [],
    )

    assert previous_path == tmp_path / "prod_feed_20250101_000000.csv"
