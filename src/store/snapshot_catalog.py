"""Generational snapshot naming and discovery.

Snapshot files are named ``prod_feed_<YYYYMMDD>_<HHMMSS>.csv``; with a
zero-padded timestamp, lexicographic order is chronological order.
Candidate names are supplied by a lister so discovery logic stays
independent of any particular directory scan.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, Sequence

from core.constants import (
    ARTIFACT_SUFFIX,
    SNAPSHOT_FILE_PATTERN,
    SNAPSHOT_FILE_PREFIX,
    SNAPSHOT_TIMESTAMP_FORMAT,
)

SnapshotLister = Callable[[Path], Sequence[str]]


def is_generational_snapshot(file_name: str) -> bool:
    """Return whether a file name follows the snapshot convention."""
    return SNAPSHOT_FILE_PATTERN.match(file_name) is not None


def build_snapshot_name(timestamp: datetime) -> str:
    """Build the snapshot file name for a timestamp."""
    stamp = timestamp.strftime(SNAPSHOT_TIMESTAMP_FORMAT)
    return f"{SNAPSHOT_FILE_PREFIX}_{stamp}{ARTIFACT_SUFFIX}"


def list_snapshot_names(directory: Path) -> list[str]:
    """List snapshot file names in a directory, oldest first.

    Args:
        directory: Directory to scan.

    Returns:
        Sorted snapshot file names; empty when the directory is missing.
    """
    if not directory.is_dir():
        return []
    return sorted(
        entry.name
        for entry in directory.iterdir()
        if entry.is_file() and is_generational_snapshot(entry.name)
    )


def find_previous_snapshot(current_name: str, candidate_names: Iterable[str]) -> str | None:
    """Select the most recent snapshot other than the current one.

    Args:
        current_name: File name of the snapshot being published.
        candidate_names: Sibling file names in any order.

    Returns:
        Previous snapshot name, or None when the current name is not a
        snapshot or no other snapshot exists.
    """
    if not is_generational_snapshot(current_name):
        return None
    previous_names = sorted(
        (
            name
            for name in candidate_names
            if name != current_name and is_generational_snapshot(name)
        ),
        reverse=True,
    )
    return previous_names[0] if previous_names else None


def find_previous_snapshot_path(
    current_path: Path,
    snapshot_lister: SnapshotLister = list_snapshot_names,
) -> Path | None:
    """Resolve the previous snapshot sitting next to the current one.

    Args:
        current_path: Path of the snapshot being published.
        snapshot_lister: Provider of candidate names for a directory.

    Returns:
        Path of the previous snapshot, or None.
    """
    directory = current_path.parent
    previous_name = find_previous_snapshot(current_path.name, snapshot_lister(directory))
    if previous_name is None:
        return None
    return directory / previous_name
