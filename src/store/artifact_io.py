"""Artifact file persistence helpers.

This module isolates text IO for normalized artifacts and reports.
It keeps materialization and diff logic focused on business flow.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Mapping, Sequence

from core.constants import ARTIFACT_ENCODING
from core.errors import FeedStoreError
from ingest.tabular_codec import encode_rows


def write_artifact(
    output_path: Path,
    header: Sequence[str],
    records: Iterable[Mapping[str, str]],
) -> None:
    """Encode records and write them as a complete artifact.

    Any existing file at the path is overwritten.

    Args:
        output_path: Destination file.
        header: Column names in output order.
        records: Records keyed by column name.

    Raises:
        FeedStoreError: If the file cannot be written.
    """
    rows = [list(header)]
    rows.extend([record.get(name, "") for name in header] for record in records)
    write_text_artifact(output_path, encode_rows(rows))


def write_text_artifact(output_path: Path, content: str) -> None:
    """Write pre-encoded artifact text.

    Args:
        output_path: Destination file.
        content: Encoded artifact body.

    Raises:
        FeedStoreError: If the file cannot be written.
    """
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(content, encoding=ARTIFACT_ENCODING)
    except OSError as error:
        raise FeedStoreError(
            f"Failed to write artifact at {output_path}: {error}. "
            "Check the directory exists and is writable."
        ) from error
