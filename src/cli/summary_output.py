"""Plain-text rendering of pipeline results for the CLI.

Each fact is printed as one ``key=value`` line on stdout.
"""

from __future__ import annotations

from core.types import MaterializeSummary, SnapshotDiff
from transforms.score_scaling import format_score


def print_materialize_summary(summary: MaterializeSummary) -> None:
    """Print a materialization summary and any snapshot comparison."""
    print(f"rows={summary.row_count}")
    print(f"input_path={summary.input_path}")
    print(f"output_path={summary.output_path}")
    print(f"entity_type_changes={summary.entity_type_change_count}")
    print(f"scale_factor={format_score(summary.scale_factor)}")
    for header in summary.missing_headers:
        print(f"missing_header={header}")
    if summary.snapshot_diff is not None:
        print_snapshot_diff(summary.snapshot_diff)


def print_snapshot_diff(diff: SnapshotDiff) -> None:
    """Print a snapshot comparison, listing every removed id."""
    print(f"previous_snapshot={diff.previous_path}")
    if diff.previous_unavailable:
        print("previous_unavailable=true")
    print(f"current_keys={diff.current_key_count}")
    print(f"previous_keys={diff.previous_key_count}")
    print(f"removed_count={diff.removed_count}")
    if diff.report_path is not None:
        print(f"report_path={diff.report_path}")
    if diff.report_error is not None:
        print(f"report_error={diff.report_error}")
    for removed_id in diff.removed_ids:
        print(f"removed_id={removed_id}")
