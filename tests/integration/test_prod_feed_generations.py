"""Integration tests for generational feed publishing."""

from __future__ import annotations

from pathlib import Path

from feedprep import default_feed_profile, diff_snapshots, materialize_feed


def _write_raw(path: Path, rows: list[str]) -> None:
    header = "discussionid,discussiontype,entityid,entitytype,discussioncreatedat,score"
    path.write_text("\n".join([header, *rows]) + "\n", encoding="utf-8")


def test_two_generations_report_removed_entries(tmp_path) -> None:
    """Publishing a second generation should report entries that vanished."""
    raw_path = tmp_path / "raw.csv"
    profile = default_feed_profile(100)
    _write_raw(
        raw_path,
        ["1,q,E1,update,2025-01-01,0.1", "2,q,E2,task,2025-01-01,0.2", "3,q,E3,update,x,0.3"],
    )
    first = materialize_feed(raw_path, tmp_path / "prod_feed_20250101_000000.csv", profile)
    _write_raw(raw_path, ["1,q,E1,update,2025-01-02,0.1", "4,q,E4,task,2025-01-02,0.4"])

    second = materialize_feed(raw_path, tmp_path / "prod_feed_20250102_000000.csv", profile)

    assert first.snapshot_diff is None
    assert second.snapshot_diff is not None
    assert second.snapshot_diff.removed_ids == ("2", "3")
    report_path = tmp_path / "prod_feed_20250102_000000-removed-entries.csv"
    assert report_path.read_text(encoding="utf-8") == "discussionId\n2\n3"


def test_third_generation_compares_with_latest_only(tmp_path) -> None:
    """Each generation should be compared with its immediate predecessor."""
    raw_path = tmp_path / "raw.csv"
    profile = default_feed_profile()
    for stamp, ids in (("20250101", ["1", "2"]), ("20250102", ["1"]), ("20250103", ["1"])):
        _write_raw(raw_path, [f"{key},q,E,task,d,1" for key in ids])
        summary = materialize_feed(raw_path, tmp_path / f"prod_feed_{stamp}_000000.csv", profile)

    assert summary.snapshot_diff is not None
    assert summary.snapshot_diff.previous_path.name == "prod_feed_20250102_000000.csv"
    assert summary.snapshot_diff.removed_ids == ()
    assert not (tmp_path / "prod_feed_20250103_000000-removed-entries.csv").exists()
    assert diff_snapshots(
        tmp_path / "prod_feed_20250103_000000.csv",
        tmp_path / "prod_feed_20250101_000000.csv",
    ).removed_ids == ("2",)
