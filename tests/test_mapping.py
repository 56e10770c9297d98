"""Integration tests for point loading, frame mapping tables and the CLI."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

np = pytest.importorskip("numpy")
pd = pytest.importorskip("pandas")

from frame_synchronization.cli import main as cli_main
from frame_synchronization.mapping import (
    blocks_to_dataframe,
    frame_mapping_to_dataframe,
    summarize_mapping,
)
from frame_synchronization.points_loader import load_synchronization_points
from frame_synchronization.synchronizer import FrameSynchronizer, SynchronizationPoint
from frame_synchronization.utils import FrameRange, find_frame_ranges


def write_points_csv(path: Path, rows, columns=("eye_frame", "scene_frame")) -> Path:
    pd.DataFrame(rows, columns=list(columns)).to_csv(path, index=False)
    return path


def test_find_frame_ranges_groups_consecutive_frames():
    frames = [1, 2, 3, 4, 5, 7, 8, 9]
    mask = [False, True, True, False, True, True, True, False]

    assert find_frame_ranges(frames, mask) == [
        FrameRange(2, 3),
        FrameRange(5, 5),
        FrameRange(7, 8),
    ]
    assert find_frame_ranges(frames, mask, min_length=2) == [FrameRange(2, 3), FrameRange(7, 8)]
    assert FrameRange(7, 8).length == 2

    with pytest.raises(ValueError):
        find_frame_ranges([1, 2], [True])


def test_load_points_keeps_file_order(tmp_path: Path):
    path = write_points_csv(tmp_path / "points.csv", [(100, 50), (400, 360), (900, 870)])

    points = load_synchronization_points(path)

    assert points == [
        SynchronizationPoint(100, 50),
        SynchronizationPoint(400, 360),
        SynchronizationPoint(900, 870),
    ]


def test_load_points_accepts_camel_case_columns(tmp_path: Path):
    path = write_points_csv(tmp_path / "points.csv", [(5, 9)], columns=("eyeFrame", "sceneFrame"))

    assert load_synchronization_points(path) == [SynchronizationPoint(5, 9)]


def test_load_points_rejects_bad_files(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_synchronization_points(tmp_path / "missing.csv")

    missing_column = write_points_csv(tmp_path / "eye_only.csv", [(1,)], columns=("eye_frame",))
    with pytest.raises(ValueError):
        load_synchronization_points(missing_column)

    fractional = tmp_path / "fractional.csv"
    fractional.write_text("eye_frame,scene_frame\n1,2\n3.5,4\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_synchronization_points(fractional)


def test_frame_mapping_dataframe_matches_synchronizer():
    sync = FrameSynchronizer([(1, 1), (5, 10)])

    mapping = frame_mapping_to_dataframe(sync, 1, 12)

    assert list(mapping.columns) == ["composite_frame", "block", "eye_frame", "scene_frame"]
    assert mapping["composite_frame"].tolist() == list(range(1, 13))
    assert mapping["block"].tolist() == [0] * 9 + [1] * 3
    assert mapping["eye_frame"].tolist() == [1, 2, 3, 4, -1, -1, -1, -1, -1, 5, 6, 7]
    assert mapping["scene_frame"].tolist() == list(range(1, 13))

    with pytest.raises(ValueError):
        frame_mapping_to_dataframe(sync, 10, 5)


def test_blocks_dataframe_marks_open_ends():
    sync = FrameSynchronizer([(1, 1), (5, 10)])

    blocks = blocks_to_dataframe(sync.blocks)

    assert blocks["start"].tolist() == [1, 10]
    assert blocks.loc[0, "end"] == 9
    assert pd.isna(blocks.loc[1, "end"])
    assert pd.isna(blocks.loc[1, "end_eye_frame"])
    assert blocks.loc[1, "start_scene_frame"] == 10


def test_summary_counts_unavailable_ranges():
    sync = FrameSynchronizer([(1, 1), (5, 10), (20, 16)])
    mapping = frame_mapping_to_dataframe(sync, 1, 30)

    summary = summarize_mapping(mapping)

    assert summary.total_frames == 30
    assert summary.eye_gaps == [FrameRange(5, 9)]
    assert summary.scene_gaps == [FrameRange(16, 24)]
    assert summary.eye_available == 25
    assert summary.scene_available == 21
    assert summary.both_available == 16
    assert summary.eye_coverage() == pytest.approx(25 / 30)

    payload = summary.to_dict()
    assert payload["eye_gaps"] == [[5, 9]]
    assert payload["scene_gaps"] == [[16, 24]]


def test_summary_of_empty_mapping():
    summary = summarize_mapping(pd.DataFrame(columns=["composite_frame", "eye_frame", "scene_frame"]))

    assert summary.total_frames == 0
    assert summary.eye_coverage() == 1.0
    assert summary.first_frame is None


def test_cli_writes_outputs(tmp_path: Path, capsys):
    points_path = write_points_csv(tmp_path / "points.csv", [(1, 1), (5, 10)])
    output_dir = tmp_path / "outputs"

    cli_main(
        [
            "--points",
            str(points_path),
            "--last-frame",
            "20",
            "--output-dir",
            str(output_dir),
        ]
    )

    captured = capsys.readouterr()
    assert "Sync blocks: 2" in captured.out
    assert "Frames without eye data:" in captured.out
    assert "5-9 (5 frames)" in captured.out

    mapping = pd.read_csv(output_dir / "frame_mapping.csv")
    assert len(mapping) == 20
    assert mapping.loc[mapping["composite_frame"] == 10, "eye_frame"].item() == 5

    blocks = pd.read_csv(output_dir / "sync_blocks.csv")
    assert blocks["start"].tolist() == [1, 10]

    with (output_dir / "mapping_summary.json").open("r", encoding="utf-8") as fp:
        summary = json.load(fp)
    assert summary["total_frames"] == 20
    assert summary["eye_gaps"] == [[5, 9]]


def test_cli_without_points_maps_identity(tmp_path: Path, capsys):
    output_dir = tmp_path / "outputs"

    cli_main(["--last-frame", "5", "--output-dir", str(output_dir)])

    captured = capsys.readouterr()
    assert "composite 1-open" in captured.out
    mapping = pd.read_csv(output_dir / "frame_mapping.csv")
    assert mapping["eye_frame"].tolist() == [1, 2, 3, 4, 5]
    assert mapping["scene_frame"].tolist() == [1, 2, 3, 4, 5]


def test_cli_rejects_non_ascending_points(tmp_path: Path):
    points_path = write_points_csv(tmp_path / "points.csv", [(10, 10), (8, 20)])

    with pytest.raises(SystemExit) as excinfo:
        cli_main(["--points", str(points_path), "--last-frame", "20", "--output-dir", str(tmp_path)])
    assert excinfo.value.code == 2

    cli_main(
        [
            "--points",
            str(points_path),
            "--last-frame",
            "20",
            "--output-dir",
            str(tmp_path / "unchecked"),
            "--no-validate",
        ]
    )
    assert (tmp_path / "unchecked" / "frame_mapping.csv").exists()


def test_load_points_reports_file_row_of_bad_value(tmp_path: Path):
    path = tmp_path / "points.csv"
    path.write_text("eye_frame,scene_frame\n1,2\n,\n3.5,4\n", encoding="utf-8")

    with pytest.raises(ValueError, match="data row 3"):
        load_synchronization_points(path)


def test_blocks_dataframe_reports_block_length():
    blocks = blocks_to_dataframe(FrameSynchronizer([(1, 1), (5, 10)]).blocks)

    assert blocks.loc[0, "frames"] == 9
    assert pd.isna(blocks.loc[1, "frames"])


def test_summary_treats_non_positive_frames_as_unavailable():
    mapping = pd.DataFrame(
        {
            "composite_frame": [-2, -1, 0, 1, 2],
            "eye_frame": [-2, -1, 0, 1, 2],
            "scene_frame": [-2, -1, 0, 1, 2],
        }
    )

    summary = summarize_mapping(mapping)

    assert summary.eye_available == 2
    assert summary.eye_gaps == [FrameRange(-2, 0)]
    assert summary.scene_gaps == [FrameRange(-2, 0)]


def test_cli_rejects_first_frame_below_one(tmp_path: Path, capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli_main(["--first-frame", "-3", "--last-frame", "3", "--output-dir", str(tmp_path / "out")])

    assert excinfo.value.code == 2
    assert "--first-frame must be at least 1" in capsys.readouterr().err
    assert not (tmp_path / "out").exists()


def test_cli_prints_block_lengths(tmp_path: Path, capsys):
    cli_main(["--last-frame", "12", "--output-dir", str(tmp_path)])
    assert "(open-ended)" in capsys.readouterr().out
