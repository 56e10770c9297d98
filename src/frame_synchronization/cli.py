"""Command line entry point for mapping composite frames to eye/scene frames."""

from __future__ import annotations

import argparse
import json
import logging
import os
from pathlib import Path
from typing import Iterable

import pandas as pd

from .mapping import (
    MappingSummary,
    blocks_to_dataframe,
    frame_mapping_to_dataframe,
    summarize_mapping,
)
from .points_loader import load_synchronization_points
from .synchronizer import FrameSynchronizer, InvalidSynchronizationPoints

OUTPUT_MAPPING = "frame_mapping.csv"
OUTPUT_BLOCKS = "sync_blocks.csv"
OUTPUT_SUMMARY = "mapping_summary.json"
LOG_LEVEL_ENV = "FRAME_SYNC_LOG_LEVEL"

log = logging.getLogger(__name__)


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Map composite frame indices onto eye and scene frame numbers."
    )
    parser.add_argument(
        "--points",
        default=None,
        help="CSV file with eye_frame/scene_frame synchronization points. "
        "Without it the streams are treated as already aligned.",
    )
    parser.add_argument(
        "--first-frame",
        type=int,
        default=1,
        help="First composite frame to map.",
    )
    parser.add_argument(
        "--last-frame",
        type=int,
        required=True,
        help="Last composite frame to map (inclusive).",
    )
    parser.add_argument(
        "--output-dir",
        default="outputs",
        help="Directory where the mapping (CSV/JSON) will be written.",
    )
    parser.add_argument(
        "--no-validate",
        action="store_true",
        help="Accept overlapping or non-ascending synchronization points.",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get(LOG_LEVEL_ENV, "WARNING"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help=f"Logging verbosity (defaults to ${LOG_LEVEL_ENV} or WARNING).",
    )
    return parser


def setup_logging(level_name: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level_name, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def write_outputs(
    output_dir: Path,
    mapping: pd.DataFrame,
    blocks: pd.DataFrame,
    summary: MappingSummary,
) -> None:
    output_dir.mkdir(parents=True, exist_ok=True)
    mapping.to_csv(output_dir / OUTPUT_MAPPING, index=False)
    blocks.to_csv(output_dir / OUTPUT_BLOCKS, index=False)
    with (output_dir / OUTPUT_SUMMARY).open("w", encoding="utf-8") as fp:
        json.dump(summary.to_dict(), fp, indent=2, ensure_ascii=False)


def _format_end(value) -> str:
    return "open" if pd.isna(value) else str(int(value))


def _format_length(value) -> str:
    return "open-ended" if pd.isna(value) else f"{int(value)} frames"


def main(argv: Iterable[str] | None = None) -> None:
    parser = build_argument_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    if args.first_frame < 1:
        parser.error("--first-frame must be at least 1; composite frames are 1-based.")
    if args.last_frame < args.first_frame:
        parser.error("--last-frame must not be smaller than --first-frame.")

    points = []
    if args.points:
        try:
            points = load_synchronization_points(args.points)
        except (FileNotFoundError, ValueError) as exc:
            parser.error(f"Cannot read synchronization points: {exc}")

    try:
        synchronizer = FrameSynchronizer(points, validate=not args.no_validate)
    except InvalidSynchronizationPoints as exc:
        parser.error(f"Invalid synchronization points: {exc}")

    mapping = frame_mapping_to_dataframe(synchronizer, args.first_frame, args.last_frame)
    blocks = blocks_to_dataframe(synchronizer.blocks)
    summary = summarize_mapping(mapping)
    log.debug("mapped %d composite frame(s)", summary.total_frames)

    print(f"Sync blocks: {len(blocks)}")
    for row in blocks.itertuples(index=False):
        print(
            f"  block {row.block}: composite {row.start}-{_format_end(row.end)} "
            f"eye {row.start_eye_frame}-{_format_end(row.end_eye_frame)} "
            f"scene {row.start_scene_frame}-{_format_end(row.end_scene_frame)}"
            f" ({_format_length(row.frames)})"
        )

    print(
        "Eye coverage: "
        f"{summary.eye_available}/{summary.total_frames} "
        f"({summary.eye_coverage():.1%})"
    )
    print(
        "Scene coverage: "
        f"{summary.scene_available}/{summary.total_frames} "
        f"({summary.scene_coverage():.1%})"
    )
    for label, gaps in (("eye", summary.eye_gaps), ("scene", summary.scene_gaps)):
        if gaps:
            print(f"Frames without {label} data:")
            for gap in gaps:
                print(f"  {gap.start_frame}-{gap.end_frame} ({gap.length} frames)")

    output_dir = Path(args.output_dir)
    write_outputs(output_dir, mapping, blocks, summary)

    print(f"Results written to {output_dir.resolve()}")


if __name__ == "__main__":
    main()
