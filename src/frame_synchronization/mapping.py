"""Tabular views of a frame synchronizer for reporting."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

import numpy as np
import pandas as pd

from .synchronizer import FrameSynchronizer, SyncBlock
from .utils import FrameRange, find_frame_ranges

MAPPING_COLUMNS = ["composite_frame", "block", "eye_frame", "scene_frame"]
BLOCK_COLUMNS = [
    "block",
    "start",
    "end",
    "start_eye_frame",
    "end_eye_frame",
    "start_scene_frame",
    "end_scene_frame",
    "frames",
]


@dataclass
class MappingSummary:
    """Availability of both streams over a composite frame range."""

    first_frame: Optional[int]
    last_frame: Optional[int]
    total_frames: int
    eye_available: int
    scene_available: int
    both_available: int
    eye_gaps: List[FrameRange] = field(default_factory=list)
    scene_gaps: List[FrameRange] = field(default_factory=list)

    def eye_coverage(self) -> float:
        if self.total_frames == 0:
            return 1.0
        return self.eye_available / self.total_frames

    def scene_coverage(self) -> float:
        if self.total_frames == 0:
            return 1.0
        return self.scene_available / self.total_frames

    def to_dict(self) -> Dict[str, object]:
        return {
            "first_frame": self.first_frame,
            "last_frame": self.last_frame,
            "total_frames": self.total_frames,
            "eye_available": self.eye_available,
            "scene_available": self.scene_available,
            "both_available": self.both_available,
            "eye_coverage": self.eye_coverage(),
            "scene_coverage": self.scene_coverage(),
            "eye_gaps": [[gap.start_frame, gap.end_frame] for gap in self.eye_gaps],
            "scene_gaps": [[gap.start_frame, gap.end_frame] for gap in self.scene_gaps],
        }


def frame_mapping_to_dataframe(
    synchronizer: FrameSynchronizer, first_frame: int, last_frame: int
) -> pd.DataFrame:
    """Map every composite frame in ``[first_frame, last_frame]``."""

    if last_frame < first_frame:
        raise ValueError("last_frame must not precede first_frame")

    frames = np.arange(first_frame, last_frame + 1, dtype=np.int64)
    blocks = synchronizer.resolve_blocks(frames)
    eye, scene = synchronizer.map_frames(frames)
    return pd.DataFrame(
        {
            "composite_frame": frames,
            "block": blocks,
            "eye_frame": eye,
            "scene_frame": scene,
        },
        columns=MAPPING_COLUMNS,
    )


def blocks_to_dataframe(blocks: Iterable[SyncBlock]) -> pd.DataFrame:
    """One row per block; unbounded ends become missing values."""

    rows = [
        {
            "block": index,
            "start": block.start,
            "end": block.end,
            "start_eye_frame": block.start_eye_frame,
            "end_eye_frame": block.end_eye_frame,
            "start_scene_frame": block.start_scene_frame,
            "end_scene_frame": block.end_scene_frame,
            "frames": block.length,
        }
        for index, block in enumerate(blocks)
    ]
    df = pd.DataFrame(rows, columns=BLOCK_COLUMNS)
    return df.astype({column: "Int64" for column in BLOCK_COLUMNS})


def summarize_mapping(mapping: pd.DataFrame, min_gap: int = 1) -> MappingSummary:
    """Count available frames per stream and collect the unavailable ranges.

    Stream frames are 1-based, so the sentinel and any non-positive index
    count as unavailable.
    """

    if mapping.empty:
        return MappingSummary(
            first_frame=None,
            last_frame=None,
            total_frames=0,
            eye_available=0,
            scene_available=0,
            both_available=0,
        )

    frames = mapping["composite_frame"].to_numpy()
    eye_ok = mapping["eye_frame"].to_numpy() > 0
    scene_ok = mapping["scene_frame"].to_numpy() > 0

    return MappingSummary(
        first_frame=int(frames.min()),
        last_frame=int(frames.max()),
        total_frames=int(len(frames)),
        eye_available=int(eye_ok.sum()),
        scene_available=int(scene_ok.sum()),
        both_available=int((eye_ok & scene_ok).sum()),
        eye_gaps=find_frame_ranges(frames, ~eye_ok, min_length=min_gap),
        scene_gaps=find_frame_ranges(frames, ~scene_ok, min_length=min_gap),
    )


__all__ = [
    "MappingSummary",
    "blocks_to_dataframe",
    "frame_mapping_to_dataframe",
    "summarize_mapping",
]
