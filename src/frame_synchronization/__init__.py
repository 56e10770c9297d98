"""Eye/scene frame synchronization toolkit."""

from .mapping import (
    MappingSummary,
    blocks_to_dataframe,
    frame_mapping_to_dataframe,
    summarize_mapping,
)
from .points_loader import load_synchronization_points

from .synchronizer import (
    UNAVAILABLE_FRAME,
    FramePair,
    FrameSynchronizer,
    InvalidSynchronizationPoints,
    SyncBlock,
    SynchronizationPoint,
    build_sync_blocks,
    validate_synchronization_points,
)
from .utils import FrameRange, find_frame_ranges

__all__ = [
    "UNAVAILABLE_FRAME",
    "FramePair",
    "FrameSynchronizer",
    "InvalidSynchronizationPoints",
    "SyncBlock",
    "SynchronizationPoint",
    "build_sync_blocks",
    "validate_synchronization_points",

    "load_synchronization_points",

    "MappingSummary",
    "blocks_to_dataframe",
    "frame_mapping_to_dataframe",
    "summarize_mapping",
    "FrameRange",
    "find_frame_ranges",
]
