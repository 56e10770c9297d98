"""Helpers for grouping composite frames into contiguous ranges."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence


@dataclass(frozen=True)
class FrameRange:
    """Inclusive range of composite frames."""

    start_frame: int
    end_frame: int

    @property
    def length(self) -> int:
        """Return the number of frames covered by the range."""

        return self.end_frame - self.start_frame + 1


def find_frame_ranges(
    frames: Sequence[int], mask: Sequence[bool], min_length: int = 1
) -> List[FrameRange]:
    """Return ranges of consecutive frames where ``mask`` is ``True``.

    Parameters
    ----------
    frames:
        Composite frame numbers in ascending order.
    mask:
        Boolean flags aligned with ``frames``.
    min_length:
        Ranges shorter than this number of frames are dropped.
    """

    if len(frames) != len(mask):
        raise ValueError("frames and mask must have the same length")

    ranges: List[FrameRange] = []
    range_start: int | None = None
    previous: int | None = None

    for frame, flag in zip(frames, mask):
        frame = int(frame)
        if flag and range_start is not None and previous is not None and frame == previous + 1:
            previous = frame
            continue
        if range_start is not None and previous is not None:
            if previous - range_start + 1 >= min_length:
                ranges.append(FrameRange(range_start, previous))
            range_start = None
            previous = None
        if flag:
            range_start = frame
            previous = frame

    if range_start is not None and previous is not None:
        if previous - range_start + 1 >= min_length:
            ranges.append(FrameRange(range_start, previous))
    return ranges
