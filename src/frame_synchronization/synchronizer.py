"""Piecewise block mapping between eye and scene frame streams."""

from __future__ import annotations

import logging
from bisect import bisect_right
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np

log = logging.getLogger(__name__)

UNAVAILABLE_FRAME = -1


class InvalidSynchronizationPoints(ValueError):
    """Raised when synchronization points overlap or are not ascending."""


@dataclass(frozen=True)
class SynchronizationPoint:
    """An eye frame and a scene frame recorded at the same instant."""

    eye_frame: int
    scene_frame: int


@dataclass(frozen=True)
class FramePair:
    """Eye and scene frames resolved for one composite frame."""

    composite_frame: int
    eye_frame: int
    scene_frame: int

    @property
    def eye_available(self) -> bool:
        return self.eye_frame != UNAVAILABLE_FRAME

    @property
    def scene_available(self) -> bool:
        return self.scene_frame != UNAVAILABLE_FRAME


@dataclass(frozen=True)
class SyncBlock:
    """Composite range over which both streams advance with a fixed offset.

    ``end``, ``end_eye_frame`` and ``end_scene_frame`` are ``None`` when the
    block extends indefinitely.
    """

    start: int = 1
    end: Optional[int] = None
    start_eye_frame: int = 1
    end_eye_frame: Optional[int] = None
    start_scene_frame: int = 1
    end_scene_frame: Optional[int] = None

    @property
    def is_unbounded(self) -> bool:
        return self.end is None

    @property
    def length(self) -> Optional[int]:
        """Return the number of composite frames, ``None`` when unbounded."""

        if self.end is None:
            return None
        return self.end - self.start + 1

    def contains(self, frame: int) -> bool:
        return frame >= self.start and (self.end is None or frame <= self.end)

    def eye_frame_for(self, frame: int) -> int:
        return _shift(frame, self.start, self.start_eye_frame, self.end_eye_frame)

    def scene_frame_for(self, frame: int) -> int:
        return _shift(frame, self.start, self.start_scene_frame, self.end_scene_frame)


def _shift(frame: int, start: int, stream_start: int, stream_end: Optional[int]) -> int:
    mapped = frame - start + stream_start
    if stream_end is not None and mapped > stream_end:
        return UNAVAILABLE_FRAME
    return mapped


def _as_frame_array(frames: Iterable[int]) -> np.ndarray:
    if isinstance(frames, np.ndarray):
        return frames.astype(np.int64, copy=False)
    return np.asarray(list(frames), dtype=np.int64)


PointLike = Union[SynchronizationPoint, Tuple[int, int]]

IDENTITY_BLOCKS: Tuple[SyncBlock, ...] = (SyncBlock(),)


def _as_int(value: object, name: str) -> int:
    if isinstance(value, bool):
        raise InvalidSynchronizationPoints(f"{name} must be an integer, got {value!r}")
    if isinstance(value, (int, np.integer)):
        return int(value)
    if isinstance(value, (float, np.floating)) and float(value).is_integer():
        return int(value)
    raise InvalidSynchronizationPoints(f"{name} must be an integer, got {value!r}")


def _coerce_point(point: PointLike) -> SynchronizationPoint:
    if isinstance(point, SynchronizationPoint):
        eye_frame, scene_frame = point.eye_frame, point.scene_frame
    else:
        try:
            eye_frame, scene_frame = point
        except (TypeError, ValueError) as exc:
            raise InvalidSynchronizationPoints(
                f"synchronization point must be an (eye_frame, scene_frame) pair, got {point!r}"
            ) from exc
    return SynchronizationPoint(
        eye_frame=_as_int(eye_frame, "eye_frame"),
        scene_frame=_as_int(scene_frame, "scene_frame"),
    )


def coerce_points(points: Optional[Iterable[PointLike]]) -> List[SynchronizationPoint]:
    """Normalise points or ``(eye_frame, scene_frame)`` pairs into a list."""

    if points is None:
        return []
    return [_coerce_point(point) for point in points]


def validate_synchronization_points(points: Sequence[SynchronizationPoint]) -> None:
    """Reject points whose eye or scene frames do not strictly increase."""

    for index in range(1, len(points)):
        previous = points[index - 1]
        current = points[index]
        if current.eye_frame <= previous.eye_frame:
            raise InvalidSynchronizationPoints(
                f"eye frames must increase: point {index} has eye_frame "
                f"{current.eye_frame} after {previous.eye_frame}"
            )
        if current.scene_frame <= previous.scene_frame:
            raise InvalidSynchronizationPoints(
                f"scene frames must increase: point {index} has scene_frame "
                f"{current.scene_frame} after {previous.scene_frame}"
            )


def build_sync_blocks(points: Optional[Sequence[SynchronizationPoint]]) -> Tuple[SyncBlock, ...]:
    """Build the block sequence for ordered synchronization points.

    The first block starts at composite frame 1 with the streams offset so
    that the first point falls on a single composite frame. Each following
    point opens a new block; the block it closes spans as many composite
    frames as the longer of its two streams.
    """

    if not points:
        return IDENTITY_BLOCKS

    first = points[0]
    if first.eye_frame > first.scene_frame:
        start_eye, start_scene = first.eye_frame - first.scene_frame + 1, 1
    else:
        start_eye, start_scene = 1, first.scene_frame - first.eye_frame + 1

    blocks: List[SyncBlock] = []
    start = 1
    for point in points[1:]:
        end_eye = point.eye_frame - 1
        end_scene = point.scene_frame - 1
        length = max(end_eye - start_eye, end_scene - start_scene)
        end = start + length
        blocks.append(
            SyncBlock(
                start=start,
                end=end,
                start_eye_frame=start_eye,
                end_eye_frame=end_eye,
                start_scene_frame=start_scene,
                end_scene_frame=end_scene,
            )
        )
        start = end + 1
        start_eye = point.eye_frame
        start_scene = point.scene_frame

    blocks.append(SyncBlock(start=start, start_eye_frame=start_eye, start_scene_frame=start_scene))
    return tuple(blocks)


class FrameSynchronizer:
    """Map composite frame indices onto eye and scene frame numbers.

    A cursor remembers the last composite frame and the block holding it so
    sequential playback resolves without searching.
    """

    def __init__(
        self,
        points: Optional[Iterable[PointLike]] = None,
        *,
        validate: bool = True,
    ) -> None:
        self.validate = validate
        self._points: Tuple[SynchronizationPoint, ...] = ()
        self._blocks: Tuple[SyncBlock, ...] = IDENTITY_BLOCKS
        self._starts: List[int] = [IDENTITY_BLOCKS[0].start]
        self._current_frame = 0
        self._current_block_index = 0
        self.set_synchronization_points(points)

    @property
    def blocks(self) -> Tuple[SyncBlock, ...]:
        return self._blocks

    @property
    def synchronization_points(self) -> Tuple[SynchronizationPoint, ...]:
        return self._points

    @property
    def current_frame(self) -> int:
        return self._current_frame

    @property
    def current_block_index(self) -> int:
        return self._current_block_index

    @property
    def current_block(self) -> SyncBlock:
        return self._blocks[self._current_block_index]

    def set_synchronization_points(self, points: Optional[Iterable[PointLike]]) -> None:
        """Replace the block sequence; empty or ``None`` restores identity."""

        normalized = coerce_points(points)
        if self.validate:
            try:
                validate_synchronization_points(normalized)
            except InvalidSynchronizationPoints as exc:
                log.warning("rejected synchronization points: %s", exc)
                raise

        self._points = tuple(normalized)
        self._blocks = build_sync_blocks(normalized)
        self._starts = [block.start for block in self._blocks]
        self._current_frame = 0
        self._current_block_index = 0
        log.debug(
            "rebuilt %d sync block(s) from %d synchronization point(s)",
            len(self._blocks),
            len(normalized),
        )

    def _locate(self, frame: int) -> int:
        index = bisect_right(self._starts, frame) - 1
        return min(max(index, 0), len(self._blocks) - 1)

    def set_current_frame(self, frame: int) -> None:
        """Move the cursor to ``frame`` and resolve the block containing it."""

        frame = int(frame)
        self._current_frame = frame
        if self.current_block.contains(frame):
            return
        self._current_block_index = self._locate(frame)

    def get_eye_frame(self, frame: Optional[int] = None) -> int:
        """Return the eye frame at ``frame`` (or the cursor), ``-1`` if none."""

        if frame is not None:
            self.set_current_frame(frame)
        return self.current_block.eye_frame_for(self._current_frame)

    def get_scene_frame(self, frame: Optional[int] = None) -> int:
        """Return the scene frame at ``frame`` (or the cursor), ``-1`` if none."""

        if frame is not None:
            self.set_current_frame(frame)
        return self.current_block.scene_frame_for(self._current_frame)

    def get_frames(self, frame: int) -> FramePair:
        self.set_current_frame(frame)
        return FramePair(
            composite_frame=self._current_frame,
            eye_frame=self.get_eye_frame(),
            scene_frame=self.get_scene_frame(),
        )

    def resolve_blocks(self, frames: Iterable[int]) -> np.ndarray:
        """Return the block index for every composite frame, cursor untouched."""

        values = _as_frame_array(frames)
        starts = np.asarray(self._starts, dtype=np.int64)
        indices = np.searchsorted(starts, values, side="right") - 1
        return np.clip(indices, 0, len(self._blocks) - 1)

    def map_frames(self, frames: Iterable[int]) -> Tuple[np.ndarray, np.ndarray]:
        """Map many composite frames at once.

        Returns eye and scene frame arrays with ``-1`` where the stream has
        no frame, matching :meth:`get_eye_frame` and :meth:`get_scene_frame`.
        """

        values = _as_frame_array(frames)
        indices = self.resolve_blocks(values)
        offsets = values - np.asarray(self._starts, dtype=np.int64)[indices]
        eye = self._map_stream(offsets, indices, "eye")
        scene = self._map_stream(offsets, indices, "scene")
        return eye, scene

    def _map_stream(self, offsets: np.ndarray, indices: np.ndarray, stream: str) -> np.ndarray:
        starts = np.array(
            [getattr(block, f"start_{stream}_frame") for block in self._blocks], dtype=np.int64
        )
        ends = [getattr(block, f"end_{stream}_frame") for block in self._blocks]
        bounded = np.array([end is not None for end in ends], dtype=bool)
        limits = np.array([end if end is not None else 0 for end in ends], dtype=np.int64)

        mapped = offsets + starts[indices]
        exhausted = bounded[indices] & (mapped > limits[indices])
        return np.where(exhausted, UNAVAILABLE_FRAME, mapped)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(blocks={len(self._blocks)}, "
            f"current_frame={self._current_frame}, "
            f"current_block_index={self._current_block_index})"
        )


__all__ = [
    "UNAVAILABLE_FRAME",
    "FramePair",
    "FrameSynchronizer",
    "InvalidSynchronizationPoints",
    "SyncBlock",
    "SynchronizationPoint",
    "build_sync_blocks",
    "coerce_points",
    "validate_synchronization_points",
]
