"""Synchronization point loading helpers."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List

import pandas as pd

from .synchronizer import SynchronizationPoint

log = logging.getLogger(__name__)

COLUMN_ALIASES: Dict[str, str] = {
    "eyeFrame": "eye_frame",
    "sceneFrame": "scene_frame",
    "eye": "eye_frame",
    "scene": "scene_frame",
}
REQUIRED_COLUMNS = ("eye_frame", "scene_frame")


def load_synchronization_points(path: str | Path) -> List[SynchronizationPoint]:
    """Load ordered synchronization points from a CSV file.

    The file needs ``eye_frame`` and ``scene_frame`` columns; rows are kept
    in file order and fully blank rows are skipped.
    """

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(path)

    df = pd.read_csv(path, skipinitialspace=True)
    df = df.rename(columns={col: COLUMN_ALIASES.get(str(col).strip(), str(col).strip()) for col in df.columns})
    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise ValueError(f"{path.name} is missing column(s): {', '.join(missing)}")

    df = df[list(REQUIRED_COLUMNS)].dropna(how="all")
    if df.isna().any().any():
        raise ValueError(f"{path.name} has rows with only one of eye_frame/scene_frame")

    values = df.apply(pd.to_numeric, errors="coerce")
    non_integral = values.isna().any(axis=1) | (values != values.round()).any(axis=1)
    if non_integral.any():
        row = int(non_integral.idxmax())
        raise ValueError(f"{path.name} data row {row + 1} holds a non-integer frame number")

    points = [
        SynchronizationPoint(eye_frame=int(eye), scene_frame=int(scene))
        for eye, scene in values.astype("int64").itertuples(index=False, name=None)
    ]
    log.info("loaded %d synchronization point(s) from %s", len(points), path)
    return points
