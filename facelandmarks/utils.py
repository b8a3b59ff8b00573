from __future__ import annotations

import logging
import os
from pathlib import Path
import numpy as np


IMAGE_EXTS = {".jpg", ".jpeg", ".png", ".bmp", ".webp", ".tiff"}


def setup_logging(level: str | int = "INFO") -> None:
    """Configure root logging with a simple, consistent format.

    Accepts either a logging level name (str) or numeric level.
    """
    if isinstance(level, str):
        lvl = logging.getLevelName(level.upper())
        if not isinstance(lvl, int):
            lvl = logging.INFO
    else:
        lvl = int(level)
    logging.basicConfig(
        level=lvl,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def ensure_dir(path: str | os.PathLike, exist_ok: bool = True) -> Path:
    p = Path(path)
    p.mkdir(parents=True, exist_ok=exist_ok)
    return p


def channels_of(img: np.ndarray) -> int:
    """Number of channels of an HxW or HxWxC image; 0 for anything else."""
    if img.ndim == 2:
        return 1
    if img.ndim == 3:
        return img.shape[2]
    return 0


def round_half_away(values) -> np.ndarray:
    """Round to the nearest integer, ties away from zero (C `round` semantics).

    ``np.round`` rounds ties to even, so 2.5 -> 2; here 2.5 -> 3 and -2.5 -> -3.
    """
    arr = np.asarray(values, dtype=np.float64)
    return (np.sign(arr) * np.floor(np.abs(arr) + 0.5)).astype(np.int64)
