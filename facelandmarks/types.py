from __future__ import annotations

from dataclasses import dataclass, field
from typing import NamedTuple, Tuple

import numpy as np


class Point(NamedTuple):
    x: int
    y: int


@dataclass(frozen=True)
class BBox:
    x: int
    y: int
    width: int
    height: int

    @classmethod
    def from_corners(cls, left: int, top: int, right: int, bottom: int) -> "BBox":
        return cls(x=left, y=top, width=right - left, height=bottom - top)

    @property
    def tl(self) -> Point:
        return Point(self.x, self.y)

    @property
    def br(self) -> Point:
        return Point(self.x + self.width, self.y + self.height)

    def contains(self, point: Tuple[int, int]) -> bool:
        px, py = point
        return self.x <= px <= self.x + self.width and self.y <= py <= self.y + self.height


@dataclass(frozen=True)
class Face:
    bbox: BBox
    # Predictor numbering; never reordered
    landmarks: Tuple[Point, ...] = ()

    def landmarks_array(self) -> np.ndarray:
        """Return landmarks as an int32 array of shape (N, 2)."""
        return np.asarray(self.landmarks, dtype=np.int32).reshape(-1, 2)


@dataclass(frozen=True)
class Frame:
    faces: Tuple[Face, ...] = field(default_factory=tuple)
    # Original (unscaled) image size
    width: int = 0
    height: int = 0

    def __len__(self) -> int:
        return len(self.faces)


__all__ = ["Point", "BBox", "Face", "Frame"]
