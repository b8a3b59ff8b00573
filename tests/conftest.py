from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

import numpy as np
import pytest

from facelandmarks.models import LandmarkModel
from facelandmarks.types import BBox


def face68_points(x0: float, y0: float, size: float = 100.0) -> np.ndarray:
    """Deterministic 68 points spread inside a ``size`` square at (x0, y0)."""
    idx = np.arange(68, dtype=np.float64)
    xs = x0 + (idx % 10) * size / 10.0 + 0.3
    ys = y0 + (idx // 10) * size / 7.0 + 0.6
    return np.stack([xs, ys], axis=1)


class FakeLandmarkModel(LandmarkModel):
    """Faces fixed in ORIGINAL image coordinates.

    The scale the adapter used is recovered from the width of the image the
    model receives, so detection at any scale "sees" the same faces.
    """

    def __init__(self, original_width: int, faces: Sequence[Tuple[Tuple[float, float, float, float], np.ndarray]]):
        self.original_width = original_width
        self.faces = list(faces)
        self.detect_shapes: List[Tuple[int, ...]] = []
        self.predict_boxes: List[BBox] = []
        self.last_image: Optional[np.ndarray] = None

    def _scale(self, image: np.ndarray) -> float:
        return image.shape[1] / float(self.original_width)

    def detect(self, image: np.ndarray) -> List[BBox]:
        self.detect_shapes.append(image.shape)
        self.last_image = image
        s = self._scale(image)
        return [BBox(x * s, y * s, w * s, h * s) for (x, y, w, h), _ in self.faces]

    def predict(self, image: np.ndarray, box: BBox) -> np.ndarray:
        self.predict_boxes.append(box)
        s = self._scale(image)
        for (x, y, w, h), points in self.faces:
            if abs(box.x - x * s) < 1e-9 and abs(box.y - y * s) < 1e-9:
                return np.asarray(points, dtype=np.float64) * s
        raise AssertionError(f"unexpected box {box}")


class ScaledCoordsModel(LandmarkModel):
    """Returns fixed coordinates in whatever image it is given."""

    def __init__(self, boxes: Sequence[BBox], points: Sequence[Sequence[Tuple[float, float]]]):
        self.boxes = list(boxes)
        self.points = [np.asarray(p, dtype=np.float64) for p in points]

    def detect(self, image: np.ndarray) -> List[BBox]:
        return list(self.boxes)

    def predict(self, image: np.ndarray, box: BBox) -> np.ndarray:
        return self.points[self.boxes.index(box)]


@pytest.fixture()
def bgr_image() -> np.ndarray:
    img = np.zeros((480, 640, 3), dtype=np.uint8)
    img[:, :, 0] = 255  # blue
    return img


@pytest.fixture()
def gray_image() -> np.ndarray:
    return np.full((480, 640), 128, dtype=np.uint8)


@pytest.fixture()
def two_face_model() -> FakeLandmarkModel:
    return FakeLandmarkModel(
        640,
        [
            ((100.0, 120.0, 120.0, 120.0), face68_points(110.0, 130.0)),
            ((400.0, 200.0, 160.0, 160.0), face68_points(410.0, 210.0, size=140.0)),
        ],
    )
