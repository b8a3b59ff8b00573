"""Landmark model capability and the dlib backend.

A landmark model pairs a face detector (image -> boxes) with a landmark
predictor (image, box -> ordered points). Both operate on whatever image is
handed to them; scale handling lives in :mod:`facelandmarks.extract`.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List

import numpy as np

try:
    import dlib
except ImportError:  # pragma: no cover - optional backend
    dlib = None  # type: ignore

from .types import BBox

logger = logging.getLogger(__name__)


class LandmarkModel(ABC):
    """Detector + predictor pair used by a sequence session."""

    @abstractmethod
    def detect(self, image: np.ndarray) -> List[BBox]:
        """Return face boxes in the coordinates of ``image``."""

    @abstractmethod
    def predict(self, image: np.ndarray, box: BBox) -> np.ndarray:
        """Return landmark points, shape (N, 2), in the coordinates of ``image``."""


class DlibLandmarkModel(LandmarkModel):
    """dlib frontal face detector + serialized shape predictor.

    Usage:
        model = DlibLandmarkModel("shape_predictor_68_face_landmarks.dat")
        boxes = model.detect(rgb)
    """

    def __init__(self, model_path: str | Path, upsample: int = 0):
        if dlib is None:
            raise ImportError("dlib must be installed to use DlibLandmarkModel (pip install dlib)")
        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise FileNotFoundError(f"Landmarks model not found: {self.model_path}")
        self.upsample = int(upsample)
        self._detector = dlib.get_frontal_face_detector()
        self._predictor = dlib.shape_predictor(str(self.model_path))
        logger.info("Loaded dlib shape predictor: %s", self.model_path)

    def detect(self, image: np.ndarray) -> List[BBox]:
        rects = self._detector(image, self.upsample)
        # dlib rectangles are inclusive on the right/bottom edge
        return [BBox(x=r.left(), y=r.top(), width=r.width(), height=r.height()) for r in rects]

    def predict(self, image: np.ndarray, box: BBox) -> np.ndarray:
        left, top = int(box.x), int(box.y)
        rect = dlib.rectangle(left, top, left + int(box.width) - 1, top + int(box.height) - 1)
        shape = self._predictor(image, rect)
        return np.array([[p.x, p.y] for p in shape.parts()], dtype=np.float32).reshape(-1, 2)


__all__ = ["LandmarkModel", "DlibLandmarkModel"]
