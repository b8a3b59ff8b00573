from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import cv2
import numpy as np

try:
    import mediapipe as mp
except Exception:  # pragma: no cover - environment import guard
    mp = None  # type: ignore

from .models import LandmarkModel
from .types import BBox

logger = logging.getLogger(__name__)


@dataclass
class FaceMeshConfig:
    static_image_mode: bool = True
    refine_landmarks: bool = False
    max_faces: int = 2


def _landmarks_to_pixels(lms, width: int, height: int) -> np.ndarray:
    xs = [pt.x for pt in lms.landmark]
    ys = [pt.y for pt in lms.landmark]
    normalized = np.stack([xs, ys], axis=1).astype(np.float64)
    px = np.clip(normalized[:, 0] * width, 0, width - 1)
    py = np.clip(normalized[:, 1] * height, 0, height - 1)
    return np.stack([px, py], axis=1).astype(np.float32)


def _bbox_from_pixels(pixel: np.ndarray) -> BBox:
    x_min = int(np.floor(np.min(pixel[:, 0])))
    y_min = int(np.floor(np.min(pixel[:, 1])))
    x_max = int(np.ceil(np.max(pixel[:, 0])))
    y_max = int(np.ceil(np.max(pixel[:, 1])))
    return BBox(x=x_min, y=y_min, width=int(x_max - x_min + 1), height=int(y_max - y_min + 1))


def _overlap(a: BBox, b: BBox) -> float:
    ix = max(0, min(a.x + a.width, b.x + b.width) - max(a.x, b.x))
    iy = max(0, min(a.y + a.height, b.y + b.height) - max(a.y, b.y))
    inter = ix * iy
    union = a.width * a.height + b.width * b.height - inter
    return inter / union if union > 0 else 0.0


class FaceMeshLandmarkModel(LandmarkModel):
    """MediaPipe FaceMesh exposed as a detector + predictor pair.

    FaceMesh produces boxes and points in one pass, so ``detect`` caches the
    meshes of the last image and ``predict`` returns the mesh whose box
    overlaps the requested one best. Points follow the FaceMesh numbering
    (468, or 478 with refined landmarks), so frames rendered from this
    backend use per-point markers rather than the 68-point contours.

    Usage:
        with FaceMeshLandmarkModel(FaceMeshConfig()) as model:
            boxes = model.detect(rgb)
    """

    def __init__(self, cfg: Optional[FaceMeshConfig] = None):
        if mp is None:
            raise ImportError("mediapipe must be installed to use FaceMeshLandmarkModel (pip install mediapipe)")
        self.cfg = cfg or FaceMeshConfig()
        self._mesh = None
        self._cache_image: Optional[np.ndarray] = None
        self._cache: List[Tuple[BBox, np.ndarray]] = []

    def __enter__(self):
        self._mesh = mp.solutions.face_mesh.FaceMesh(
            static_image_mode=self.cfg.static_image_mode,
            refine_landmarks=self.cfg.refine_landmarks,
            max_num_faces=self.cfg.max_faces,
        )
        return self

    def __exit__(self, exc_type, exc, tb):
        if self._mesh is not None:
            self._mesh.close()
            self._mesh = None

    def _ensure_open(self):
        if self._mesh is None:
            # Allow use without context manager by lazy init
            self.__enter__()

    def _process(self, image: np.ndarray) -> List[Tuple[BBox, np.ndarray]]:
        self._ensure_open()
        assert self._mesh is not None

        # Extraction already hands over RGB; grayscale needs three channels
        img_rgb = cv2.cvtColor(image, cv2.COLOR_GRAY2RGB) if image.ndim == 2 else image
        results = self._mesh.process(img_rgb)
        if not results or not results.multi_face_landmarks:
            return []

        height, width = image.shape[:2]
        meshes = []
        for flm in results.multi_face_landmarks:
            pix = _landmarks_to_pixels(flm, width, height)
            meshes.append((_bbox_from_pixels(pix), pix))
        return meshes

    def detect(self, image: np.ndarray) -> List[BBox]:
        self._cache = self._process(image)
        # Compared by identity; ids of freed arrays get reused
        self._cache_image = image
        logger.debug("FaceMesh found %d face(s)", len(self._cache))
        return [bbox for bbox, _ in self._cache]

    def predict(self, image: np.ndarray, box: BBox) -> np.ndarray:
        if self._cache_image is not image:
            self.detect(image)
        if not self._cache:
            return np.zeros((0, 2), dtype=np.float32)
        best = max(self._cache, key=lambda entry: _overlap(entry[0], box))
        return best[1]


__all__ = ["FaceMeshLandmarkModel", "FaceMeshConfig"]
