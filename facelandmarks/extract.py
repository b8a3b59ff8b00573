"""Scale-normalized face/landmark extraction.

Detection runs on an image resized by ``frame_scale``; every box and point is
mapped back to the original image by dividing by the scale and rounding half
away from zero. Callers always receive original-frame pixel coordinates.
"""

from __future__ import annotations

import logging
from typing import List

import cv2
import numpy as np

from .errors import UnsupportedImageError
from .models import LandmarkModel
from .types import BBox, Face, Point
from .utils import channels_of, round_half_away

logger = logging.getLogger(__name__)

SUPPORTED_CHANNELS = (1, 3)


def check_image(image: np.ndarray) -> int:
    """Return the channel count of ``image`` or raise UnsupportedImageError."""
    if not isinstance(image, np.ndarray):
        raise UnsupportedImageError(f"Expected a numpy image, got {type(image).__name__}")
    ch = channels_of(image)
    if ch not in SUPPORTED_CHANNELS:
        raise UnsupportedImageError(
            f"Unsupported image format: {ch} channel(s), shape {image.shape}; expected 1 or 3 channels"
        )
    return ch


def scale_image(image: np.ndarray, frame_scale: float) -> np.ndarray:
    if frame_scale == 1.0:
        return image
    height, width = image.shape[:2]
    if round(width * frame_scale) < 1 or round(height * frame_scale) < 1:
        raise UnsupportedImageError(
            f"frame_scale {frame_scale} shrinks a {width}x{height} image to nothing"
        )
    return cv2.resize(image, None, fx=frame_scale, fy=frame_scale)


def to_model_pixels(image: np.ndarray) -> np.ndarray:
    """BGR -> RGB for color images, 2-D array for grayscale."""
    if channels_of(image) == 3:
        return np.ascontiguousarray(cv2.cvtColor(image, cv2.COLOR_BGR2RGB))
    if image.ndim == 3:
        image = image[:, :, 0]
    return np.ascontiguousarray(image)


def unscale_points(points: np.ndarray, frame_scale: float) -> tuple:
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    rounded = round_half_away(pts / frame_scale)
    return tuple(Point(int(x), int(y)) for x, y in rounded)


def unscale_bbox(box: BBox, frame_scale: float) -> BBox:
    x, y, w, h = round_half_away(np.array([box.x, box.y, box.width, box.height], dtype=np.float64) / frame_scale)
    return BBox(x=int(x), y=int(y), width=int(w), height=int(h))


def extract_faces(image: np.ndarray, model: LandmarkModel, frame_scale: float = 1.0) -> List[Face]:
    """Detect faces and landmarks on ``image``, returned in its own coordinates.

    - image: HxW, HxWx1 (grayscale) or HxWx3 (BGR) array
    - model: detector + predictor pair
    - frame_scale: resize factor applied before detection; 1.0 skips resizing
    """
    check_image(image)
    scaled = scale_image(image, frame_scale)
    pixels = to_model_pixels(scaled)
    if frame_scale != 1.0:
        logger.debug("Resized %s -> %s for detection", image.shape[:2], scaled.shape[:2])

    boxes = model.detect(pixels)
    faces: List[Face] = []
    for box in boxes:
        points = model.predict(pixels, box)
        faces.append(Face(bbox=unscale_bbox(box, frame_scale), landmarks=unscale_points(points, frame_scale)))
    logger.debug("Extracted %d face(s)", len(faces))
    return faces


__all__ = [
    "SUPPORTED_CHANNELS",
    "check_image",
    "scale_image",
    "to_model_pixels",
    "unscale_points",
    "unscale_bbox",
    "extract_faces",
]
