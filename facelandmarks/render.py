"""Draw boxes and landmark topology onto BGR/grayscale images in place."""

from __future__ import annotations

from typing import Sequence, Tuple

import cv2
import numpy as np

from .keypoints import NUM_LANDMARKS_68, contour_segments
from .types import BBox, Face, Frame

Color = Tuple[int, int, int]

BBOX_COLOR: Color = (0, 0, 255)
LANDMARKS_COLOR: Color = (0, 255, 0)


def _to_int_points(points) -> list:
    return [(int(x), int(y)) for x, y in np.asarray(points).reshape(-1, 2).tolist()]


def render_bbox(img: np.ndarray, bbox: BBox, color: Color = BBOX_COLOR, thickness: int = 1) -> None:
    # Inclusive corners, as cv2.rectangle draws a cv::Rect
    x, y = int(bbox.x), int(bbox.y)
    cv2.rectangle(img, (x, y), (x + int(bbox.width) - 1, y + int(bbox.height) - 1), color, thickness)


def render_landmarks(
    img: np.ndarray,
    points: Sequence[Tuple[int, int]],
    draw_labels: bool = False,
    color: Color = LANDMARKS_COLOR,
    thickness: int = 1,
) -> None:
    """Draw landmark contours (68-point scheme) or per-point markers.

    Any other point count gets a filled disk on each of the first
    ``min(len(points), 68)`` points. With ``draw_labels`` every point is
    annotated with its index.
    """
    pts = _to_int_points(points)
    segments = contour_segments(len(pts))
    if segments:
        for i, j in segments:
            cv2.line(img, pts[j], pts[i], color, thickness)
    else:
        for p in pts[:NUM_LANDMARKS_68]:
            cv2.circle(img, p, thickness, color, -1)

    if draw_labels:
        for i, p in enumerate(pts):
            cv2.putText(img, str(i), p, cv2.FONT_HERSHEY_PLAIN, 0.5, color, thickness)


def render_face(
    img: np.ndarray,
    face: Face,
    draw_labels: bool = False,
    bbox_color: Color = BBOX_COLOR,
    landmarks_color: Color = LANDMARKS_COLOR,
    thickness: int = 1,
) -> None:
    render_bbox(img, face.bbox, bbox_color, thickness)
    render_landmarks(img, face.landmarks, draw_labels, landmarks_color, thickness)


def render_frame(
    img: np.ndarray,
    frame: Frame,
    draw_labels: bool = False,
    bbox_color: Color = BBOX_COLOR,
    landmarks_color: Color = LANDMARKS_COLOR,
    thickness: int = 1,
) -> None:
    for face in frame.faces:
        render_face(img, face, draw_labels, bbox_color, landmarks_color, thickness)


__all__ = [
    "BBOX_COLOR",
    "LANDMARKS_COLOR",
    "render_bbox",
    "render_landmarks",
    "render_face",
    "render_frame",
]
