"""Sequence face landmarks.

Accumulates per-frame face boxes and landmarks over an image sequence,
normalizes them to the original frame resolution, persists the sequence
to a compact binary file and renders landmark contours for inspection.
"""

from .errors import (
    DeserializationError,
    FaceLandmarksError,
    FeatureNotAvailableError,
    FrameIndexError,
    ModelNotConfiguredError,
    UnsupportedImageError,
)
from .models import DlibLandmarkModel, LandmarkModel
from .render import render_bbox, render_face, render_frame, render_landmarks
from .sequence import SequenceFaceLandmarks
from .types import BBox, Face, Frame, Point

__version__ = "0.1.0"

__all__ = [
    "BBox",
    "Point",
    "Face",
    "Frame",
    "LandmarkModel",
    "DlibLandmarkModel",
    "SequenceFaceLandmarks",
    "render_bbox",
    "render_landmarks",
    "render_face",
    "render_frame",
    "FaceLandmarksError",
    "ModelNotConfiguredError",
    "UnsupportedImageError",
    "DeserializationError",
    "FeatureNotAvailableError",
    "FrameIndexError",
]
