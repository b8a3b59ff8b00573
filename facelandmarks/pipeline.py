from __future__ import annotations

import logging
from itertools import islice
from pathlib import Path
from typing import Iterable, Optional, Union

import numpy as np
from tqdm import tqdm

from .loader import FrameSource
from .models import LandmarkModel
from .sequence import SequenceFaceLandmarks

logger = logging.getLogger(__name__)


def process_frames(
    session: SequenceFaceLandmarks,
    frames: Iterable[np.ndarray],
    total: Optional[int] = None,
    progress: bool = True,
) -> SequenceFaceLandmarks:
    """Ingest every frame of ``frames`` into ``session`` in order."""
    for image in tqdm(frames, total=total, desc="Landmarks", unit="frame", disable=not progress):
        session.add_frame(image)
    return session


def find_face_landmarks(
    model: Union[str, Path, LandmarkModel, None],
    source: Union[str, Path, Iterable[np.ndarray]],
    frame_scale: float = 1.0,
    cache: str | Path | None = None,
    max_frames: Optional[int] = None,
    progress: bool = True,
    session: Optional[SequenceFaceLandmarks] = None,
) -> SequenceFaceLandmarks:
    """Return the landmark sequence for a video, image directory or frame iterable.

    If ``cache`` names an existing sequence file it is loaded and no detection
    runs. Otherwise every frame is processed and, when ``cache`` is given, the
    result is saved there.
    """
    if session is None:
        session = SequenceFaceLandmarks(model, frame_scale=frame_scale)
    else:
        session.bind_model(model)

    if cache is not None and Path(cache).is_file():
        logger.info("Loading cached landmarks: %s", cache)
        session.load(cache)
        return session

    if isinstance(source, (str, Path)):
        frames = FrameSource(source, max_frames=max_frames)
        total: Optional[int] = len(frames)
    else:
        frames = source if max_frames is None else islice(source, max_frames)
        total = max_frames

    process_frames(session, frames, total=total, progress=progress)
    logger.info("Processed %d frame(s)", session.size())
    if cache is not None:
        session.save(cache)
    return session


__all__ = ["process_frames", "find_face_landmarks"]
