"""Frame sources for sequence processing.

- Ordered frames from a video file, an image directory (sorted by name) or a
  single image.
- Unicode-safe image reading via OpenCV (imdecode) with fallback.
- Unreadable images are skipped with a warning; ``max_frames`` caps output.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Generator, Iterable, List, Optional

import cv2
import numpy as np

from .utils import IMAGE_EXTS

logger = logging.getLogger(__name__)


def imread_unicode(path: str | Path) -> Optional[np.ndarray]:
    try:
        data = np.fromfile(str(path), dtype=np.uint8)
    except OSError as e:
        logger.warning("Failed to read %s (%s)", path, e)
        return None
    if data.size == 0:
        return None
    img = cv2.imdecode(data, cv2.IMREAD_UNCHANGED)
    if img is None:
        # Fallback to standard imread
        img = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    return img


class FrameSource:
    def __init__(
        self,
        source: str | Path,
        exts: Optional[Iterable[str]] = None,
        max_frames: Optional[int] = None,
    ):
        self.source = Path(source)
        self.exts = set(e.lower() for e in (exts or IMAGE_EXTS))
        self.max_frames = max_frames
        if not self.source.exists():
            raise FileNotFoundError(f"Input does not exist: {self.source}")

    @property
    def is_video(self) -> bool:
        return self.source.is_file() and self.source.suffix.lower() not in self.exts

    def image_paths(self) -> List[Path]:
        if self.source.is_file():
            return [self.source]
        return sorted(p for p in self.source.iterdir() if p.is_file() and p.suffix.lower() in self.exts)

    def _iter_video(self) -> Generator[np.ndarray, None, None]:
        cap = cv2.VideoCapture(str(self.source))
        if not cap.isOpened():
            raise IOError(f"Failed to open video: {self.source}")
        try:
            while True:
                ok, frame = cap.read()
                if not ok:
                    return
                yield frame
        finally:
            cap.release()

    def _iter_images(self) -> Generator[np.ndarray, None, None]:
        for p in self.image_paths():
            img = imread_unicode(p)
            if img is None:
                logger.warning("Failed to read image: %s", p)
                continue
            yield img

    def __iter__(self) -> Generator[np.ndarray, None, None]:
        frames = self._iter_video() if self.is_video else self._iter_images()
        for count, frame in enumerate(frames, start=1):
            yield frame
            if self.max_frames is not None and count >= self.max_frames:
                return

    def __len__(self) -> int:
        """Expected frame count (video container estimate, or image count)."""
        if self.is_video:
            cap = cv2.VideoCapture(str(self.source))
            try:
                n = int(cap.get(cv2.CAP_PROP_FRAME_COUNT))
            finally:
                cap.release()
        else:
            n = len(self.image_paths())
        return min(n, self.max_frames) if self.max_frames is not None else n


__all__ = ["FrameSource", "imread_unicode"]
