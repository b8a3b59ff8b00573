"""Output writers.

Sequence summary (YAML) and rendered overlay images, one PNG per frame.
"""

from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional

import cv2
import numpy as np
import yaml

from .render import render_frame
from .sequence import SequenceFaceLandmarks
from .utils import ensure_dir

logger = logging.getLogger(__name__)


def sequence_summary(seq: SequenceFaceLandmarks) -> Dict[str, Any]:
    faces_per_frame = [len(frame.faces) for frame in seq]
    schemes = Counter(len(face.landmarks) for frame in seq for face in frame.faces)
    sizes = sorted({(frame.width, frame.height) for frame in seq})
    return {
        "counts": {
            "frames": len(faces_per_frame),
            "frames_with_faces": sum(1 for n in faces_per_frame if n > 0),
            "faces": sum(faces_per_frame),
        },
        "faces_per_frame": faces_per_frame,
        # landmark count -> number of faces
        "landmark_schemes": {int(k): int(v) for k, v in sorted(schemes.items())},
        "frame_sizes": [[w, h] for w, h in sizes],
    }


def write_summary(seq: SequenceFaceLandmarks, path: str | Path, extra: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    summary = sequence_summary(seq)
    if extra:
        summary.update(extra)
    p = Path(path)
    ensure_dir(p.parent)
    with p.open("w", encoding="utf-8") as f:
        yaml.safe_dump(summary, f, sort_keys=False, allow_unicode=True)
    return summary


def write_overlays(
    seq: SequenceFaceLandmarks,
    images: Iterable[np.ndarray],
    output_dir: str | Path,
    render_cfg: Optional[Mapping[str, Any]] = None,
) -> int:
    """Render each frame of ``seq`` onto the matching image and save it.

    Images are paired with frames in order; rendering stops at the shorter
    of the two. Returns the number of files written.
    """
    out_dir = ensure_dir(output_dir)
    cfg = dict(render_cfg or {})
    written = 0
    for index, (frame, image) in enumerate(zip(seq, images)):
        if (image.shape[1], image.shape[0]) != (frame.width, frame.height):
            logger.warning(
                "Frame %d size %dx%d does not match image %dx%d",
                index, frame.width, frame.height, image.shape[1], image.shape[0],
            )
        vis = image.copy()
        render_frame(
            vis,
            frame,
            draw_labels=bool(cfg.get("draw_labels", False)),
            bbox_color=tuple(cfg.get("bbox_color", (0, 0, 255))),
            landmarks_color=tuple(cfg.get("landmarks_color", (0, 255, 0))),
            thickness=int(cfg.get("thickness", 1)),
        )
        out_path = out_dir / f"frame_{index:06d}.png"
        if not cv2.imwrite(str(out_path), vis):
            raise IOError(f"Failed to write overlay: {out_path}")
        written += 1
    logger.info("Wrote %d overlay(s) to %s", written, out_dir)
    return written


__all__ = ["sequence_summary", "write_summary", "write_overlays"]
