from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import load_and_merge, session_from_config
from .errors import FaceLandmarksError
from .loader import FrameSource
from .pipeline import find_face_landmarks
from .sequence import SequenceFaceLandmarks
from .utils import setup_logging
from .writers import write_overlays, write_summary

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Sequence face landmarks: detect, cache and render facial landmarks over video frames")
    p.add_argument("input", nargs="?", default=None, help="Video file, image directory or single image")
    # Model
    p.add_argument("-l", "--landmarks", default=None, help="Path to the landmarks model (dlib shape predictor .dat)")
    p.add_argument("-s", "--scale", type=float, default=None, help="Frame scale used for detection (e.g. 0.5)")
    p.add_argument("--backend", choices=["dlib", "mediapipe"], default=None, help="Landmark model backend")
    # Outputs
    p.add_argument("-o", "--output", default=None, help="Sequence file (.npz); loaded instead of detecting if it exists")
    p.add_argument("--force", action="store_true", help="Run detection even if the output file exists")
    p.add_argument("-r", "--render-dir", default=None, help="Directory to write rendered overlay frames")
    p.add_argument("--labels", action="store_true", help="Draw landmark indices on rendered frames")
    p.add_argument("--summary", default=None, help="Optional YAML summary path")
    p.add_argument("--max-frames", type=int, default=None, help="Optional max frames to process")
    # Config
    p.add_argument("--config", default=None, help="Optional YAML config path")
    p.add_argument("--log-level", default=None, help="Override log level (e.g., INFO, WARNING)")
    p.add_argument("--no-progress", action="store_true", help="Disable the progress bar")
    return p.parse_args(argv)


def build_overrides(args: argparse.Namespace) -> dict:
    overrides: dict = {"paths": {}, "model": {}, "render": {}, "runtime": {}}
    if args.input:
        overrides["paths"]["input"] = args.input
    if args.output:
        overrides["paths"]["output"] = args.output
    if args.render_dir:
        overrides["paths"]["render_dir"] = args.render_dir
    if args.summary:
        overrides["paths"]["summary"] = args.summary
    if args.landmarks:
        overrides["model"]["landmarks"] = args.landmarks
    if args.scale is not None:
        overrides["model"]["frame_scale"] = args.scale
    if args.backend:
        overrides["model"]["backend"] = args.backend
    if args.labels:
        overrides["render"]["draw_labels"] = True
    if args.max_frames is not None:
        overrides["runtime"]["max_frames"] = args.max_frames
    if args.log_level:
        overrides["runtime"]["log_level"] = args.log_level
    return overrides


def run(args: argparse.Namespace) -> int:
    cfg = load_and_merge(args.config, build_overrides(args))
    setup_logging(cfg["runtime"].get("log_level", "INFO"))

    paths = cfg["paths"]
    source = paths.get("input")
    output = paths.get("output")
    max_frames = cfg["runtime"].get("max_frames")
    cached = bool(output) and Path(output).is_file()
    if not source and (args.force or not cached):
        raise SystemExit("An input video/image directory (or an existing --output sequence) is required")

    if cached and not args.force:
        # Stored sequence: no model needed
        logger.info("Loading stored sequence: %s", output)
        session = SequenceFaceLandmarks()
        session.load(output)
    else:
        if cached:
            logger.info("Ignoring existing sequence file: %s", output)
        session = find_face_landmarks(
            None, source, max_frames=max_frames, progress=not args.no_progress, session=session_from_config(cfg)
        )
        if output:
            session.save(output)

    if paths.get("summary"):
        write_summary(session, paths["summary"], extra={"input": str(source) if source else None})
    if paths.get("render_dir"):
        if not source:
            raise SystemExit("Rendering requires the input frames")
        write_overlays(session, FrameSource(source, max_frames=max_frames), paths["render_dir"], cfg["render"])

    print(f"Frames: {session.size()}  Faces: {sum(len(f.faces) for f in session)}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    try:
        return run(args)
    except (FaceLandmarksError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
