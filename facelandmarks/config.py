from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional

import yaml

from .sequence import SequenceFaceLandmarks

logger = logging.getLogger(__name__)


DEFAULTS: Dict[str, Any] = {
    "paths": {
        # Video file, image directory, or single image
        "input": None,
        # Sequence artifact (.npz); loaded instead of detecting when it exists
        "output": None,
        "render_dir": None,
        "summary": None,
    },
    "model": {
        # "dlib" (68-point shape predictor) or "mediapipe" (FaceMesh)
        "backend": "dlib",
        # Path to the dlib shape predictor, e.g. shape_predictor_68_face_landmarks.dat
        "landmarks": None,
        "frame_scale": 1.0,
        "upsample": 0,
        "max_faces": 2,
        "refine_landmarks": False,
    },
    "render": {
        # BGR
        "bbox_color": [0, 0, 255],
        "landmarks_color": [0, 255, 0],
        "thickness": 1,
        "draw_labels": False,
    },
    "runtime": {
        "max_frames": None,
        "log_level": "INFO",
    },
}


def _deep_merge(base: MutableMapping[str, Any], override: Mapping[str, Any]) -> MutableMapping[str, Any]:
    for k, v in override.items():
        if k in base and isinstance(base[k], MutableMapping) and isinstance(v, Mapping):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def load_yaml(path: str | Path | None) -> Dict[str, Any]:
    if not path:
        return {}
    p = Path(path)
    if not p.exists():
        logger.warning("YAML config not found: %s", p)
        return {}
    with p.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError("Top-level of YAML must be a mapping/dict")
    return data


def merge_config(yaml_cfg: Mapping[str, Any] | None = None, cli_overrides: Mapping[str, Any] | None = None) -> Dict[str, Any]:
    cfg: Dict[str, Any] = copy.deepcopy(DEFAULTS)
    if yaml_cfg:
        _deep_merge(cfg, dict(yaml_cfg))
    if cli_overrides:
        _deep_merge(cfg, dict(cli_overrides))

    model = cfg["model"]
    scale = model.get("frame_scale")
    model["frame_scale"] = 1.0 if scale is None else float(scale)
    render = cfg["render"]
    render["bbox_color"] = tuple(int(c) for c in render["bbox_color"])
    render["landmarks_color"] = tuple(int(c) for c in render["landmarks_color"])
    render["thickness"] = int(render["thickness"])
    return cfg


def load_and_merge(yaml_path: str | Path | None, cli_overrides: Mapping[str, Any] | None = None) -> Dict[str, Any]:
    yaml_cfg = load_yaml(yaml_path)
    return merge_config(yaml_cfg, cli_overrides)


def session_from_config(cfg: Mapping[str, Any]) -> SequenceFaceLandmarks:
    """Create a session with the model described by ``cfg["model"]``.

    The dlib backend stays unbound when no landmarks path is configured.
    """
    model_cfg: Dict[str, Any] = dict(cfg.get("model", {}))
    backend = model_cfg.get("backend", "dlib")
    frame_scale = float(model_cfg.get("frame_scale", 1.0))

    if backend == "dlib":
        from .models import DlibLandmarkModel

        upsample = int(model_cfg.get("upsample", 0))
        return SequenceFaceLandmarks(
            model_cfg.get("landmarks"),
            frame_scale=frame_scale,
            model_loader=lambda path: DlibLandmarkModel(path, upsample=upsample),
        )
    if backend == "mediapipe":
        from .facemesh import FaceMeshConfig, FaceMeshLandmarkModel

        fm_cfg = FaceMeshConfig(
            static_image_mode=True,
            refine_landmarks=bool(model_cfg.get("refine_landmarks", False)),
            max_faces=int(model_cfg.get("max_faces", 2)),
        )
        return SequenceFaceLandmarks(FaceMeshLandmarkModel(fm_cfg), frame_scale=frame_scale)
    raise ValueError(f"Unknown landmark backend: {backend!r} (expected 'dlib' or 'mediapipe')")


__all__ = ["DEFAULTS", "load_yaml", "merge_config", "load_and_merge", "session_from_config"]
