"""Per-session accumulation of face landmarks over a frame sequence."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Tuple, Union

import numpy as np

from .codec import NpzSequenceCodec, SequenceCodec
from .errors import FeatureNotAvailableError, FrameIndexError, ModelNotConfiguredError
from .extract import check_image, extract_faces
from .models import DlibLandmarkModel, LandmarkModel
from .types import Frame

logger = logging.getLogger(__name__)

ModelLoader = Callable[[Union[str, Path]], LandmarkModel]

_DEFAULT_CODEC = object()


class SequenceFaceLandmarks:
    """Ordered, append-only list of frames plus the model used to fill it.

    Usage:
        seq = SequenceFaceLandmarks("shape_predictor_68_face_landmarks.dat", frame_scale=0.5)
        for image in frames:
            seq.add_frame(image)
        seq.save("landmarks.npz")

    Pass ``codec=None`` for a session without serialization support; its
    ``save``/``load`` raise FeatureNotAvailableError.
    """

    def __init__(
        self,
        model: Union[str, Path, LandmarkModel, None] = None,
        frame_scale: float = 1.0,
        model_loader: Optional[ModelLoader] = None,
        codec: Optional[SequenceCodec] = _DEFAULT_CODEC,  # type: ignore[assignment]
    ):
        frame_scale = float(frame_scale)
        if not frame_scale > 0:
            raise ValueError(f"frame_scale must be positive, got {frame_scale}")
        self.frame_scale = frame_scale
        self.model_loader: ModelLoader = model_loader or DlibLandmarkModel
        self.codec: Optional[SequenceCodec] = NpzSequenceCodec() if codec is _DEFAULT_CODEC else codec
        self.model: Optional[LandmarkModel] = None
        self.model_path: Optional[str] = None
        self._frames: List[Frame] = []
        self.bind_model(model)

    # Model binding
    def bind_model(self, model: Union[str, Path, LandmarkModel, None]) -> None:
        """Bind the landmark model used by later ``add_frame`` calls.

        An empty or missing path leaves the current binding untouched.
        """
        if isinstance(model, LandmarkModel):
            self.model = model
            self.model_path = None
            logger.info("Bound landmark model %s", type(model).__name__)
            return
        if model is None or str(model) == "":
            return
        self.model = self.model_loader(model)
        self.model_path = str(model)
        logger.info("Bound landmark model from %s", self.model_path)

    set_model = bind_model

    @property
    def is_bound(self) -> bool:
        return self.model is not None

    # Ingestion
    def add_frame(self, image: np.ndarray) -> Frame:
        """Extract faces from ``image`` and append them as a new frame.

        Returns the appended frame. Frames are immutable, so the reference
        stays valid after later mutations of the sequence.
        """
        if self.model is None:
            raise ModelNotConfiguredError()
        check_image(image)
        height, width = image.shape[:2]
        faces = extract_faces(image, self.model, self.frame_scale)
        frame = Frame(faces=tuple(faces), width=int(width), height=int(height))
        self._frames.append(frame)
        logger.debug("Frame %d: %d face(s)", len(self._frames) - 1, len(faces))
        return frame

    ingest = add_frame

    def clear(self) -> None:
        self._frames.clear()

    # Access
    def size(self) -> int:
        return len(self._frames)

    def __len__(self) -> int:
        return len(self._frames)

    def at(self, index: int) -> Frame:
        # No negative wrap-around
        if not 0 <= index < len(self._frames):
            raise FrameIndexError(f"Frame index {index} out of range [0, {len(self._frames)})")
        return self._frames[index]

    __getitem__ = at

    def __iter__(self) -> Iterator[Frame]:
        return iter(self._frames)

    @property
    def frames(self) -> Tuple[Frame, ...]:
        return tuple(self._frames)

    def get_sequence(self) -> Tuple[Frame, ...]:
        return self.frames

    # Persistence
    def _require_codec(self) -> SequenceCodec:
        if self.codec is None:
            raise FeatureNotAvailableError()
        return self.codec

    def save(self, path: str | Path) -> None:
        self._require_codec().save(self._frames, path)

    def load(self, path: str | Path) -> None:
        """Replace the sequence with the contents of ``path``.

        On failure the sequence is left empty.
        """
        codec = self._require_codec()
        self.clear()
        frames = codec.load(path)
        self._frames.extend(frames)


__all__ = ["SequenceFaceLandmarks", "ModelLoader"]
