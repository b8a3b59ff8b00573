"""Binary sequence codec.

A sequence is stored as a compressed NumPy archive of flat int32 tables:

    version  (1,)     format version
    frames   (F, 3)   width, height, face count
    faces    (N, 5)   left, top, width, height, landmark count
    points   (P, 2)   x, y

Faces and points are laid out in frame order, so the counts in ``frames``
and ``faces`` are enough to rebuild the nesting. Everything is int32, which
makes the round trip lossless for pixel coordinates.
"""

from __future__ import annotations

import logging
import math
import struct
import zipfile
import zlib
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Sequence

import numpy as np

from .errors import DeserializationError
from .types import BBox, Face, Frame, Point

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1
_TABLES = {"version": 1, "frames": 3, "faces": 5, "points": 2}
_INT32 = np.dtype("<i4")
_INT32_MIN, _INT32_MAX = np.iinfo(np.int32).min, np.iinfo(np.int32).max


class SequenceCodec(ABC):
    """Capability that writes/reads a list of frames to a single file."""

    @abstractmethod
    def save(self, frames: Sequence[Frame], path: str | Path) -> None: ...

    @abstractmethod
    def load(self, path: str | Path) -> List[Frame]: ...


def _as_int32(rows: list, width: int, name: str) -> np.ndarray:
    arr = np.asarray(rows, dtype=np.int64).reshape(-1, width)
    if arr.size and (arr.min() < _INT32_MIN or arr.max() > _INT32_MAX):
        raise ValueError(f"{name} value out of int32 range")
    return arr.astype(_INT32)


def encode_tables(frames: Sequence[Frame]) -> dict:
    """Flatten frames into the int32 tables described in the module docstring."""
    frame_rows, face_rows, point_rows = [], [], []
    for frame in frames:
        frame_rows.append((frame.width, frame.height, len(frame.faces)))
        for face in frame.faces:
            b = face.bbox
            face_rows.append((b.x, b.y, b.width, b.height, len(face.landmarks)))
            point_rows.extend(face.landmarks)
    return {
        "version": np.array([FORMAT_VERSION], dtype=_INT32),
        "frames": _as_int32(frame_rows, 3, "frame"),
        "faces": _as_int32(face_rows, 5, "face"),
        "points": _as_int32(point_rows, 2, "point"),
    }


def decode_tables(tables) -> List[Frame]:
    """Rebuild frames from tables; raises DeserializationError on any inconsistency."""
    for name, width in _TABLES.items():
        if name not in tables:
            raise DeserializationError(f"Missing table: {name}")
        arr = tables[name]
        if arr.dtype.kind not in "iu" or arr.ndim != (1 if name == "version" else 2):
            raise DeserializationError(f"Malformed table: {name} {arr.dtype} {arr.shape}")
        if name != "version" and arr.shape[1] != width:
            raise DeserializationError(f"Malformed table: {name} has {arr.shape[1]} columns, expected {width}")

    version = tables["version"]
    if version.shape != (1,) or int(version[0]) != FORMAT_VERSION:
        raise DeserializationError(f"Unsupported format version: {version.tolist()}")

    frame_rows = tables["frames"]
    face_rows = tables["faces"]
    point_rows = tables["points"]
    if (frame_rows[:, 2] < 0).any() or (face_rows[:, 4] < 0).any():
        raise DeserializationError("Negative element count")
    if int(frame_rows[:, 2].sum()) != len(face_rows):
        raise DeserializationError(
            f"Declared {int(frame_rows[:, 2].sum())} faces, found {len(face_rows)}"
        )
    if int(face_rows[:, 4].sum()) != len(point_rows):
        raise DeserializationError(
            f"Declared {int(face_rows[:, 4].sum())} landmarks, found {len(point_rows)}"
        )

    frames: List[Frame] = [None] * len(frame_rows)  # type: ignore[list-item]
    face_i = 0
    point_i = 0
    for i, (width, height, n_faces) in enumerate(frame_rows.tolist()):
        faces = []
        for left, top, w, h, n_points in face_rows[face_i:face_i + n_faces].tolist():
            pts = point_rows[point_i:point_i + n_points].tolist()
            faces.append(Face(bbox=BBox(left, top, w, h), landmarks=tuple(Point(x, y) for x, y in pts)))
            point_i += n_points
        face_i += n_faces
        frames[i] = Frame(faces=tuple(faces), width=width, height=height)
    return frames


def _check_member_sizes(archive) -> None:
    """Reject tables whose header declares more data than the member holds.

    Runs before any table is read so a forged shape cannot trigger a huge
    allocation.
    """
    for name in archive.files:
        if name not in _TABLES:
            continue
        member = f"{name}.npy"
        stored = archive.zip.getinfo(member).file_size
        with archive.zip.open(member) as fp:
            major, _ = np.lib.format.read_magic(fp)
            if major == 1:
                shape, _, dtype = np.lib.format.read_array_header_1_0(fp)
            else:
                shape, _, dtype = np.lib.format.read_array_header_2_0(fp)
        declared = math.prod(shape) * dtype.itemsize
        if declared > stored:
            raise DeserializationError(f"Table {name} declares shape {shape} but holds {stored} bytes")


class NpzSequenceCodec(SequenceCodec):
    """Compressed ``.npz`` codec (NumPy only)."""

    def save(self, frames: Sequence[Frame], path: str | Path) -> None:
        tables = encode_tables(frames)
        # File handle keeps numpy from appending ".npz"; "wb" truncates
        with Path(path).open("wb") as f:
            np.savez_compressed(f, **tables)
        logger.info("Saved %d frame(s) to %s", len(frames), path)

    def load(self, path: str | Path) -> List[Frame]:
        p = Path(path)
        try:
            with p.open("rb") as f:
                archive = np.load(f, allow_pickle=False)
                if not isinstance(archive, np.lib.npyio.NpzFile):
                    raise DeserializationError(f"Not a sequence archive: {p}")
                with archive:
                    _check_member_sizes(archive)
                    tables = {name: archive[name] for name in archive.files if name in _TABLES}
        except DeserializationError:
            raise
        except (
            OSError,
            EOFError,
            ValueError,
            KeyError,
            MemoryError,
            NotImplementedError,
            struct.error,
            zipfile.BadZipFile,
            zlib.error,
        ) as exc:
            raise DeserializationError(f"Failed to read sequence file {p}: {exc}") from exc
        frames = decode_tables(tables)
        logger.info("Loaded %d frame(s) from %s", len(frames), p)
        return frames


__all__ = [
    "FORMAT_VERSION",
    "SequenceCodec",
    "NpzSequenceCodec",
    "encode_tables",
    "decode_tables",
]
