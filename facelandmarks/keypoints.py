from __future__ import annotations

from typing import Dict, List, NamedTuple, Tuple


class Contour(NamedTuple):
    """Run of landmark indices joined to their predecessor.

    Every index in ``first..last`` is connected to ``index - 1``; a closed
    contour also joins ``start`` to ``last``.
    """

    name: str
    first: int
    last: int
    closed: bool = False

    @property
    def start(self) -> int:
        return self.first - 1

    def segments(self) -> List[Tuple[int, int]]:
        segs = [(i - 1, i) for i in range(self.first, self.last + 1)]
        if self.closed:
            segs.append((self.start, self.last))
        return segs


# 68-point iBUG/dlib numbering, 0-based
CONTOURS_68: Tuple[Contour, ...] = (
    Contour("jaw", 1, 16),
    Contour("nose_bridge", 28, 30),
    Contour("right_eyebrow", 18, 21),
    Contour("left_eyebrow", 23, 26),
    Contour("lower_nose", 31, 35, closed=True),
    Contour("right_eye", 37, 41, closed=True),
    Contour("left_eye", 43, 47, closed=True),
    Contour("outer_mouth", 49, 59, closed=True),
    Contour("inner_mouth", 61, 67, closed=True),
)

NUM_LANDMARKS_68 = 68

CONTOUR_TABLES: Dict[int, Tuple[Contour, ...]] = {
    NUM_LANDMARKS_68: CONTOURS_68,
}


def contour_segments(num_points: int) -> List[Tuple[int, int]]:
    """Return (i, j) index pairs to draw for a scheme of ``num_points``.

    Empty when no contour table is known for that point count.
    """
    table = CONTOUR_TABLES.get(num_points, ())
    return [seg for contour in table for seg in contour.segments()]


__all__ = [
    "Contour",
    "CONTOURS_68",
    "NUM_LANDMARKS_68",
    "CONTOUR_TABLES",
    "contour_segments",
]
