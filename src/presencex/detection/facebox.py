"""Canonical face box produced from a raw detector result."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from presencex.ml.face_detector import RawDetection


@dataclass(frozen=True)
class FaceBox:
    """Face location as ``[x, y, w, h, confidence]``.

    ``x``/``y`` are the top-left corner in pixels, ``w``/``h`` the box size in
    pixels, ``confidence`` the detector score rounded to 2 decimals.
    """

    x: int
    y: int
    w: int
    h: int
    confidence: float

    @property
    def center_x(self) -> float:
        return self.x + self.w / 2

    def as_list(self) -> list[float]:
        return [self.x, self.y, self.w, self.h, self.confidence]


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def to_face_box(detection: RawDetection) -> FaceBox:
    """Convert a detector result into a FaceBox.

    The bounding box is already in absolute pixels, so no rescaling against
    the frame size happens here.

    Raises:
        ValueError: If the detection carries no category score.
    """
    if not detection.categories:
        raise ValueError("Detection has no category score")
    bbox = detection.bounding_box
    return FaceBox(
        x=_round_half_up(bbox.origin_x),
        y=_round_half_up(bbox.origin_y),
        w=_round_half_up(bbox.width),
        h=_round_half_up(bbox.height),
        confidence=_round_half_up(detection.categories[0].score * 100) / 100,
    )
