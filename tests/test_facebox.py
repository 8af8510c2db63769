"""Tests for the FaceBox codec."""

from __future__ import annotations

import pytest

from presencex.detection.facebox import FaceBox, to_face_box
from presencex.ml.face_detector import BoundingBox, Category, RawDetection


def _detection(x: float, y: float, w: float, h: float, *scores: float) -> RawDetection:
    return RawDetection(
        bounding_box=BoundingBox(origin_x=x, origin_y=y, width=w, height=h),
        categories=tuple(Category(score=s) for s in scores),
    )


class TestToFaceBox:
    def test_rounds_pixels_and_confidence(self) -> None:
        box = to_face_box(_detection(12.6, 8.2, 50.4, 60.9, 0.873))
        assert box == FaceBox(x=13, y=8, w=50, h=61, confidence=0.87)

    def test_half_values_round_up(self) -> None:
        box = to_face_box(_detection(10.5, 11.5, 20.5, 21.5, 0.125))
        assert (box.x, box.y, box.w, box.h) == (11, 12, 21, 22)
        assert box.confidence == 0.13

    def test_coordinates_are_not_rescaled(self) -> None:
        box = to_face_box(_detection(640.0, 360.0, 200.0, 240.0, 0.99))
        assert box.as_list() == [640, 360, 200, 240, 0.99]

    def test_uses_first_category_score(self) -> None:
        box = to_face_box(_detection(0, 0, 10, 10, 0.61, 0.95))
        assert box.confidence == 0.61

    def test_missing_category_raises(self) -> None:
        with pytest.raises(ValueError, match="no category"):
            to_face_box(_detection(0, 0, 10, 10))

    def test_input_is_left_untouched(self) -> None:
        detection = _detection(12.6, 8.2, 50.4, 60.9, 0.873)
        to_face_box(detection)
        assert detection.bounding_box.origin_x == 12.6
        assert detection.categories[0].score == 0.873


class TestFaceBox:
    def test_center_x(self) -> None:
        assert FaceBox(x=100, y=0, w=51, h=60, confidence=0.9).center_x == 125.5

    def test_is_immutable(self) -> None:
        box = FaceBox(x=1, y=2, w=3, h=4, confidence=0.5)
        with pytest.raises(AttributeError):
            box.x = 10  # type: ignore[misc]
