"""Face detection capability.

The engine only sees the ``FaceDetector`` protocol. ``MediaPipeFaceDetector``
is the production implementation backed by the MediaPipe Tasks BlazeFace
model running in VIDEO mode.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal, Protocol

import mediapipe as mp
import numpy as np
from mediapipe.tasks import python as mp_python
from mediapipe.tasks.python import vision

if TYPE_CHECKING:
    from pathlib import Path

    from numpy.typing import NDArray

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoundingBox:
    """Detector bounding box in absolute pixel coordinates of the frame."""

    origin_x: float
    origin_y: float
    width: float
    height: float


@dataclass(frozen=True)
class Category:
    score: float
    category_name: str | None = None


@dataclass(frozen=True)
class RawDetection:
    """A single detector result before conversion to a FaceBox.

    ``categories`` are ranked by the detector; the first one carries the
    detection confidence.
    """

    bounding_box: BoundingBox
    categories: tuple[Category, ...] = field(default_factory=tuple)


class FaceDetector(Protocol):
    """Protocol for streaming face detectors."""

    def detect_for_video(self, frame: NDArray[np.uint8], timestamp_ms: int) -> list[RawDetection]:
        """Detect faces in one video frame.

        Args:
            frame: HxWx3 RGB uint8 array.
            timestamp_ms: Monotonic frame timestamp; must increase between calls.

        Returns:
            Detections ordered by the detector's own ranking.
        """
        ...

    def close(self) -> None:
        """Release the detector's runtime resources."""
        ...


class MediaPipeFaceDetector:
    """BlazeFace detector from MediaPipe Tasks in VIDEO running mode."""

    def __init__(
        self,
        model_path: Path,
        *,
        min_detection_confidence: float = 0.5,
        device: Literal["cpu", "gpu"] = "cpu",
    ) -> None:
        delegate = mp_python.BaseOptions.Delegate.GPU if device == "gpu" else mp_python.BaseOptions.Delegate.CPU
        options = vision.FaceDetectorOptions(
            base_options=mp_python.BaseOptions(
                model_asset_path=str(model_path),
                delegate=delegate,
            ),
            running_mode=vision.RunningMode.VIDEO,
            min_detection_confidence=min_detection_confidence,
        )
        self._detector = vision.FaceDetector.create_from_options(options)
        logger.info("Created MediaPipe face detector from %s (device=%s)", model_path, device)

    def detect_for_video(self, frame: NDArray[np.uint8], timestamp_ms: int) -> list[RawDetection]:
        image = mp.Image(image_format=mp.ImageFormat.SRGB, data=np.ascontiguousarray(frame))
        result = self._detector.detect_for_video(image, timestamp_ms)
        return [
            RawDetection(
                bounding_box=BoundingBox(
                    origin_x=det.bounding_box.origin_x,
                    origin_y=det.bounding_box.origin_y,
                    width=det.bounding_box.width,
                    height=det.bounding_box.height,
                ),
                categories=tuple(Category(score=c.score, category_name=c.category_name) for c in det.categories),
            )
            for det in result.detections
        ]

    def close(self) -> None:
        self._detector.close()
