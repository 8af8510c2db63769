"""Model handle: download, load and release the face detector.

Handles fetching the detector asset over HTTP, constructing the detector off
the event loop, and releasing it exactly once.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import httpx

from presencex.ml.face_detector import MediaPipeFaceDetector

if TYPE_CHECKING:
    from collections.abc import Callable

    from presencex.config import Settings
    from presencex.ml.face_detector import FaceDetector

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Model registry
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ModelSpec:
    """Static metadata for a single detector asset."""

    name: str
    url: str
    filename: str
    license: str


MODEL_REGISTRY: dict[str, ModelSpec] = {
    "blaze_face_short_range": ModelSpec(
        name="blaze_face_short_range",
        url=(
            "https://storage.googleapis.com/mediapipe-models/face_detector/"
            "blaze_face_short_range/float16/1/blaze_face_short_range.tflite"
        ),
        filename="blaze_face_short_range.tflite",
        license="Apache-2.0",
    ),
}


def get_spec(model_name: str) -> ModelSpec:
    try:
        return MODEL_REGISTRY[model_name]
    except KeyError:
        raise KeyError(f"Unknown model: {model_name}") from None


# ---------------------------------------------------------------------------
# Handle
# ---------------------------------------------------------------------------

def _create_mediapipe_detector(model_path: Path, settings: Settings) -> FaceDetector:
    return MediaPipeFaceDetector(
        model_path,
        min_detection_confidence=settings.min_detection_confidence,
        device=settings.device,
    )


class ModelHandle:
    """Owns the single detector instance used by one engine."""

    def __init__(
        self,
        settings: Settings,
        detector_factory: Callable[[Path, Settings], FaceDetector] | None = None,
    ) -> None:
        self._settings = settings
        self._models_dir = Path(settings.models_dir)
        self._factory = detector_factory or _create_mediapipe_detector
        self._detector: FaceDetector | None = None

    # -- Public API ---------------------------------------------------------

    @property
    def detector(self) -> FaceDetector | None:
        return self._detector

    @property
    def is_loaded(self) -> bool:
        return self._detector is not None

    def ensure_downloaded(self, model_name: str) -> Path:
        """Download a model asset if it is not already present locally."""
        spec = get_spec(model_name)
        path = self._models_dir / spec.filename
        if path.exists():
            return path

        self._models_dir.mkdir(parents=True, exist_ok=True)
        partial = path.with_name(path.name + ".part")
        with httpx.stream(
            "GET",
            spec.url,
            timeout=self._settings.download_timeout,
            follow_redirects=True,
        ) as response:
            response.raise_for_status()
            with partial.open("wb") as fh:
                for chunk in response.iter_bytes():
                    fh.write(chunk)
        partial.replace(path)
        logger.info("Downloaded %s to %s", model_name, path)
        return path

    async def load(self) -> FaceDetector:
        """Fetch the asset and construct a fresh detector.

        Any previously loaded detector is released first. Blocking work runs
        in a worker thread so the event loop keeps serving.
        """
        self.release()
        model_name = self._settings.face_detection_model
        path = await asyncio.to_thread(self.ensure_downloaded, model_name)
        detector = await asyncio.to_thread(self._factory, path, self._settings)
        # An overlapping load may have installed its detector meanwhile.
        self.release()
        self._detector = detector
        logger.info("Loaded detector %s", model_name)
        return detector

    def release(self) -> None:
        """Close the detector. No-op when nothing is loaded."""
        detector, self._detector = self._detector, None
        if detector is None:
            return
        detector.close()
        logger.info("Released detector %s", self._settings.face_detection_model)
