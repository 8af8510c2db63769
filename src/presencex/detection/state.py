"""Observable detection state."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from presencex.detection.facebox import FaceBox


@dataclass
class DetectionState:
    """State exposed to callers of the engine.

    ``current_face`` is only set while ``face_detected`` is true.
    """

    is_model_loaded: bool = False
    is_detecting: bool = False
    face_detected: bool = False
    head_turn_detected: bool = False
    current_face: FaceBox | None = None
    error: str | None = None

    def snapshot(self) -> DetectionState:
        return replace(self)

    def clear_detection(self) -> None:
        self.face_detected = False
        self.head_turn_detected = False
        self.current_face = None
