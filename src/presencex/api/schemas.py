"""Pydantic request/response schemas for the PresenceX API."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from presencex.detection.state import DetectionState


class FaceBoxModel(BaseModel):
    """The currently confirmed face as ``[x, y, w, h, confidence]``."""

    x: int = Field(description="Left edge in pixels")
    y: int = Field(description="Top edge in pixels")
    w: int = Field(description="Box width in pixels")
    h: int = Field(description="Box height in pixels")
    confidence: float = Field(ge=0.0, le=1.0, description="Detection confidence rounded to 2 decimals")


class DetectionStateResponse(BaseModel):
    """Observable state of the detection engine."""

    is_model_loaded: bool
    is_detecting: bool
    face_detected: bool
    head_turn_detected: bool
    current_face: FaceBoxModel | None
    error: str | None

    @classmethod
    def from_state(cls, state: DetectionState) -> DetectionStateResponse:
        face = state.current_face
        return cls(
            is_model_loaded=state.is_model_loaded,
            is_detecting=state.is_detecting,
            face_detected=state.face_detected,
            head_turn_detected=state.head_turn_detected,
            current_face=(
                FaceBoxModel(x=face.x, y=face.y, w=face.w, h=face.h, confidence=face.confidence)
                if face is not None
                else None
            ),
            error=state.error,
        )


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    gpu: bool
    detector_loaded: bool
    detecting: bool
    ticks_processed: int
    ticks_failed: int
    calls_in_flight: int
    frames_received: int


class ModelInfo(BaseModel):
    """Information about an available detector model."""

    name: str
    status: str = Field(description="Model status: 'active' or 'available'")
    license: str


class ModelsResponse(BaseModel):
    """Response for the models listing endpoint."""

    models: list[ModelInfo]


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str
