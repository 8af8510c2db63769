"""API route definitions."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Request, Response, UploadFile, status
from fastapi.responses import JSONResponse

from presencex.api.schemas import (
    DetectionStateResponse,
    ErrorResponse,
    HealthResponse,
    ModelInfo,
    ModelsResponse,
)
from presencex.ml.model_manager import MODEL_REGISTRY
from presencex.ml.preprocessing import decode_image

if TYPE_CHECKING:
    from presencex.config import Settings
    from presencex.detection.engine import FaceDetectionEngine
    from presencex.detection.sources import FrameBuffer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1")


def _get_settings(request: Request) -> Settings:
    settings: Settings = request.app.state.settings
    return settings


def _get_engine(request: Request) -> FaceDetectionEngine:
    engine: FaceDetectionEngine = request.app.state.engine
    return engine


def _get_frames(request: Request) -> FrameBuffer:
    frames: FrameBuffer = request.app.state.frames
    return frames


def _state_response(engine: FaceDetectionEngine) -> DetectionStateResponse:
    return DetectionStateResponse.from_state(engine.state)


# ---------------------------------------------------------------------------
# Detection lifecycle
# ---------------------------------------------------------------------------


@router.post(
    "/models/load",
    response_model=DetectionStateResponse,
    summary="Load the face detection model",
)
async def load_models(request: Request) -> DetectionStateResponse:
    """Load (or reload) the detector. Failures are reported in ``error``."""
    engine = _get_engine(request)
    await engine.load_models()
    return _state_response(engine)


@router.post(
    "/detection/start",
    response_model=DetectionStateResponse,
    responses={status.HTTP_409_CONFLICT: {"model": ErrorResponse}},
    summary="Start sampling pushed frames",
)
async def start_detection(request: Request) -> DetectionStateResponse | JSONResponse:
    engine = _get_engine(request)
    engine.start_detection(_get_frames(request))
    state = engine.state
    if not state.is_detecting:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"detail": state.error or "Detection could not be started"},
        )
    return DetectionStateResponse.from_state(state)


@router.post("/detection/stop", response_model=DetectionStateResponse, summary="Stop sampling")
async def stop_detection(request: Request) -> DetectionStateResponse:
    engine = _get_engine(request)
    engine.stop_detection()
    return _state_response(engine)


@router.post("/detection/reset", response_model=DetectionStateResponse, summary="Reset detection state")
async def reset_detection(request: Request) -> DetectionStateResponse:
    engine = _get_engine(request)
    engine.reset_detection()
    return _state_response(engine)


@router.get("/state", response_model=DetectionStateResponse, summary="Current detection state")
async def get_state(request: Request) -> DetectionStateResponse:
    return _state_response(_get_engine(request))


# ---------------------------------------------------------------------------
# Frame source
# ---------------------------------------------------------------------------


@router.put(
    "/frames",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_413_REQUEST_ENTITY_TOO_LARGE: {"model": ErrorResponse},
    },
    summary="Push the latest camera frame",
)
async def push_frame(request: Request, file: UploadFile) -> Response:
    """Decode an uploaded image and make it the current frame."""
    settings = _get_settings(request)
    data = await file.read(settings.max_frame_bytes + 1)
    if len(data) > settings.max_frame_bytes:
        return JSONResponse(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            content={"detail": f"Frame exceeds {settings.max_frame_bytes} bytes"},
        )
    try:
        frame = await asyncio.to_thread(decode_image, data, settings.max_image_pixels)
    except ValueError as exc:
        logger.info("Rejected frame upload: %s", exc)
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})
    _get_frames(request).push(frame)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/frames/pause", status_code=status.HTTP_204_NO_CONTENT, summary="Pause the frame source")
async def pause_frames(request: Request) -> Response:
    _get_frames(request).pause()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/frames/resume", status_code=status.HTTP_204_NO_CONTENT, summary="Resume the frame source")
async def resume_frames(request: Request) -> Response:
    _get_frames(request).resume()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/frames/end", status_code=status.HTTP_204_NO_CONTENT, summary="End the frame stream")
async def end_frames(request: Request) -> Response:
    _get_frames(request).end()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------------
# Service info
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
)
async def health(request: Request) -> HealthResponse:
    """Return service health status."""
    settings = _get_settings(request)
    engine = _get_engine(request)
    state = engine.state
    return HealthResponse(
        status="ok",
        gpu=settings.device == "gpu",
        detector_loaded=state.is_model_loaded,
        detecting=state.is_detecting,
        ticks_processed=engine.ticks_processed,
        ticks_failed=engine.ticks_failed,
        calls_in_flight=engine.calls_in_flight,
        frames_received=_get_frames(request).frames_received,
    )


@router.get(
    "/models",
    response_model=ModelsResponse,
    summary="List available models",
)
async def list_models(request: Request) -> ModelsResponse:
    """Return available detector models and which one is configured."""
    settings = _get_settings(request)
    models = [
        ModelInfo(
            name=spec.name,
            status="active" if spec.name == settings.face_detection_model else "available",
            license=spec.license,
        )
        for spec in MODEL_REGISTRY.values()
    ]
    return ModelsResponse(models=models)
