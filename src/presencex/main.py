"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from presencex.api.routes import router
from presencex.config import get_settings
from presencex.detection.engine import FaceDetectionEngine
from presencex.detection.sources import FrameBuffer

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: initialize on startup, clean up on shutdown."""
    settings = get_settings()
    app.state.settings = settings

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    logger.info(
        "Starting PresenceX (device=%s, model=%s, interval=%sms, head_turn_threshold=%spx)",
        settings.device,
        settings.face_detection_model,
        settings.poll_interval_ms,
        settings.head_turn_threshold_px,
    )

    engine = FaceDetectionEngine(settings)
    app.state.engine = engine
    app.state.frames = FrameBuffer()

    if settings.preload_model:
        await engine.load_models()

    logger.info("PresenceX ready")
    yield

    logger.info("Shutting down PresenceX")
    await engine.close()
    logger.info("PresenceX shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title="PresenceX",
        description="Face presence and head-turn liveness detection for attendance check-in",
        version="0.1.0",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.include_router(router)
    return application


app = create_app()
