"""Environment-based configuration for PresenceX."""

from __future__ import annotations

from typing import Literal, Self

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from PRESENCEX_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PRESENCEX_",
        case_sensitive=False,
    )

    # ML device (MediaPipe delegate)
    device: Literal["cpu", "gpu"] = "cpu"

    # Model selection
    face_detection_model: str = "blaze_face_short_range"
    models_dir: str = "models"
    download_timeout: float = Field(default=30.0, gt=0)
    min_detection_confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    preload_model: bool = False

    # Detection loop
    poll_interval_ms: int = Field(default=100, ge=1)

    # Presence confirmation
    confirm_threshold: int = Field(default=3, ge=1)

    # Head-turn liveness; tune head_turn_threshold_px per camera geometry
    history_size: int = Field(default=20, ge=1)
    min_samples: int = Field(default=10, ge=1)
    head_turn_threshold_px: float = Field(default=40.0, ge=0.0)

    # Input limits
    max_frame_bytes: int = Field(default=10_485_760, ge=1)
    max_image_pixels: int = Field(default=16_777_216, ge=1)

    @model_validator(mode="after")
    def _check_history(self) -> Self:
        if self.min_samples > self.history_size:
            raise ValueError("min_samples must not exceed history_size")
        return self


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()
