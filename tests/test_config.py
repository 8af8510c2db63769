"""Tests for environment-based settings."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from presencex.config import Settings, get_settings


class TestSettings:
    def test_defaults(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            settings = get_settings()
        assert settings.device == "cpu"
        assert settings.min_detection_confidence == 0.5
        assert settings.poll_interval_ms == 100
        assert settings.confirm_threshold == 3
        assert settings.history_size == 20
        assert settings.min_samples == 10
        assert settings.head_turn_threshold_px == 40.0

    def test_env_overrides(self) -> None:
        env = {
            "PRESENCEX_POLL_INTERVAL_MS": "50",
            "PRESENCEX_HEAD_TURN_THRESHOLD_PX": "60",
            "PRESENCEX_DEVICE": "gpu",
        }
        with patch.dict(os.environ, env):
            settings = get_settings()
        assert settings.poll_interval_ms == 50
        assert settings.head_turn_threshold_px == 60.0
        assert settings.device == "gpu"

    def test_min_samples_bounded_by_history(self) -> None:
        with pytest.raises(ValidationError, match="min_samples"):
            Settings(history_size=5, min_samples=10)

    def test_confidence_range_validated(self) -> None:
        with pytest.raises(ValidationError):
            Settings(min_detection_confidence=1.5)
