"""Single-axis head-turn liveness heuristic.

A live subject asked to turn their head left and right moves the face centre
by tens of pixels; a photo held in front of the camera only shows detector
jitter. The tracker keeps a short window of horizontal centres and latches
once their spread exceeds a threshold.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from presencex.detection.facebox import FaceBox

logger = logging.getLogger(__name__)


class HeadTurnTracker:
    """Bounded history of face centres with a one-shot liveness latch."""

    def __init__(
        self,
        history_size: int = 20,
        min_samples: int = 10,
        threshold_px: float = 40.0,
    ) -> None:
        if min_samples > history_size:
            raise ValueError("min_samples must not exceed history_size")
        self._min_samples = min_samples
        self._threshold_px = threshold_px
        self._history: deque[float] = deque(maxlen=history_size)
        self._latched = False

    @property
    def history(self) -> tuple[float, ...]:
        return tuple(self._history)

    @property
    def latched(self) -> bool:
        return self._latched

    @property
    def spread(self) -> float | None:
        """max - min of the buffered centres, or None below ``min_samples``."""
        if len(self._history) < self._min_samples:
            return None
        return max(self._history) - min(self._history)

    def add(self, face: FaceBox) -> bool:
        """Record one face position and return the liveness latch."""
        if self._latched:
            return True
        self._history.append(face.center_x)
        spread = self.spread
        if spread is not None and spread > self._threshold_px:
            self._latched = True
            logger.info("Head turn detected (range %.1fpx over %d samples)", spread, len(self._history))
        return self._latched

    def reset(self) -> None:
        self._history.clear()
        self._latched = False
