"""Presence and liveness detection engine.

Architecture:
    periodic task (poll_interval_ms) -> InferencePool -> FaceDetector
        -> FaceBox -> ConfirmationDebouncer -> HeadTurnTracker -> DetectionState

Each engine owns its detector handle, its working set and its loop task, so
several engines can run independent sessions side by side. A generation
counter is bumped whenever the loop is started, stopped or reset; results
that complete under an older generation are thrown away.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING

from presencex.detection.debouncer import ConfirmationDebouncer
from presencex.detection.facebox import to_face_box
from presencex.detection.head_turn import HeadTurnTracker
from presencex.detection.state import DetectionState
from presencex.ml.inference import InferencePool
from presencex.ml.model_manager import ModelHandle

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from presencex.config import Settings
    from presencex.detection.sources import VideoFrameSource
    from presencex.ml.face_detector import RawDetection

    EventSink = Callable[[str, Mapping[str, object]], None]

logger = logging.getLogger(__name__)

LOAD_FAILED_MESSAGE = "Failed to load the face detection model. Try reloading the page."
NOT_READY_MESSAGE = "Face detection model is not ready yet. Please wait..."


class FaceDetectionEngine:
    """Samples a video source and derives presence and liveness signals."""

    def __init__(
        self,
        settings: Settings,
        handle: ModelHandle | None = None,
        *,
        sink: EventSink | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._settings = settings
        self._handle = handle or ModelHandle(settings)
        self._sink = sink
        self._clock = clock

        self._state = DetectionState()
        self._debouncer = ConfirmationDebouncer(settings.confirm_threshold)
        self._tracker = HeadTurnTracker(
            history_size=settings.history_size,
            min_samples=settings.min_samples,
            threshold_px=settings.head_turn_threshold_px,
        )

        self._pool: InferencePool | None = None
        self._lifecycle_lock = asyncio.Lock()
        self._task: asyncio.Task[None] | None = None
        self._generation = 0
        self._last_timestamp_ms = -1
        self._ticks_processed = 0
        self._ticks_failed = 0

    # -- Public API ---------------------------------------------------------

    @property
    def state(self) -> DetectionState:
        """A copy of the current observable state."""
        return self._state.snapshot()

    @property
    def ticks_processed(self) -> int:
        """Ticks whose detector result was applied to the state."""
        return self._ticks_processed

    @property
    def ticks_failed(self) -> int:
        """Ticks that raised and were skipped."""
        return self._ticks_failed

    @property
    def calls_in_flight(self) -> int:
        return self._pool.active_count if self._pool is not None else 0

    async def load_models(self) -> None:
        """Acquire the detector. Failures end up in ``state.error``, never raised.

        Overlapping calls, and calls overlapping ``close()``, run one at a time.
        """
        async with self._lifecycle_lock:
            await self._load_models()

    async def _load_models(self) -> None:
        self._state.error = None
        # The running session holds the current detector; it must be idle
        # before the handle swaps it out.
        self.stop_detection()
        if self._pool is not None:
            await self._pool.drain()

        try:
            await self._handle.load()
        except Exception:
            logger.exception("Failed to load face detection model %s", self._settings.face_detection_model)
            self._state.error = LOAD_FAILED_MESSAGE
            self._state.is_model_loaded = False
            self._emit("model_load_failed", model=self._settings.face_detection_model)
            return

        if self._pool is None:
            self._pool = InferencePool()
        self._state.is_model_loaded = True
        self._emit("model_loaded", model=self._settings.face_detection_model)

    def start_detection(self, source: VideoFrameSource) -> None:
        """Start sampling ``source``. Must be called inside a running event loop."""
        if not self._state.is_model_loaded or self._handle.detector is None:
            logger.warning("start_detection called before the model was loaded")
            self._state.error = NOT_READY_MESSAGE
            return

        self._cancel_loop()
        self._clear_session()
        self._state.is_detecting = True
        generation = self._generation
        self._task = asyncio.get_running_loop().create_task(
            self._run(source, generation),
            name=f"presencex-detection-{generation}",
        )
        logger.info("Detection started (interval=%dms)", self._settings.poll_interval_ms)
        self._emit("detection_started", interval_ms=self._settings.poll_interval_ms)

    def stop_detection(self) -> None:
        """Halt sampling. Detection results are kept until reset or restart."""
        was_running = self._cancel_loop()
        self._state.is_detecting = False
        if was_running:
            logger.info("Detection stopped")
            self._emit("detection_stopped")

    def reset_detection(self) -> None:
        """Stop and return to the post-load, pre-start condition."""
        self.stop_detection()
        self._clear_session()
        self._emit("detection_reset")

    async def close(self) -> None:
        """Stop the loop and release the detector exactly once."""
        async with self._lifecycle_lock:
            self.stop_detection()
            pool, self._pool = self._pool, None
            if pool is not None:
                await pool.drain()
            self._handle.release()
            if pool is not None:
                await asyncio.to_thread(pool.shutdown)
            self._state.is_model_loaded = False

    # -- Loop ---------------------------------------------------------------

    async def _run(self, source: VideoFrameSource, generation: int) -> None:
        loop = asyncio.get_running_loop()
        interval = self._settings.poll_interval_ms / 1000
        next_tick = loop.time() + interval
        while generation == self._generation:
            await asyncio.sleep(max(0.0, next_tick - loop.time()))
            if generation != self._generation:
                return
            await self._tick(source, generation)

            next_tick += interval
            now = loop.time()
            if next_tick < now:
                # Overran one or more periods; skip them instead of bursting.
                missed = int((now - next_tick) // interval) + 1
                next_tick += missed * interval

    async def _tick(self, source: VideoFrameSource, generation: int) -> None:
        detector = self._handle.detector
        pool = self._pool
        if detector is None or pool is None:
            return

        try:
            if source.paused or source.ended:
                return
            frame = source.read()
            if frame is None:
                return

            timestamp_ms = int(self._clock() * 1000)
            if timestamp_ms == self._last_timestamp_ms:
                return
            self._last_timestamp_ms = timestamp_ms

            detections = await pool.run(detector.detect_for_video, frame, timestamp_ms)
            if generation != self._generation:
                logger.debug("Discarding stale detection result (timestamp=%d)", timestamp_ms)
                return
            self._apply(detections)
        except Exception as exc:
            self._ticks_failed += 1
            logger.warning("Detection tick failed: %s", exc, exc_info=True)
            self._emit("tick_failed", error=str(exc))
            return
        self._ticks_processed += 1

    def _apply(self, detections: list[RawDetection]) -> None:
        # Convert before touching state so a malformed result changes nothing.
        face = to_face_box(detections[0]) if detections else None
        was_present = self._debouncer.present
        present = self._debouncer.update(face is not None)

        if face is not None and present and self._debouncer.confirmed:
            self._state.face_detected = True
            self._state.current_face = face
            if not was_present:
                self._emit("face_confirmed", confidence=face.confidence)
            logger.debug("Face: %s", face.as_list())
            if not self._state.head_turn_detected and self._tracker.add(face):
                self._state.head_turn_detected = True
                self._emit("head_turn_detected", spread=self._tracker.spread)
        elif not present:
            if was_present:
                self._emit("face_lost")
            self._state.face_detected = False
            self._state.current_face = None

    # -- Internal -----------------------------------------------------------

    def _cancel_loop(self) -> bool:
        self._generation += 1
        task, self._task = self._task, None
        if task is None or task.done():
            return False
        task.cancel()
        return True

    def _clear_session(self) -> None:
        self._debouncer.reset()
        self._tracker.reset()
        self._state.clear_detection()

    def _emit(self, event: str, **fields: object) -> None:
        logger.debug("event=%s %s", event, fields)
        if self._sink is None:
            return
        try:
            self._sink(event, fields)
        except Exception:
            logger.exception("Event sink failed for %s", event)
