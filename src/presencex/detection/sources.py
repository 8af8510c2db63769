"""Video frame sources consumed by the detection loop."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    import numpy as np
    from numpy.typing import NDArray


class VideoFrameSource(Protocol):
    """Protocol for live video sources."""

    @property
    def paused(self) -> bool: ...

    @property
    def ended(self) -> bool: ...

    def read(self) -> NDArray[np.uint8] | None:
        """Return the current HxWx3 RGB frame, or None if none is available."""
        ...


class FrameBuffer:
    """Push-based source holding the most recent frame.

    Producers (an HTTP upload handler, a capture thread) call ``push``; the
    detection loop samples whatever frame is current at each tick. Starts
    paused until the first frame arrives.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._frame: NDArray[np.uint8] | None = None
        self._paused = False
        self._ended = False
        self._frames_received = 0

    @property
    def paused(self) -> bool:
        with self._lock:
            return self._paused or self._frame is None

    @property
    def ended(self) -> bool:
        with self._lock:
            return self._ended

    @property
    def frames_received(self) -> int:
        with self._lock:
            return self._frames_received

    def read(self) -> NDArray[np.uint8] | None:
        with self._lock:
            return self._frame

    def push(self, frame: NDArray[np.uint8]) -> None:
        """Replace the current frame. A pushed frame reopens an ended stream."""
        with self._lock:
            self._frame = frame
            self._ended = False
            self._frames_received += 1

    def pause(self) -> None:
        with self._lock:
            self._paused = True

    def resume(self) -> None:
        with self._lock:
            self._paused = False

    def end(self) -> None:
        with self._lock:
            self._ended = True
            self._frame = None
