"""Hysteresis filter over per-tick face present/absent outcomes."""

from __future__ import annotations


class ConfirmationDebouncer:
    """Turns noisy per-tick detector outcomes into a stable presence flag.

    Positive ticks increment a counter and negative ticks decrement it.
    Presence is declared when the counter reaches ``threshold`` and withdrawn
    only when it drains back to 0.
    """

    def __init__(self, threshold: int = 3) -> None:
        if threshold < 1:
            raise ValueError("threshold must be >= 1")
        self._threshold = threshold
        self._count = 0
        self._present = False

    @property
    def threshold(self) -> int:
        return self._threshold

    @property
    def count(self) -> int:
        return self._count

    @property
    def present(self) -> bool:
        return self._present

    @property
    def confirmed(self) -> bool:
        """True while the counter sits at the threshold."""
        return self._count >= self._threshold

    def update(self, detected: bool) -> bool:
        """Feed one tick and return the debounced presence flag."""
        if detected:
            # Saturate so absence drains in at most `threshold` ticks.
            self._count = min(self._count + 1, self._threshold)
            if self._count >= self._threshold:
                self._present = True
        else:
            self._count = max(0, self._count - 1)
            if self._count == 0:
                self._present = False
        return self._present

    def reset(self) -> None:
        self._count = 0
        self._present = False
