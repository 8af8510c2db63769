"""Inference concurrency layer.

Architecture:
    detection loop (async) -> asyncio.Semaphore(1) -> ThreadPoolExecutor(1) -> detector

The detector is not thread-safe and must see frames in timestamp order, so
each engine gets a single worker and at most one call in flight.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

T = TypeVar("T")

SEMAPHORE_TIMEOUT_SECONDS: float = 5.0


class InferencePool:
    """Manages the semaphore and worker thread for detector calls."""

    def __init__(self, max_concurrent: int = 1) -> None:
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._executor = ThreadPoolExecutor(
            max_workers=max_concurrent,
            thread_name_prefix="face-detect",
        )
        self._active_count: int = 0
        self._pending: set[concurrent.futures.Future[object]] = set()
        self._counter_lock = threading.Lock()

    async def run(self, func: Callable[..., T], *args: object) -> T:
        """Submit a synchronous function to the worker thread.

        Acquires the semaphore (with timeout), runs the function in the
        executor, then releases. Cancelling the caller does not interrupt a
        call that already started; ``drain()`` waits for it.

        Raises:
            TimeoutError: If the semaphore cannot be acquired within the timeout.
        """
        await asyncio.wait_for(
            self._semaphore.acquire(),
            timeout=SEMAPHORE_TIMEOUT_SECONDS,
        )

        with self._counter_lock:
            self._active_count += 1
        try:
            future = self._executor.submit(func, *args)
            with self._counter_lock:
                self._pending.add(future)
            future.add_done_callback(self._forget)
            return await asyncio.wrap_future(future)
        finally:
            self._semaphore.release()
            with self._counter_lock:
                self._active_count -= 1

    @property
    def active_count(self) -> int:
        """Number of callers currently awaiting a detector call."""
        with self._counter_lock:
            return self._active_count

    async def drain(self) -> None:
        """Wait until every submitted call has finished running."""
        with self._counter_lock:
            pending = list(self._pending)
        if pending:
            logger.debug("Waiting for %d in-flight detector call(s)", len(pending))
            await asyncio.to_thread(concurrent.futures.wait, pending)

    def shutdown(self) -> None:
        """Shut down the worker thread."""
        self._executor.shutdown(wait=True)

    def _forget(self, future: concurrent.futures.Future[object]) -> None:
        with self._counter_lock:
            self._pending.discard(future)
