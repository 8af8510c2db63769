"""Tests for the inference worker pool."""

from __future__ import annotations

import asyncio
import threading

import pytest

from presencex.ml.inference import InferencePool


class TestInferencePool:
    async def test_run_returns_result(self) -> None:
        pool = InferencePool()
        try:
            assert await pool.run(lambda a, b: a + b, 2, 3) == 5
            assert pool.active_count == 0
        finally:
            pool.shutdown()

    async def test_run_propagates_errors(self) -> None:
        def _fail() -> None:
            raise RuntimeError("inference failed")

        pool = InferencePool()
        try:
            with pytest.raises(RuntimeError, match="inference failed"):
                await pool.run(_fail)
            assert pool.active_count == 0
        finally:
            pool.shutdown()

    async def test_calls_are_serialized(self) -> None:
        running = 0
        peak = 0
        lock = threading.Lock()

        def _work() -> None:
            nonlocal running, peak
            with lock:
                running += 1
                peak = max(peak, running)
            threading.Event().wait(0.01)
            with lock:
                running -= 1

        pool = InferencePool()
        try:
            await asyncio.gather(*(pool.run(_work) for _ in range(5)))
        finally:
            pool.shutdown()
        assert peak == 1

    async def test_drain_waits_for_cancelled_call(self) -> None:
        entered = threading.Event()
        release = threading.Event()
        finished = threading.Event()

        def _slow() -> None:
            entered.set()
            release.wait(timeout=5)
            finished.set()

        pool = InferencePool()
        try:
            task = asyncio.create_task(pool.run(_slow))
            assert await asyncio.to_thread(entered.wait, 5)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task
            assert not finished.is_set()

            release.set()
            await pool.drain()
            assert finished.is_set()
        finally:
            release.set()
            pool.shutdown()
