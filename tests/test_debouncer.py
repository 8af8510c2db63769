"""Tests for the presence confirmation debouncer."""

from __future__ import annotations

import pytest

from presencex.detection.debouncer import ConfirmationDebouncer


def _feed(debouncer: ConfirmationDebouncer, outcomes: list[bool]) -> list[tuple[int, bool]]:
    return [_step(debouncer, o) for o in outcomes]


def _step(debouncer: ConfirmationDebouncer, detected: bool) -> tuple[int, bool]:
    present = debouncer.update(detected)
    return debouncer.count, present


class TestConfirmationDebouncer:
    def test_two_present_one_absent_two_present(self) -> None:
        debouncer = ConfirmationDebouncer(threshold=3)
        path = _feed(debouncer, [True, True, False, True, True])
        assert [count for count, _ in path] == [1, 2, 1, 2, 3]
        assert [present for _, present in path] == [False, False, False, False, True]

    def test_counter_never_negative(self) -> None:
        debouncer = ConfirmationDebouncer()
        path = _feed(debouncer, [False, False, True, False, False, False])
        assert all(count >= 0 for count, _ in path)
        assert debouncer.count == 0

    def test_presence_held_until_counter_drains(self) -> None:
        debouncer = ConfirmationDebouncer(threshold=3)
        _feed(debouncer, [True, True, True])
        assert debouncer.present

        path = _feed(debouncer, [False, False, False])
        assert path == [(2, True), (1, True), (0, False)]

    def test_counter_saturates_at_threshold(self) -> None:
        debouncer = ConfirmationDebouncer(threshold=3)
        _feed(debouncer, [True] * 50)
        assert debouncer.count == 3
        _feed(debouncer, [False] * 3)
        assert not debouncer.present

    def test_reconfirmation_needs_threshold_again(self) -> None:
        debouncer = ConfirmationDebouncer(threshold=3)
        _feed(debouncer, [True, True, True, False, False, False])
        path = _feed(debouncer, [True, True, True])
        assert [present for _, present in path] == [False, False, True]

    def test_confirmed_only_at_threshold(self) -> None:
        debouncer = ConfirmationDebouncer(threshold=3)
        _feed(debouncer, [True, True, True, False])
        assert debouncer.present
        assert not debouncer.confirmed
        debouncer.update(True)
        assert debouncer.confirmed

    def test_reset(self) -> None:
        debouncer = ConfirmationDebouncer()
        _feed(debouncer, [True, True, True])
        debouncer.reset()
        assert debouncer.count == 0
        assert not debouncer.present

    def test_threshold_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            ConfirmationDebouncer(threshold=0)
