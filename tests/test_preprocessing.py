"""Tests for frame decoding."""

from __future__ import annotations

import io

import numpy as np
import pytest
from PIL import Image

from presencex.ml.preprocessing import decode_image


def _encode(width: int, height: int, mode: str = "RGB", fmt: str = "PNG") -> bytes:
    buf = io.BytesIO()
    Image.new(mode, (width, height), color=0).save(buf, format=fmt)
    return buf.getvalue()


class TestDecodeImage:
    def test_decodes_to_rgb_array(self) -> None:
        frame = decode_image(_encode(32, 24), max_pixels=10_000)
        assert frame.shape == (24, 32, 3)
        assert frame.dtype == np.uint8

    def test_converts_grayscale_to_rgb(self) -> None:
        frame = decode_image(_encode(8, 8, mode="L", fmt="JPEG"), max_pixels=10_000)
        assert frame.shape == (8, 8, 3)

    def test_rejects_garbage(self) -> None:
        with pytest.raises(ValueError, match="Cannot decode"):
            decode_image(b"definitely not an image", max_pixels=10_000)

    def test_rejects_empty(self) -> None:
        with pytest.raises(ValueError, match="Empty"):
            decode_image(b"", max_pixels=10_000)

    def test_rejects_oversized(self) -> None:
        with pytest.raises(ValueError, match="too large"):
            decode_image(_encode(200, 100), max_pixels=10_000)
