"""Tests for lossless PNG encoding and re-optimization."""

from __future__ import annotations

from io import BytesIO
from unittest.mock import patch

import numpy as np
import pytest
from PIL import Image
from PIL.PngImagePlugin import PngInfo

from sprite_matte.chromakey import apply_chromakey_transparency
from sprite_matte.errors import DecodeError, EncodeError
from sprite_matte.png import decode_rgba, encode_png, encode_png_optimized, optimize_png

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def _random_rgba(width: int = 32, height: int = 24, seed: int = 42) -> np.ndarray:
    rng = np.random.RandomState(seed)
    return rng.randint(0, 256, (height, width, 4)).astype(np.uint8)


class TestEncode:
    def test_round_trip_is_lossless(self):
        rgba = _random_rgba()
        decoded = decode_rgba(encode_png_optimized(rgba))
        assert decoded.shape == rgba.shape
        assert np.array_equal(decoded, rgba)

    def test_round_trip_after_matting(self):
        rgba = np.full((40, 40, 4), (0, 255, 0, 255), dtype=np.uint8)
        rgba[10:30, 10:30] = (200, 40, 90, 255)
        apply_chromakey_transparency(rgba)

        decoded = decode_rgba(encode_png_optimized(rgba))
        assert np.array_equal(decoded, rgba)

    def test_flat_image_round_trip(self):
        # few colours: the optimizer is free to pick a palette encoding
        rgba = np.zeros((16, 16, 4), dtype=np.uint8)
        rgba[4:12, 4:12] = (12, 34, 56, 255)
        assert np.array_equal(decode_rgba(encode_png_optimized(rgba)), rgba)

    def test_output_is_png(self):
        assert encode_png(_random_rgba(4, 4)).startswith(PNG_SIGNATURE)
        assert encode_png_optimized(_random_rgba(4, 4)).startswith(PNG_SIGNATURE)

    def test_rejects_wrong_shape(self):
        with pytest.raises(EncodeError):
            encode_png(np.zeros((4, 4, 3), dtype=np.uint8))

    def test_stage_one_is_pillow_at_max_zlib_level(self):
        real_save = Image.Image.save
        with patch.object(Image.Image, "save", autospec=True, side_effect=real_save) as save:
            encode_png(_random_rgba(8, 8))
        _, kwargs = save.call_args
        assert kwargs["format"] == "PNG"
        assert kwargs["compress_level"] == 9
        # no fixed filter or optimize flag: Pillow picks each row's filter
        assert "optimize" not in kwargs


class TestOptimize:
    def test_strips_text_metadata(self):
        info = PngInfo()
        info.add_text("Comment", "generated by a model")
        buf = BytesIO()
        Image.fromarray(_random_rgba(8, 8)).save(buf, format="PNG", pnginfo=info)
        original = buf.getvalue()
        assert b"tEXt" in original

        optimized = optimize_png(original)
        assert b"tEXt" not in optimized
        assert np.array_equal(decode_rgba(optimized), decode_rgba(original))

    def test_invalid_png_raises_encode_error(self):
        with pytest.raises(EncodeError):
            optimize_png(b"not a png at all")


class TestDecode:
    def test_decodes_rgb_as_opaque_rgba(self):
        buf = BytesIO()
        Image.new("RGB", (3, 2), (1, 2, 3)).save(buf, format="PNG")
        decoded = decode_rgba(buf.getvalue())
        assert decoded.shape == (2, 3, 4)
        assert np.all(decoded == (1, 2, 3, 255))

    def test_garbage_raises_decode_error(self):
        with pytest.raises(DecodeError):
            decode_rgba(b"\x00\x01garbage")
