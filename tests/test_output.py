"""Tests for the data URL → optimized PNG output flow."""

from __future__ import annotations

from io import BytesIO

import numpy as np
import pytest
from PIL import Image

from sprite_matte.config import SpriteGrid
from sprite_matte.data_url import encode_data_url
from sprite_matte.errors import DecodeError, InvalidDataUrl
from sprite_matte.output import (
    export_image_to_path,
    process_batch,
    process_data_url,
    write_output_image,
)
from sprite_matte.png import decode_rgba


def _sprite_data_url(size: int = 32) -> str:
    pixels = np.full((size, size, 4), (0, 255, 0, 255), dtype=np.uint8)
    pixels[8:24, 8:24] = (220, 80, 92, 255)
    buf = BytesIO()
    Image.fromarray(pixels).save(buf, format="PNG")
    return encode_data_url(buf.getvalue(), "png")


BROKEN_URL = "data:image/png;base64," + "A" * 16   # valid base64, not an image


class TestSingleImage:
    def test_process_with_chromakey(self):
        rgba = decode_rgba(process_data_url(_sprite_data_url(), apply_chromakey=True,
                                            sprite_grid=SpriteGrid(1, 1)))
        assert rgba[0, 0, 3] == 0
        assert tuple(rgba[16, 16]) == (220, 80, 92, 255)

    def test_process_without_chromakey_keeps_background(self):
        rgba = decode_rgba(process_data_url(_sprite_data_url()))
        assert tuple(rgba[0, 0]) == (0, 255, 0, 255)

    def test_write_output_image(self, tmp_path):
        dest = tmp_path / "images" / "child_0.png"
        path = write_output_image(_sprite_data_url(), dest, apply_chromakey=True)
        assert path == dest
        assert decode_rgba(dest.read_bytes())[0, 0, 3] == 0
        assert [p.name for p in dest.parent.iterdir()] == ["child_0.png"]

    def test_failed_write_leaves_no_file(self, tmp_path):
        dest = tmp_path / "child_0.png"
        with pytest.raises(DecodeError):
            write_output_image(BROKEN_URL, dest)
        assert not dest.exists()
        assert list(tmp_path.iterdir()) == []

    def test_export_defaults_to_png_suffix(self, tmp_path):
        src = tmp_path / "src.png"
        src.write_bytes(b"png-bytes")
        out = export_image_to_path(src, tmp_path / "exports" / "hero")
        assert out.name == "hero.png"
        assert out.read_bytes() == b"png-bytes"

    def test_export_missing_source(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            export_image_to_path(tmp_path / "nope.png", tmp_path / "out.png")


class TestBatch:
    def test_batch_writes_indexed_files(self, tmp_path):
        result = process_batch([_sprite_data_url(), _sprite_data_url(16)], tmp_path, "child",
                               apply_chromakey=True)
        assert result.ok
        assert [p.name for p in result.paths] == ["child_0.png", "child_1.png"]

    def test_batch_aborts_on_first_failure(self, tmp_path):
        with pytest.raises(InvalidDataUrl):
            process_batch([_sprite_data_url(), "bogus", BROKEN_URL], tmp_path, "child")
        assert list(tmp_path.iterdir()) == []

    def test_batch_partial_success(self, tmp_path):
        result = process_batch([_sprite_data_url(), BROKEN_URL, _sprite_data_url()], tmp_path,
                               "child", allow_partial=True)
        assert not result.ok
        assert [p.name for p in result.paths] == ["child_0.png", "child_2.png"]
        assert [index for index, _ in result.failures] == [1]
        assert isinstance(result.failures[0][1], DecodeError)

    def test_parallel_matches_sequential(self, tmp_path):
        urls = [_sprite_data_url(24), _sprite_data_url(32), _sprite_data_url(40)]
        seq = process_batch(urls, tmp_path / "seq", "img", apply_chromakey=True)
        par = process_batch(urls, tmp_path / "par", "img", apply_chromakey=True, max_workers=3)
        for a, b in zip(seq.paths, par.paths):
            assert a.read_bytes() == b.read_bytes()
