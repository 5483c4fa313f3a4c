"""Lossless PNG encoding with a structural re-optimization pass.

Stage one writes the RGBA buffer with Pillow at maximum zlib compression;
Pillow chooses the PNG filter for each row adaptively and zlib only
compresses the filtered rows.  Stage two hands the bytes to oxipng, which
strips non-essential chunks and searches for a smaller encoding of the same
pixels.  Callers persist the result only after both stages return.
"""

import logging
from io import BytesIO

import numpy as np
import oxipng
from PIL import Image, UnidentifiedImageError

from sprite_matte.errors import DecodeError, EncodeError

logger = logging.getLogger(__name__)

PNG_COMPRESS_LEVEL = 9
OXIPNG_PRESET = 3


def encode_png(rgba: np.ndarray) -> bytes:
    """Encode a ``(height, width, 4)`` uint8 array as PNG."""
    if rgba.ndim != 3 or rgba.shape[2] != 4 or rgba.dtype != np.uint8:
        raise EncodeError(f"failed to encode png: expected RGBA uint8, got {rgba.shape} {rgba.dtype}")
    try:
        pil = Image.fromarray(np.ascontiguousarray(rgba))
        buf = BytesIO()
        pil.save(buf, format="PNG", compress_level=PNG_COMPRESS_LEVEL)
    except (OSError, ValueError) as exc:
        raise EncodeError("failed to encode png", cause=exc) from exc
    return buf.getvalue()


def optimize_png(png_bytes: bytes, level: int = OXIPNG_PRESET) -> bytes:
    """Losslessly shrink PNG bytes, dropping chunks that do not affect rendering."""
    try:
        return oxipng.optimize_from_memory(
            png_bytes, level=level, strip=oxipng.StripChunks.safe()
        )
    except oxipng.PngError as exc:
        raise EncodeError("failed to optimize png", cause=exc) from exc


def encode_png_optimized(rgba: np.ndarray, level: int = OXIPNG_PRESET) -> bytes:
    raw = encode_png(rgba)
    optimized = optimize_png(raw, level=level)
    logger.debug(
        "PNG %dx%d: %d -> %d bytes",
        rgba.shape[1], rgba.shape[0], len(raw), len(optimized),
    )
    return optimized


def decode_rgba(data: bytes) -> np.ndarray:
    """Decode PNG/JPEG/WebP bytes to a ``(height, width, 4)`` uint8 array."""
    try:
        with Image.open(BytesIO(data)) as img:
            return np.array(img.convert("RGBA"), dtype=np.uint8)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        raise DecodeError("image decode error", cause=exc) from exc
