"""Public interface for sprite matting: chromakey removal, PNG output, candidate selection."""

from __future__ import annotations

from .chromakey import apply_chromakey_transparency, chroma_match_mask, matches_chromakey
from .config import (
    EXPAND_MATCH,
    FRINGE_MATCH,
    FRINGE_PASSES,
    GLOBAL_STRONG_MATCH,
    SEED_MATCH,
    ChromaThresholds,
    Resolution,
    SpriteGrid,
)
from .data_url import decode_data_url, encode_data_url, parse_data_url
from .errors import DecodeError, EncodeError, InvalidDataUrl, SpriteMatteError
from .output import process_batch, process_data_url, write_output_image
from .png import decode_rgba, encode_png_optimized
from .selection import choose_best_data_urls, choose_best_image

__all__ = [
    "apply_chromakey_transparency",
    "chroma_match_mask",
    "matches_chromakey",
    "ChromaThresholds",
    "SEED_MATCH",
    "EXPAND_MATCH",
    "GLOBAL_STRONG_MATCH",
    "FRINGE_MATCH",
    "FRINGE_PASSES",
    "Resolution",
    "SpriteGrid",
    "decode_data_url",
    "encode_data_url",
    "parse_data_url",
    "SpriteMatteError",
    "InvalidDataUrl",
    "DecodeError",
    "EncodeError",
    "process_batch",
    "process_data_url",
    "write_output_image",
    "decode_rgba",
    "encode_png_optimized",
    "choose_best_data_urls",
    "choose_best_image",
]
