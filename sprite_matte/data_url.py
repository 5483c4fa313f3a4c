"""Encode and decode ``data:<mime>;base64,<payload>`` image strings."""

import base64
import binascii
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from sprite_matte.config import DEFAULT_MIME, EXTENSION_MIMES, SUPPORTED_MIMES
from sprite_matte.errors import InvalidDataUrl

logger = logging.getLogger(__name__)

DATA_URL_PREFIX = "data:"


@dataclass
class ParsedDataUrl:
    mime: str
    data: bytes


def parse_data_url(data_url: str) -> ParsedDataUrl:
    """Split a data URL into its mime type and decoded payload.

    Raises InvalidDataUrl when the prefix or the metadata/payload comma is
    missing, the metadata is not marked ``;base64``, the mime type is not an
    allowed image type, or the payload is not valid base64.
    """
    if not isinstance(data_url, str) or not data_url.startswith(DATA_URL_PREFIX):
        raise InvalidDataUrl("expected a data URL with image payload")

    metadata, sep, payload = data_url.partition(",")
    if not sep:
        raise InvalidDataUrl("invalid data URL format")

    if ";base64" not in metadata:
        raise InvalidDataUrl("data URL must be base64 encoded")

    mime = metadata[len(DATA_URL_PREFIX):].split(";", 1)[0]
    if mime not in SUPPORTED_MIMES:
        raise InvalidDataUrl(
            f"unsupported image mime type: {mime}. allowed: png/jpeg/webp"
        )

    try:
        data = base64.b64decode(payload.strip(), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidDataUrl("data URL payload is not valid base64", cause=exc) from exc

    return ParsedDataUrl(mime=mime, data=data)


def decode_data_url(data_url: str) -> bytes:
    return parse_data_url(data_url).data


def validate_data_url(data_url: str) -> None:
    parse_data_url(data_url)


def mime_for_extension(extension: str) -> str:
    """Map a file extension (``png``, ``.JPG``...) to an image mime type."""
    key = (extension or "").lstrip(".").lower()
    return EXTENSION_MIMES.get(key, DEFAULT_MIME)


def encode_data_url(data: bytes, extension: str = "png") -> str:
    mime = mime_for_extension(extension)
    payload = base64.b64encode(data).decode("ascii")
    return f"{DATA_URL_PREFIX}{mime};base64,{payload}"


def read_image_path_as_data_url(path: Union[str, Path]) -> str:
    """Read an image file and return it as a data URL keyed on its suffix."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"image path not found: {path}")
    logger.debug("Encoding %s as data URL", path)
    return encode_data_url(path.read_bytes(), path.suffix)
