"""Exception hierarchy for the matting pipeline.

Every error is local to the single image or candidate being processed.
"""

from typing import Optional


class SpriteMatteError(Exception):
    """Base exception for all matting pipeline errors."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause

    def __str__(self):
        text = super().__str__()
        if self.cause is not None:
            text += f" (caused by: {type(self.cause).__name__}: {self.cause})"
        return text


class InvalidDataUrl(SpriteMatteError, ValueError):
    """Malformed data URL: prefix, separator, base64 marker, mime or payload."""


class DecodeError(SpriteMatteError, ValueError):
    """Bytes do not parse as a supported raster format."""


class EncodeError(SpriteMatteError, RuntimeError):
    """PNG encoding or structural re-optimization failed."""
