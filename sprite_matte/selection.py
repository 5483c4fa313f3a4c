"""Pick the generated image that best matches a requested resolution.

Providers may return several candidates for one request.  Only one is kept:
the first whose long edge equals the target exactly, otherwise the closest
long edge, then the larger area, then the earlier position.  Candidates that
cannot be decoded are skipped; if none decode, the first raw candidate is
returned unchanged.
"""

import logging
from dataclasses import dataclass
from io import BytesIO
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from PIL import Image, UnidentifiedImageError

from sprite_matte.config import Resolution, resolution_long_edge
from sprite_matte.data_url import decode_data_url
from sprite_matte.errors import InvalidDataUrl

logger = logging.getLogger(__name__)

ResolutionLike = Union[Resolution, str, int]


@dataclass
class Candidate:
    """A decoded candidate, remembered by its position in the returned list."""
    index: int
    width: int
    height: int

    @property
    def long_edge(self) -> int:
        return max(self.width, self.height)

    @property
    def area(self) -> int:
        return self.width * self.height


def probe_dimensions(data: bytes) -> Optional[Tuple[int, int]]:
    """Fully decode ``data`` and return ``(width, height)``, or None if it fails.

    Truncated or corrupt pixel data counts as undecodable even when the
    header is intact.
    """
    try:
        with Image.open(BytesIO(data)) as img:
            img.load()
            width, height = img.size
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError, SyntaxError):
        return None
    return width, height


def rank_candidates(candidates: Iterable[Candidate], target: int) -> List[Candidate]:
    """Order candidates by distance to ``target``, then area desc, then index."""
    return sorted(
        candidates,
        key=lambda c: (abs(c.long_edge - target), -c.area, c.index),
    )


def _select_index(payloads: Sequence[Optional[bytes]], target: int) -> int:
    decoded: List[Candidate] = []
    for index, data in enumerate(payloads):
        dims = probe_dimensions(data) if data is not None else None
        if dims is None:
            logger.debug("Skipping candidate %d: not a decodable image", index)
            continue
        candidate = Candidate(index, *dims)
        if candidate.long_edge == target:
            logger.debug("Candidate %d matches target %d exactly", index, target)
            return index
        decoded.append(candidate)

    if not decoded:
        logger.warning("No candidate decoded; falling back to the first of %d", len(payloads))
        return 0

    best = rank_candidates(decoded, target)[0]
    logger.debug(
        "Candidate %d chosen (%dx%d) for target %d",
        best.index, best.width, best.height, target,
    )
    return best.index


def choose_best_image(payloads: Sequence[bytes], resolution: ResolutionLike) -> List[bytes]:
    """Reduce raw image payloads to the single best match for ``resolution``."""
    if len(payloads) <= 1:
        return list(payloads)
    target = resolution_long_edge(resolution)
    return [payloads[_select_index(payloads, target)]]


def choose_best_data_urls(data_urls: Sequence[str], resolution: ResolutionLike) -> List[str]:
    """Same as :func:`choose_best_image` for data URLs.

    URLs that fail to parse are excluded from ranking like undecodable bytes.
    """
    if len(data_urls) <= 1:
        return list(data_urls)
    target = resolution_long_edge(resolution)

    payloads: List[Optional[bytes]] = []
    for data_url in data_urls:
        try:
            payloads.append(decode_data_url(data_url))
        except InvalidDataUrl:
            payloads.append(None)

    return [data_urls[_select_index(payloads, target)]]
