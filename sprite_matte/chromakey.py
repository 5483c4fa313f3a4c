"""Chromakey-green background removal for generated images and sprite sheets.

The backdrop is cleared in four ordered stages:

  1. Seeding     - strict matches on the one-pixel-inset border ring of every
                   sprite cell, or on the image's outer border when there is
                   no grid (or the grid seeds nothing).
  2. Flood fill  - 4-connected region growth from the seeds under a
                   looser match, reaching backdrop seen through concave shapes.
  3. Strong pass - any remaining pixel that is unambiguously green is
                   cleared, wherever it is (enclosed backdrop islands).
  4. Fringe      - loose matches with an 8-connected transparent neighbour are
                   cleared, a few passes deep, to remove anti-aliased bleed.

Cleared pixels become ``(0, 0, 0, 0)``.  Pixels left opaque are never
modified.  Images are ``(height, width, 4)`` uint8 numpy arrays and are
mutated in place.
"""

import logging
from typing import Optional

import cv2
import numpy as np

from sprite_matte.config import (
    EXPAND_MATCH,
    FRINGE_MATCH,
    FRINGE_PASSES,
    GLOBAL_STRONG_MATCH,
    SEED_MATCH,
    ChromaThresholds,
    GridLike,
    SpriteGrid,
    as_sprite_grid,
)
from sprite_matte.grid import cell_bounds, inner_span

logger = logging.getLogger(__name__)

_NEIGHBOR_KERNEL = np.ones((3, 3), dtype=np.uint8)


# ---------------------------------------------------------------------------
# Colour matching
# ---------------------------------------------------------------------------

def chroma_green_distance_sq(r: int, g: int, b: int) -> int:
    """Squared distance from pure green in ``(r, 255 - g, b)`` space."""
    dg = 255 - int(g)
    return int(r) * int(r) + dg * dg + int(b) * int(b)


def matches_chromakey(r: int, g: int, b: int, thresholds: ChromaThresholds) -> bool:
    green_lead = max(0, int(g) - max(int(r), int(b)))
    if g < thresholds.min_green or green_lead < thresholds.min_green_lead:
        return False
    return chroma_green_distance_sq(r, g, b) <= thresholds.max_distance_sq


def chroma_match_mask(image: np.ndarray, thresholds: ChromaThresholds) -> np.ndarray:
    """Vectorised :func:`matches_chromakey` over an image's RGB channels."""
    rgb = image[..., :3].astype(np.int32)
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    green_lead = np.maximum(g - np.maximum(r, b), 0)
    dist_sq = r * r + (255 - g) ** 2 + b * b
    return (
        (g >= thresholds.min_green)
        & (green_lead >= thresholds.min_green_lead)
        & (dist_sq <= thresholds.max_distance_sq)
    )


# ---------------------------------------------------------------------------
# Seeding
# ---------------------------------------------------------------------------

def _outer_border_ring(height: int, width: int) -> np.ndarray:
    ring = np.zeros((height, width), dtype=bool)
    ring[0, :] = ring[-1, :] = True
    ring[:, 0] = ring[:, -1] = True
    return ring


def _cell_border_rings(grid: SpriteGrid, height: int, width: int) -> np.ndarray:
    """One-pixel-inset border ring of every cell, clamped for 1-2 pixel cells."""
    ring = np.zeros((height, width), dtype=bool)
    for _, _, x0, y0, x1, y1 in cell_bounds(grid, width, height):
        left, right = inner_span(x0, x1)
        top, bottom = inner_span(y0, y1)
        ring[top, left:right + 1] = True
        ring[bottom, left:right + 1] = True
        ring[top:bottom + 1, left] = True
        ring[top:bottom + 1, right] = True
    return ring


def find_seeds(
    image: np.ndarray,
    sprite_grid: Optional[GridLike] = None,
    seed: ChromaThresholds = SEED_MATCH,
) -> np.ndarray:
    """Boolean mask of flood-fill seed pixels.

    Cell rings are used when a valid grid is given; the image's outer border
    is used otherwise, or when the cell rings hold no strict match.
    """
    height, width = image.shape[:2]
    matches = chroma_match_mask(image, seed)

    grid = as_sprite_grid(sprite_grid)
    if grid is not None:
        seeds = matches & _cell_border_rings(grid, height, width)
        if seeds.any():
            return seeds
        logger.debug("Grid %dx%d seeded nothing, falling back to image border",
                     grid.rows, grid.cols)
    return matches & _outer_border_ring(height, width)


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------

def flood_fill_chromakey(
    image: np.ndarray,
    sprite_grid: Optional[GridLike] = None,
    seed: ChromaThresholds = SEED_MATCH,
    expand: ChromaThresholds = EXPAND_MATCH,
) -> int:
    """Seed and flood-fill the backdrop, clearing every pixel reached.

    The fill is the union of the 4-connected regions of expandable pixels
    (plus the seeds themselves) that contain at least one seed.

    Returns the number of pixels cleared.
    """
    height, width = image.shape[:2]
    if width == 0 or height == 0:
        return 0

    seeds = find_seeds(image, sprite_grid, seed)
    if not seeds.any():
        return 0

    fillable = (chroma_match_mask(image, expand) | seeds).astype(np.uint8)
    _, labels = cv2.connectedComponents(fillable, connectivity=4)
    reached = np.isin(labels, np.unique(labels[seeds]))

    logger.debug("Flood fill from %d seed(s)", int(np.count_nonzero(seeds)))
    image[reached] = 0
    return int(np.count_nonzero(reached))


def clear_strong_chromakey(image: np.ndarray, strong: ChromaThresholds = GLOBAL_STRONG_MATCH) -> int:
    """Clear every opaque pixel that is an unambiguous chroma match."""
    if image.size == 0:
        return 0
    mask = (image[..., 3] != 0) & chroma_match_mask(image, strong)
    image[mask] = 0
    return int(np.count_nonzero(mask))


def _has_transparent_neighbor(image: np.ndarray) -> np.ndarray:
    transparent = (image[..., 3] == 0).astype(np.uint8)
    # dilation ignores out-of-image samples; a pixel's own value only
    # matters when it is transparent, and only opaque pixels are queried
    return cv2.dilate(transparent, _NEIGHBOR_KERNEL).astype(bool)


def clear_chromakey_fringe(
    image: np.ndarray,
    passes: int = FRINGE_PASSES,
    fringe: ChromaThresholds = FRINGE_MATCH,
) -> int:
    """Peel loosely-green pixels that touch transparency, up to ``passes`` times."""
    if image.size == 0:
        return 0
    loose = chroma_match_mask(image, fringe)
    total = 0
    for _ in range(passes):
        to_clear = (image[..., 3] != 0) & loose & _has_transparent_neighbor(image)
        count = int(np.count_nonzero(to_clear))
        if count == 0:
            break
        image[to_clear] = 0
        total += count
    return total


def apply_chromakey_transparency(
    image: np.ndarray,
    sprite_grid: Optional[GridLike] = None,
    *,
    seed: ChromaThresholds = SEED_MATCH,
    expand: ChromaThresholds = EXPAND_MATCH,
    strong: ChromaThresholds = GLOBAL_STRONG_MATCH,
    fringe: ChromaThresholds = FRINGE_MATCH,
    fringe_passes: int = FRINGE_PASSES,
) -> np.ndarray:
    """Turn the chromakey-green backdrop of ``image`` transparent, in place.

    Args:
        image: ``(height, width, 4)`` uint8 RGBA array.
        sprite_grid: optional ``SpriteGrid`` or ``(rows, cols)``; each cell
            is seeded independently.  Grids with rows or cols <= 0 are
            ignored.
        seed, expand, strong, fringe: colour thresholds per stage.
        fringe_passes: maximum number of fringe peeling passes.

    Returns:
        The same array, for chaining.
    """
    if image.ndim != 3 or image.shape[2] != 4 or image.dtype != np.uint8:
        raise ValueError(f"Expected an RGBA uint8 image, got shape {image.shape} dtype {image.dtype}")

    height, width = image.shape[:2]
    if width == 0 or height == 0:
        return image

    filled = flood_fill_chromakey(image, sprite_grid, seed=seed, expand=expand)
    strong_cleared = clear_strong_chromakey(image, strong)
    fringe_cleared = clear_chromakey_fringe(image, fringe_passes, fringe)

    logger.debug(
        "Chromakey %dx%d: flood=%d strong=%d fringe=%d",
        width, height, filled, strong_cleared, fringe_cleared,
    )
    return image
