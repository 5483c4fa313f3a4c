"""Sprite grid geometry and reference grid-guide rendering.

Cells are laid out by integer proportional division of the image size, so
they tile the image exactly: cell ``i`` of ``n`` along an axis of length
``L`` spans ``[i*L // n, (i+1)*L // n - 1]``.
"""

import math
from typing import Iterator, Optional, Tuple, Union

import numpy as np

from sprite_matte.config import (
    GUIDE_LINE_RGBA,
    MIN_GUIDE_SHORT_EDGE,
    SUPPORTED_ASPECT_RATIOS,
    Resolution,
    SpriteGrid,
    resolution_long_edge,
)


def axis_bounds(index: int, count: int, length: int) -> Optional[Tuple[int, int]]:
    """Inclusive ``(start, end)`` span of cell ``index`` along one axis.

    Returns None for an empty span (more cells than pixels).
    """
    start = (index * length) // count
    end = max(((index + 1) * length) // count - 1, 0)
    if start > end:
        return None
    return start, end


def inner_span(start: int, end: int) -> Tuple[int, int]:
    """Inset a span by one pixel on each side unless that would cross its centre."""
    if end > start + 1:
        return start + 1, end - 1
    return start, end


def cell_bounds(grid: SpriteGrid, width: int, height: int) -> Iterator[Tuple[int, int, int, int, int, int]]:
    """Yield ``(row, col, left, top, right, bottom)`` for every non-empty cell.

    Bounds are inclusive. Cells are visited row-major.
    """
    for row in range(grid.rows):
        y_span = axis_bounds(row, grid.rows, height)
        if y_span is None:
            continue
        for col in range(grid.cols):
            x_span = axis_bounds(col, grid.cols, width)
            if x_span is None:
                continue
            yield row, col, x_span[0], y_span[0], x_span[1], y_span[1]


def choose_aspect_ratio(cols: int, rows: int) -> str:
    """Pick the supported generation aspect ratio closest to ``cols / rows``."""
    if rows <= 0 or cols <= 0:
        return "1:1"
    target = cols / rows
    name, _ = min(SUPPORTED_ASPECT_RATIOS, key=lambda item: abs(target - item[1]))
    return name


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def grid_guide_size(rows: int, cols: int, resolution: Union[Resolution, str, int]) -> Tuple[int, int]:
    """Return ``(width, height)`` of the guide canvas for a grid."""
    rows = max(1, int(rows or 1))
    cols = max(1, int(cols or 1))
    long_edge = resolution_long_edge(resolution)
    ratio = cols / rows
    if ratio >= 1:
        return long_edge, max(MIN_GUIDE_SHORT_EDGE, _round_half_up(long_edge / ratio))
    return max(MIN_GUIDE_SHORT_EDGE, _round_half_up(long_edge * ratio)), long_edge


def render_grid_guide(rows: int, cols: int, resolution: Union[Resolution, str, int]) -> np.ndarray:
    """Draw a transparent RGBA reference image outlining every sprite cell.

    The guide is attached to sprite-sheet generation requests so the model
    lays frames out on the same grid that matting later uses.
    """
    rows = max(1, int(rows or 1))
    cols = max(1, int(cols or 1))
    width, height = grid_guide_size(rows, cols, resolution)
    line_width = max(1, _round_half_up(min(width, height) / 512))

    canvas = np.zeros((height, width, 4), dtype=np.uint8)
    color = np.array(GUIDE_LINE_RGBA, dtype=np.uint8)

    # outer frame
    canvas[:line_width, :] = color
    canvas[height - line_width:, :] = color
    canvas[:, :line_width] = color
    canvas[:, width - line_width:] = color

    lo = (line_width - 1) // 2
    hi = line_width // 2 + 1
    for col in range(1, cols):
        x = _round_half_up(col * width / cols)
        canvas[:, max(0, x - lo):min(width, x + hi)] = color
    for row in range(1, rows):
        y = _round_half_up(row * height / rows)
        canvas[max(0, y - lo):min(height, y + hi), :] = color

    return canvas
