"""Matting configuration: chroma thresholds, sprite grids, resolutions."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union


# ---------------------------------------------------------------------------
# Chroma match thresholds
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ChromaThresholds:
    """Limits for one strictness level of the chromakey colour test.

    A pixel matches when its green channel is at least ``min_green``, it
    leads the stronger of red/blue by at least ``min_green_lead`` and its
    squared distance from pure green in ``(r, 255 - g, b)`` space is at most
    ``max_distance_sq``.
    """
    min_green: int
    min_green_lead: int
    max_distance_sq: int


# Border seeding: tight, so desaturated subject colours never start a fill.
SEED_MATCH = ChromaThresholds(min_green=80, min_green_lead=18, max_distance_sq=30_000)

# Flood-fill growth: looser, to keep the fill continuous across shading.
EXPAND_MATCH = ChromaThresholds(min_green=40, min_green_lead=6, max_distance_sq=45_000)

# Whole-image pass for unreachable backdrop islands: unambiguous green only.
GLOBAL_STRONG_MATCH = ChromaThresholds(min_green=95, min_green_lead=20, max_distance_sq=36_000)

# Edge bleed, only ever applied next to an already transparent pixel.
FRINGE_MATCH = ChromaThresholds(min_green=35, min_green_lead=2, max_distance_sq=55_000)

FRINGE_PASSES = 2


# ---------------------------------------------------------------------------
# Sprite grids
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SpriteGrid:
    """``rows x cols`` partition of a sprite sheet into equal cells."""
    rows: int
    cols: int

    @property
    def is_valid(self) -> bool:
        return self.rows > 0 and self.cols > 0

    @property
    def cell_count(self) -> int:
        return self.rows * self.cols if self.is_valid else 0

    @classmethod
    def parse(cls, text: str) -> "SpriteGrid":
        """Parse ``"RxC"`` (e.g. ``"2x4"``) into a grid."""
        parts = text.lower().replace("*", "x").split("x")
        if len(parts) != 2:
            raise ValueError(f"Expected grid as ROWSxCOLS, got {text!r}")
        return cls(rows=int(parts[0]), cols=int(parts[1]))


GridLike = Union[SpriteGrid, Tuple[int, int]]


def as_sprite_grid(grid: Optional[GridLike]) -> Optional[SpriteGrid]:
    """Normalise a grid argument; invalid grids are treated as absent."""
    if grid is None:
        return None
    if not isinstance(grid, SpriteGrid):
        rows, cols = grid
        grid = SpriteGrid(int(rows), int(cols))
    return grid if grid.is_valid else None


# ---------------------------------------------------------------------------
# Resolutions
# ---------------------------------------------------------------------------

class Resolution(str, Enum):
    ONE_K = "1K"
    TWO_K = "2K"
    FOUR_K = "4K"

    @property
    def long_edge(self) -> int:
        return _LONG_EDGES[self]


_LONG_EDGES = {
    Resolution.ONE_K: 1024,
    Resolution.TWO_K: 2048,
    Resolution.FOUR_K: 4096,
}


def resolution_long_edge(resolution: Union[Resolution, str, int]) -> int:
    """Target long edge in pixels for an enum member, its value, or an int."""
    if isinstance(resolution, Resolution):
        return resolution.long_edge
    if isinstance(resolution, str):
        return Resolution(resolution.upper()).long_edge
    return int(resolution)


# ---------------------------------------------------------------------------
# Data URLs
# ---------------------------------------------------------------------------

SUPPORTED_MIMES = ("image/png", "image/jpeg", "image/jpg", "image/webp")

EXTENSION_MIMES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "webp": "image/webp",
}
DEFAULT_MIME = "image/png"


# ---------------------------------------------------------------------------
# Grid guides
# ---------------------------------------------------------------------------

SUPPORTED_ASPECT_RATIOS = [
    ("1:1", 1.0),
    ("4:3", 4.0 / 3.0),
    ("3:4", 3.0 / 4.0),
    ("16:9", 16.0 / 9.0),
    ("9:16", 9.0 / 16.0),
    ("3:2", 3.0 / 2.0),
    ("2:3", 2.0 / 3.0),
]

MIN_GUIDE_SHORT_EDGE = 256
GUIDE_LINE_RGBA = (0, 0, 0, 230)   # rgba(0,0,0,0.9)
