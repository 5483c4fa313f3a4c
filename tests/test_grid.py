"""Tests for sprite grid geometry and grid guide rendering."""

from __future__ import annotations

import numpy as np
import pytest

from sprite_matte.config import Resolution, SpriteGrid, as_sprite_grid
from sprite_matte.grid import (
    axis_bounds,
    cell_bounds,
    choose_aspect_ratio,
    grid_guide_size,
    inner_span,
    render_grid_guide,
)


class TestCellGeometry:
    @pytest.mark.parametrize("length, count", [(100, 2), (101, 3), (7, 7), (1024, 6), (5, 4)])
    def test_cells_tile_axis_exactly(self, length, count):
        covered = []
        for index in range(count):
            span = axis_bounds(index, count, length)
            assert span is not None
            covered.extend(range(span[0], span[1] + 1))
        assert covered == list(range(length))

    def test_cell_bounds_row_major(self):
        cells = list(cell_bounds(SpriteGrid(2, 3), 30, 20))
        assert len(cells) == 6
        assert cells[0] == (0, 0, 0, 0, 9, 9)
        assert cells[1] == (0, 1, 10, 0, 19, 9)
        assert cells[-1] == (1, 2, 20, 10, 29, 19)

    @pytest.mark.parametrize(
        "span, expected",
        [((0, 9), (1, 8)), ((0, 2), (1, 1)), ((0, 1), (0, 1)), ((5, 5), (5, 5))],
    )
    def test_inner_span_never_crosses_centre(self, span, expected):
        assert inner_span(*span) == expected

    def test_grid_parsing_and_validity(self):
        assert SpriteGrid.parse("2x4") == SpriteGrid(2, 4)
        assert SpriteGrid.parse("3X3").cell_count == 9
        assert as_sprite_grid((0, 4)) is None
        assert as_sprite_grid(None) is None
        assert as_sprite_grid((2, 2)) == SpriteGrid(2, 2)
        with pytest.raises(ValueError):
            SpriteGrid.parse("2by4")


class TestAspectRatio:
    @pytest.mark.parametrize(
        "cols, rows, expected",
        [(1, 1, "1:1"), (4, 1, "16:9"), (3, 4, "3:4"), (2, 3, "2:3"), (3, 2, "3:2"), (0, 3, "1:1")],
    )
    def test_nearest_supported(self, cols, rows, expected):
        assert choose_aspect_ratio(cols, rows) == expected


class TestGridGuide:
    def test_size_follows_ratio(self):
        assert grid_guide_size(2, 4, Resolution.ONE_K) == (1024, 512)
        assert grid_guide_size(4, 1, "1K") == (256, 1024)
        assert grid_guide_size(1, 8, Resolution.ONE_K) == (1024, 256)
        assert grid_guide_size(0, 0, Resolution.TWO_K) == (2048, 2048)

    def test_render_draws_frame_and_dividers(self):
        guide = render_grid_guide(2, 4, Resolution.ONE_K)
        assert guide.shape == (512, 1024, 4)
        assert guide[0, 0, 3] > 0
        assert guide[511, 1023, 3] > 0
        assert np.all(guide[:, 256, 3] > 0)
        assert np.all(guide[256, :, 3] > 0)
        assert guide[100, 100, 3] == 0
        assert guide[400, 900, 3] == 0
