"""
Unit tests for spatial utilities (bounded 8-neighbourhood math).
"""

import numpy as np
import pytest

from oceansim.utils.spatial import (
    NEIGHBOR_OFFSETS,
    adjacent_cells,
    in_bounds,
    shuffled,
)


class TestNeighborOffsets:
    def test_eight_offsets_without_centre(self):
        assert len(NEIGHBOR_OFFSETS) == 8
        assert (0, 0) not in NEIGHBOR_OFFSETS

    def test_fixed_order(self):
        assert NEIGHBOR_OFFSETS == (
            (-1, -1), (-1, 0), (-1, 1),
            (0, -1), (0, 1),
            (1, -1), (1, 0), (1, 1),
        )


class TestInBounds:
    @pytest.mark.parametrize("row,col", [(0, 0), (4, 9), (2, 5)])
    def test_inside(self, row, col):
        assert in_bounds(row, col, 5, 10)

    @pytest.mark.parametrize("row,col", [(-1, 0), (0, -1), (5, 0), (0, 10)])
    def test_outside(self, row, col):
        assert not in_bounds(row, col, 5, 10)


class TestAdjacentCells:
    def test_interior_has_eight(self):
        cells = adjacent_cells(2, 2, 5, 5)
        assert len(cells) == 8
        assert (2, 2) not in cells

    def test_corner_has_three(self):
        assert sorted(adjacent_cells(0, 0, 5, 5)) == [(0, 1), (1, 0), (1, 1)]

    def test_edge_has_five(self):
        assert len(adjacent_cells(0, 2, 5, 5)) == 5

    def test_no_wraparound(self):
        cells = adjacent_cells(4, 4, 5, 5)
        assert all(0 <= r < 5 and 0 <= c < 5 for r, c in cells)
        assert (0, 0) not in cells

    def test_single_cell_grid(self):
        assert adjacent_cells(0, 0, 1, 1) == []

    def test_order_is_row_major(self):
        assert adjacent_cells(1, 1, 3, 3) == [
            (0, 0), (0, 1), (0, 2), (1, 0), (1, 2), (2, 0), (2, 1), (2, 2),
        ]


class TestShuffled:
    def test_same_elements(self):
        rng = np.random.default_rng(1)
        items = list(range(8))
        out = shuffled(items, rng)
        assert sorted(out) == items
        assert items == list(range(8))

    def test_reproducible(self):
        a = shuffled(list(range(8)), np.random.default_rng(5))
        b = shuffled(list(range(8)), np.random.default_rng(5))
        assert a == b

    def test_short_lists(self):
        rng = np.random.default_rng(0)
        assert shuffled([], rng) == []
        assert shuffled([3], rng) == [3]
