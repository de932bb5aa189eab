"""
Spatial utilities for the ocean ecosystem simulator.

Grid math for a bounded (non-wrapping) rectangular field addressed by
(row, col): bounds checks and 8-neighbourhood enumeration.

The neighbour order is fixed: row offsets -1, 0, +1 on the outside,
column offsets -1, 0, +1 on the inside, centre excluded.
"""

from __future__ import annotations

import numpy as np


NEIGHBOR_OFFSETS: tuple[tuple[int, int], ...] = tuple(
    (dr, dc)
    for dr in (-1, 0, 1)
    for dc in (-1, 0, 1)
    if not (dr == 0 and dc == 0)
)


def in_bounds(row: int, col: int, depth: int, width: int) -> bool:
    """True if (row, col) lies inside a depth x width grid."""
    return 0 <= row < depth and 0 <= col < width


def adjacent_cells(
    row: int, col: int,
    depth: int, width: int,
) -> list[tuple[int, int]]:
    """
    Enumerate the in-bounds 8-neighbours of a cell, in the fixed order.

    Cells on an edge or corner get fewer neighbours; nothing wraps.

    Args:
        row, col: Centre cell.
        depth, width: Grid dimensions.

    Returns:
        List of (row, col) tuples, centre excluded.
    """
    cells = []
    for dr, dc in NEIGHBOR_OFFSETS:
        r, c = row + dr, col + dc
        if 0 <= r < depth and 0 <= c < width:
            cells.append((r, c))
    return cells


def shuffled(items: list, rng: np.random.Generator) -> list:
    """Return a new list holding `items` in an order drawn from `rng`."""
    if len(items) < 2:
        return list(items)
    order = rng.permutation(len(items))
    return [items[i] for i in order]
