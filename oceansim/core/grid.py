"""
Grid (cell occupancy) for the ocean ecosystem simulator.

A fixed depth x width rectangle of cells. Each cell holds at most one
occupant. Cells store entity ids in a dense NumPy array rather than object
references; ids are never reused, so a cleared cell can never resolve to a
stale or aliased entity.

Invariant: for every occupant, `occupant.location` is the cell whose id
points back at it. `place()` and `clear()` are the only mutators.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator, Optional

import numpy as np
from numpy.typing import NDArray

from oceansim.utils.spatial import adjacent_cells, in_bounds, shuffled

if TYPE_CHECKING:
    from oceansim.core.entity import Entity


DEFAULT_DEPTH = 60
DEFAULT_WIDTH = 100

EMPTY = -1


class GridBoundsError(IndexError):
    """A location outside the grid was used."""


class CellOccupiedError(RuntimeError):
    """An entity was placed into a cell already held by another entity."""


@dataclass(frozen=True, slots=True)
class Location:
    """An immutable (row, col) cell coordinate."""
    row: int
    col: int

    def __repr__(self) -> str:
        return f"Location({self.row}, {self.col})"


class Grid:
    """
    The bounded 2D occupancy structure.

    Attributes:
        depth: Number of rows.
        width: Number of columns.
    """

    def __init__(self, depth: int, width: int):
        """
        Create an empty grid.

        Non-positive dimensions are replaced by the defaults (60 x 100) with
        a warning rather than an error.
        """
        if depth <= 0 or width <= 0:
            warnings.warn(
                f"Grid dimensions must be greater than zero, got {depth}x{width}; "
                f"using default {DEFAULT_DEPTH}x{DEFAULT_WIDTH}.",
                UserWarning,
                stacklevel=2,
            )
            depth, width = DEFAULT_DEPTH, DEFAULT_WIDTH

        self.depth = depth
        self.width = width
        self._cells: NDArray[np.int64] = np.full((depth, width), EMPTY, dtype=np.int64)
        self._occupants: dict[int, Entity] = {}

    # ------------------------------------------------------------------
    # Mutators
    # ------------------------------------------------------------------

    def place(self, entity: Entity, location: Location) -> None:
        """
        Bind `location` to `entity` and `entity` to `location`.

        The entity's previous cell (if it still holds the entity) is cleared.

        Raises:
            GridBoundsError: If location is outside the grid.
            CellOccupiedError: If another entity holds the cell.
        """
        self._check(location)
        held = int(self._cells[location.row, location.col])
        if held != EMPTY and held != entity.id:
            raise CellOccupiedError(
                f"Cannot place {entity.species.value}#{entity.id} at {location}: "
                f"cell held by #{held}"
            )

        old = entity.location
        if old is not None and old != location and self._holds(old, entity.id):
            self._cells[old.row, old.col] = EMPTY

        self._cells[location.row, location.col] = entity.id
        self._occupants[entity.id] = entity
        entity.location = location

    def clear(self, location: Location) -> None:
        """Remove any occupant binding at `location`. Liveness is untouched."""
        self._check(location)
        held = int(self._cells[location.row, location.col])
        if held == EMPTY:
            return
        self._cells[location.row, location.col] = EMPTY
        self._occupants.pop(held, None)

    def clear_all(self) -> None:
        """Empty every cell."""
        self._cells.fill(EMPTY)
        self._occupants.clear()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def occupant_at(self, location: Location) -> Optional[Entity]:
        """The entity in a cell, or None."""
        self._check(location)
        held = int(self._cells[location.row, location.col])
        if held == EMPTY:
            return None
        return self._occupants[held]

    def neighbors(self, location: Location) -> list[Location]:
        """In-bounds 8-neighbours of a cell, in the fixed scan order."""
        self._check(location)
        return [
            Location(r, c)
            for r, c in adjacent_cells(location.row, location.col, self.depth, self.width)
        ]

    def free_neighbors(self, location: Location, rng: np.random.Generator) -> list[Location]:
        """Unoccupied neighbours, in an order drawn from `rng` on every call."""
        free = [
            loc for loc in self.neighbors(location)
            if self._cells[loc.row, loc.col] == EMPTY
        ]
        return shuffled(free, rng)

    def first_free_neighbor(
        self, location: Location, rng: np.random.Generator,
    ) -> Optional[Location]:
        """One free neighbour (random among the free ones), or None."""
        free = self.free_neighbors(location, rng)
        return free[0] if free else None

    def in_bounds(self, location: Location) -> bool:
        return in_bounds(location.row, location.col, self.depth, self.width)

    def occupants(self) -> Iterator[Entity]:
        """Every entity currently placed on the grid."""
        return iter(list(self._occupants.values()))

    @property
    def occupied_count(self) -> int:
        return len(self._occupants)

    def id_array(self) -> NDArray[np.int64]:
        """Read-only view of the cell -> entity id array (-1 = empty)."""
        view = self._cells.view()
        view.flags.writeable = False
        return view

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _check(self, location: Location) -> None:
        if not in_bounds(location.row, location.col, self.depth, self.width):
            raise GridBoundsError(
                f"{location} is outside the {self.depth}x{self.width} grid"
            )

    def _holds(self, location: Location, entity_id: int) -> bool:
        if not in_bounds(location.row, location.col, self.depth, self.width):
            return False
        return int(self._cells[location.row, location.col]) == entity_id

    def __repr__(self) -> str:
        return f"Grid(size={self.depth}x{self.width}, occupied={self.occupied_count})"
