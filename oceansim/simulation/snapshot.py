"""
Read-only field snapshots for view collaborators.

A snapshot is taken between steps and never changes afterwards: the
per-species counts are a mapping proxy and the species grid is a NumPy
array with the writeable flag cleared.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

import numpy as np
from numpy.typing import NDArray

from oceansim.core.environment import Phase, WeatherState
from oceansim.core.grid import Grid, GridBoundsError, Location
from oceansim.core.species import Species


EMPTY_CODE = -1


@dataclass(frozen=True, eq=False)
class FieldSnapshot:
    """
    Immutable view of the field at one step.

    Attributes:
        step: Step number the snapshot was taken after.
        phase: Day/night phase of that step.
        weather: Weather state of that step.
        counts: Live population per species (every species is a key).
        cells: depth x width int8 array of species codes (-1 = empty).
    """
    step: int
    phase: Phase
    weather: WeatherState
    counts: Mapping[Species, int]
    cells: NDArray[np.int8]

    @property
    def depth(self) -> int:
        return int(self.cells.shape[0])

    @property
    def width(self) -> int:
        return int(self.cells.shape[1])

    def species_at(self, location: Location) -> Optional[Species]:
        """Species occupying a cell, or None if empty."""
        if not (0 <= location.row < self.depth and 0 <= location.col < self.width):
            raise GridBoundsError(f"{location} is outside the {self.depth}x{self.width} grid")
        code = int(self.cells[location.row, location.col])
        if code == EMPTY_CODE:
            return None
        return Species.from_code(code)

    @property
    def is_viable(self) -> bool:
        return viable_counts(self.counts)

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    def to_dict(self) -> dict:
        """Serializable form (species by value, phase/weather by value)."""
        return {
            "step": self.step,
            "phase": self.phase.value,
            "weather": self.weather.value,
            "depth": self.depth,
            "width": self.width,
            "counts": {s.value: n for s, n in self.counts.items()},
            "species_codes": {s.value: s.code for s in Species},
            "cells": self.cells.tolist(),
        }


def count_species(grid: Grid) -> dict[Species, int]:
    """Population per species, counted from the grid's occupants."""
    counts = {s: 0 for s in Species}
    for entity in grid.occupants():
        if entity.alive:
            counts[entity.species] += 1
    return counts


def viable_counts(counts: Mapping[Species, int]) -> bool:
    """True while at least two species have a non-zero population."""
    return sum(1 for n in counts.values() if n > 0) >= 2


def is_viable(grid: Grid) -> bool:
    """True while at least two distinct species live on the grid."""
    return viable_counts(count_species(grid))


def take_snapshot(step: int, phase: Phase, weather: WeatherState, grid: Grid) -> FieldSnapshot:
    """Build a read-only snapshot of `grid`."""
    cells = np.full((grid.depth, grid.width), EMPTY_CODE, dtype=np.int8)
    counts = {s: 0 for s in Species}
    for entity in grid.occupants():
        if not entity.alive:
            continue
        loc = entity.location
        cells[loc.row, loc.col] = entity.species.code
        counts[entity.species] += 1
    cells.flags.writeable = False
    return FieldSnapshot(
        step=step,
        phase=phase,
        weather=weather,
        counts=MappingProxyType(counts),
        cells=cells,
    )
