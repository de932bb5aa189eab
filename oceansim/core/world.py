"""
World (simulation field) for the ocean ecosystem simulator.

Owns the grid, the seeded random source, and the two live collections
(animals and producers). Entities are kept in insertion-ordered dicts keyed
by id; the grid indexes the same ids by cell.

All entity creation and death goes through the world so the grid and the
live collections can never disagree.
"""

from __future__ import annotations

from itertools import count
from typing import Optional

import numpy as np

from oceansim.core.config import SimConfig
from oceansim.core.entity import Entity
from oceansim.core.grid import Grid, Location
from oceansim.core.species import GENDERED, POPULATE_ORDER, Species


class World:
    """
    The simulation field: a bounded grid plus the entities living on it.

    Attributes:
        config: Simulation configuration.
        grid: Cell occupancy.
        rng: The single seeded random source for the run.
        step_count: Steps completed so far.
        animals: Dict of entity_id -> animal entity (alive only, insertion order).
        producers: Dict of entity_id -> producer entity (alive only, insertion order).
        dead: Entities that died since the last `clear_dead()`.
    """

    def __init__(self, config: SimConfig, rng: Optional[np.random.Generator] = None):
        """
        Initialize an empty world from a configuration.

        Args:
            config: Simulation configuration.
            rng: Random source to share. None = seed a new one from config.world.seed.
        """
        self.config = config
        self.grid = Grid(config.world.depth, config.world.width)
        self.rng = rng if rng is not None else np.random.default_rng(config.world.seed)

        self.step_count: int = 0
        self.animals: dict[int, Entity] = {}
        self.producers: dict[int, Entity] = {}
        self.dead: list[Entity] = []
        self._ids = count()

    @property
    def depth(self) -> int:
        return self.grid.depth

    @property
    def width(self) -> int:
        return self.grid.width

    # ------------------------------------------------------------------
    # Population seeding
    # ------------------------------------------------------------------

    def populate(self) -> None:
        """
        Clear the field and seed it cell by cell.

        For each cell, species are tried in priority order with an
        independent draw each; the first success places a seeded
        (random-age) individual and the cell is done.
        """
        self.clear()
        for row in range(self.depth):
            for col in range(self.width):
                for species in POPULATE_ORDER:
                    traits = self.config.species_config(species)
                    if self.rng.random() < traits.creation_probability:
                        self.spawn(species, Location(row, col), newborn=False)
                        break

    def clear(self) -> None:
        """Remove every entity and reset the step counter."""
        self.grid.clear_all()
        self.animals.clear()
        self.producers.clear()
        self.dead.clear()
        self.step_count = 0

    # ------------------------------------------------------------------
    # Entity management
    # ------------------------------------------------------------------

    def create(self, species: Species, location: Location, newborn: bool = True) -> Entity:
        """
        Create an entity and place it on the grid without registering it
        in a live collection (used for staged newborns).

        Newborns start at age 0 with a full food level. Seeded individuals
        get a random age and food level. Gender and spawn infection are
        drawn for both.
        """
        traits = self.config.species_config(species)
        rng = self.rng

        age = 0
        food_level = traits.food_value
        if not newborn:
            bound = traits.seeded_age_bound
            if bound is not None:
                age = int(rng.integers(0, bound))
            if traits.food_value is not None:
                food_level = int(rng.integers(0, traits.food_value))

        is_male = None
        if species in GENDERED:
            is_male = bool(rng.random() < 0.5)

        infected = False
        if traits.infection_probability > 0.0:
            infected = bool(rng.random() < traits.infection_probability)

        entity = Entity(
            entity_id=next(self._ids),
            species=species,
            age=age,
            food_level=food_level,
            is_male=is_male,
            infected=infected,
            birth_step=self.step_count,
        )
        self.grid.place(entity, location)
        return entity

    def spawn(self, species: Species, location: Location, newborn: bool = False) -> Entity:
        """Create an entity, place it, and register it as live."""
        entity = self.create(species, location, newborn=newborn)
        self.register(entity)
        return entity

    def register(self, entity: Entity) -> None:
        """Add an already-placed entity to its live collection."""
        if entity.is_producer:
            self.producers[entity.id] = entity
        else:
            self.animals[entity.id] = entity

    def kill(self, entity: Entity, cause: str) -> None:
        """Mark an entity dead and free its cell. Live collections are
        pruned by the scheduler after the evaluation pass."""
        if not entity.alive:
            return
        if entity.location is not None:
            self.grid.clear(entity.location)
        entity.die(cause=cause, step=self.step_count)
        self.dead.append(entity)

    def move(self, entity: Entity, location: Location) -> None:
        """Relocate an entity (clears the old cell, binds the new one)."""
        self.grid.place(entity, location)

    def prune_dead(self) -> int:
        """Drop dead entities from the live collections. Returns how many."""
        removed = 0
        for collection in (self.animals, self.producers):
            dead_ids = [eid for eid, e in collection.items() if not e.alive]
            for eid in dead_ids:
                del collection[eid]
            removed += len(dead_ids)
        return removed

    def clear_dead(self) -> list[Entity]:
        """Clear and return the dead list."""
        dead = self.dead
        self.dead = []
        return dead

    def get_alive_animals(self) -> list[Entity]:
        """Live animals (a copy, safe to iterate while the world changes)."""
        return list(self.animals.values())

    def get_alive_producers(self) -> list[Entity]:
        return list(self.producers.values())

    # ------------------------------------------------------------------
    # State queries
    # ------------------------------------------------------------------

    def population_counts(self) -> dict[Species, int]:
        """Live population per species (every species present as a key)."""
        counts = {s: 0 for s in Species}
        for collection in (self.animals, self.producers):
            for entity in collection.values():
                counts[entity.species] += 1
        return counts

    @property
    def alive_count(self) -> int:
        return len(self.animals) + len(self.producers)

    @property
    def is_viable(self) -> bool:
        """True while at least two species have live members."""
        return sum(1 for n in self.population_counts().values() if n > 0) >= 2

    def __repr__(self) -> str:
        return (
            f"World(size={self.depth}x{self.width}, step={self.step_count}, "
            f"animals={len(self.animals)}, producers={len(self.producers)})"
        )
