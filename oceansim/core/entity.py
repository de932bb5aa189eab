"""
Entity (animal or producer) for the ocean ecosystem simulator.

One record type serves every species. The `species` tag selects the
variant; attributes a variant does not use stay None (producers have no
food level, ungendered species have no gender, the diver never feeds).

An entity is alive until something calls `die()`. The world clears its
grid cell at the same moment, so a dead entity is never reachable from
the grid.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from oceansim.core.species import Species

if TYPE_CHECKING:
    from oceansim.core.grid import Location


class Entity:
    """
    A living thing on the grid.

    Attributes:
        id: Unique identifier within its world (never reused).
        species: Variant tag.
        location: Current cell (None once dead).
        alive: Whether the entity is currently alive.
        age: Steps lived (non-negative).
        infected: Disease carrier flag.
        food_level: Steps left before starvation (None for non-feeders).
        is_male: Gender (None for species without mate matching).
        birth_step: Step at which the entity was created.
        death_step: Step at which the entity died (None if alive).
        death_cause: Cause of death string (None if alive).
    """

    __slots__ = (
        "id", "species", "location", "alive", "age", "infected",
        "food_level", "is_male", "birth_step", "death_step", "death_cause",
    )

    def __init__(
        self,
        entity_id: int,
        species: Species,
        age: int = 0,
        food_level: Optional[int] = None,
        is_male: Optional[bool] = None,
        infected: bool = False,
        birth_step: int = 0,
    ):
        self.id = entity_id
        self.species = species
        self.location: Optional[Location] = None
        self.alive = True
        self.age = age
        self.infected = infected
        self.food_level = food_level
        self.is_male = is_male
        self.birth_step = birth_step
        self.death_step: Optional[int] = None
        self.death_cause: Optional[str] = None

    @property
    def is_producer(self) -> bool:
        return self.species.is_producer

    @property
    def feeds(self) -> bool:
        """True for entities that carry a food level (and so can starve)."""
        return self.food_level is not None

    def die(self, cause: str, step: int) -> None:
        """
        Mark this entity as dead.

        Args:
            cause: Reason for death ("age", "starvation", "eaten",
                "overcrowding", "infection").
            step: The step at which death occurred.
        """
        self.alive = False
        self.death_step = step
        self.death_cause = cause
        self.location = None

    def __repr__(self) -> str:
        status = "alive" if self.alive else f"dead({self.death_cause})"
        return (
            f"Entity(id={self.id}, species={self.species.value}, "
            f"loc={self.location}, age={self.age}, food={self.food_level}, "
            f"infected={self.infected}, status={status})"
        )

    def to_dict(self) -> dict:
        """Serialize entity state for snapshots/logging."""
        return {
            "id": self.id,
            "species": self.species.value,
            "row": self.location.row if self.location is not None else None,
            "col": self.location.col if self.location is not None else None,
            "age": self.age,
            "food_level": self.food_level,
            "is_male": self.is_male,
            "infected": self.infected,
            "alive": self.alive,
            "birth_step": self.birth_step,
            "death_step": self.death_step,
            "death_cause": self.death_cause,
        }
