"""
Species tags for the ocean ecosystem.

Every entity carries one `Species` tag. The tag decides which behavior
evaluation runs for the entity, what it eats, whether it needs an
opposite-gender neighbour to breed, and where it sits in the population
seeding priority. Biological constants live in the configuration, keyed by
the tag's value.
"""

from __future__ import annotations

from enum import Enum


class Species(Enum):
    """Tagged variants: five animal species and one producer."""
    ORCA = "orca"
    SHARK = "shark"
    SALMON = "salmon"
    SARDINE = "sardine"
    SCUBADIVER = "scubadiver"
    SEAWEED = "seaweed"

    @property
    def is_producer(self) -> bool:
        return self in PRODUCERS

    @property
    def is_animal(self) -> bool:
        return self not in PRODUCERS

    @property
    def code(self) -> int:
        """Small integer used in dense species grids (-1 marks an empty cell)."""
        return _CODES[self]

    @classmethod
    def from_code(cls, code: int) -> Species:
        """Inverse of `code`. Raises ValueError for anything else, including -1."""
        if not 0 <= code < len(_ORDERED):
            raise ValueError(f"No species has code {code}")
        return _ORDERED[code]


PRODUCERS = frozenset({Species.SEAWEED})

# Population seeding checks species in this order; first success wins a cell.
POPULATE_ORDER: tuple[Species, ...] = (
    Species.ORCA,
    Species.SHARK,
    Species.SCUBADIVER,
    Species.SALMON,
    Species.SARDINE,
    Species.SEAWEED,
)

# Species that breed only next to a neighbour of the opposite gender.
GENDERED = frozenset({Species.ORCA, Species.SCUBADIVER})

# What each animal eats; scanned in neighbour order, first live match wins.
DIETS: dict[Species, frozenset[Species]] = {
    Species.ORCA: frozenset({Species.SALMON, Species.SCUBADIVER}),
    Species.SHARK: frozenset({Species.SARDINE, Species.SCUBADIVER}),
    Species.SALMON: frozenset({Species.SEAWEED}),
    Species.SARDINE: frozenset({Species.SEAWEED}),
    Species.SCUBADIVER: frozenset(),
}

_ORDERED: tuple[Species, ...] = tuple(Species)
_CODES: dict[Species, int] = {s: i for i, s in enumerate(_ORDERED)}
