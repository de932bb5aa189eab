"""
Per-species behavior evaluation.

Every species shares one skeleton, evaluated once per step for each live
entity:

  1. Age (death past max age)
  2. Hunger (feeders only; death at food level <= 0)
  3. Environment gate (weather / phase decide whether the rest happens)
  4. Reproduction (newborns are placed now but staged, not yet live)
  5. Feeding, then movement (animals only; overcrowding kills)

The species tag selects the evaluation function through `BEHAVIORS`.
All randomness comes from `ctx.rng`; all grid changes go through
`ctx.world` so occupancy stays consistent.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Optional

import numpy as np

from oceansim.core.config import SpeciesConfig
from oceansim.core.entity import Entity
from oceansim.core.environment import Phase, WeatherState
from oceansim.core.grid import Location
from oceansim.core.species import DIETS, GENDERED, Species
from oceansim.core.world import World

if TYPE_CHECKING:
    from oceansim.simulation.engine import StepStats


# Feeding/movement iterations per step for species that hunt more at night.
NIGHT_ACTIVITY: dict[Species, int] = {Species.ORCA: 2}


@dataclass
class StepContext:
    """Everything a behavior evaluation may read or write during one step.

    Newborns go into the staging lists and are merged into the live
    collections by the scheduler after the whole pass.
    """
    world: World
    rng: np.random.Generator
    phase: Phase
    weather: WeatherState
    stats: StepStats
    newborn_animals: list[Entity] = field(default_factory=list)
    newborn_producers: list[Entity] = field(default_factory=list)

    def traits(self, entity: Entity) -> SpeciesConfig:
        return self.world.config.species_config(entity.species)

    def kill(self, entity: Entity, cause: str) -> None:
        if entity.alive:
            self.world.kill(entity, cause)
            self.stats.record_death(cause)


# ---------------------------------------------------------------------------
# Shared skeleton pieces
# ---------------------------------------------------------------------------

def increment_age(ctx: StepContext, entity: Entity) -> None:
    """Age by one step; dies once age strictly exceeds max age."""
    entity.age += 1
    max_age = ctx.traits(entity).max_age
    if max_age is not None and entity.age > max_age:
        ctx.kill(entity, "age")


def increment_hunger(ctx: StepContext, entity: Entity) -> None:
    """Lose one food level; dies at zero or below."""
    if not entity.feeds or not entity.alive:
        return
    entity.food_level -= 1
    if entity.food_level <= 0:
        ctx.kill(entity, "starvation")


def has_mate_nearby(ctx: StepContext, entity: Entity) -> bool:
    """True if an opposite-gender conspecific occupies a neighbouring cell."""
    grid = ctx.world.grid
    for where in grid.neighbors(entity.location):
        other = grid.occupant_at(where)
        if (other is not None and other.species is entity.species
                and other.is_male != entity.is_male):
            return True
    return False


def birth_count(ctx: StepContext, entity: Entity) -> int:
    """
    Number of offspring drawn for this step.

    Zero below breeding age; otherwise, with probability
    `breeding_probability`, uniform in [1, max_litter_size].
    """
    traits = ctx.traits(entity)
    if entity.age < traits.breeding_age:
        return 0
    if ctx.rng.random() < traits.breeding_probability:
        return int(ctx.rng.integers(1, traits.max_litter_size + 1))
    return 0


def give_birth(ctx: StepContext, entity: Entity) -> int:
    """
    Place up to `birth_count()` newborns into free neighbouring cells.

    Gendered species first need an opposite-gender neighbour. Stops early
    when free cells run out. Returns the number of newborns placed.
    """
    if entity.species in GENDERED and not has_mate_nearby(ctx, entity):
        return 0

    world = ctx.world
    free = world.grid.free_neighbors(entity.location, ctx.rng)
    births = birth_count(ctx, entity)

    staging = ctx.newborn_producers if entity.is_producer else ctx.newborn_animals
    placed = 0
    for loc in free[:births]:
        young = world.create(entity.species, loc, newborn=True)
        staging.append(young)
        placed += 1

    if placed:
        ctx.stats.record_births(entity.species, placed)
    return placed


def find_food(ctx: StepContext, entity: Entity) -> Optional[Location]:
    """
    Eat the first live prey in neighbour order and return its cell.

    Infected prey, for eaters that contract infection, is killed and infects
    the eater without feeding it; the eater may then die of the infection,
    otherwise the scan continues. Ordinary prey is killed, the food level is
    reset, and its cell becomes the move target.
    """
    world = ctx.world
    traits = ctx.traits(entity)
    diet = DIETS.get(entity.species, frozenset())
    if not diet:
        return None

    for where in world.grid.neighbors(entity.location):
        prey = world.grid.occupant_at(where)
        if prey is None or not prey.alive or prey.species not in diet:
            continue

        if prey.infected and traits.contracts_infection:
            if not entity.infected:
                ctx.stats.infections += 1
            entity.infected = True
            ctx.kill(prey, "eaten")
            ctx.stats.prey_eaten += 1
            p = traits.infection_death_probability
            if p > 0.0 and ctx.rng.random() < p:
                ctx.kill(entity, "infection")
                return None
            continue

        ctx.kill(prey, "eaten")
        ctx.stats.prey_eaten += 1
        entity.food_level = traits.food_value
        return where

    return None


def feed_or_move(ctx: StepContext, entity: Entity) -> None:
    """Move onto found food, else to a free neighbour, else die of overcrowding."""
    target = find_food(ctx, entity)
    if not entity.alive:
        return
    if target is None:
        target = ctx.world.grid.first_free_neighbor(entity.location, ctx.rng)
    if target is not None:
        ctx.world.move(entity, target)
        ctx.stats.moves += 1
    else:
        ctx.kill(entity, "overcrowding")


# ---------------------------------------------------------------------------
# Species evaluations
# ---------------------------------------------------------------------------

def act_predator(ctx: StepContext, entity: Entity) -> None:
    """Orca and shark: breed, then hunt/move (orcas twice at night)."""
    increment_age(ctx, entity)
    increment_hunger(ctx, entity)
    if not entity.alive or ctx.weather is WeatherState.FREEZING:
        return

    give_birth(ctx, entity)

    activity = 1
    if ctx.phase is Phase.NIGHT:
        activity = NIGHT_ACTIVITY.get(entity.species, 1)
    for _ in range(activity):
        if not entity.alive:
            break
        feed_or_move(ctx, entity)


def act_prey_fish(ctx: StepContext, entity: Entity) -> None:
    """Salmon and sardine: breed, then graze/move; idle while freezing."""
    increment_age(ctx, entity)
    increment_hunger(ctx, entity)
    if not entity.alive or ctx.weather is WeatherState.FREEZING:
        return

    give_birth(ctx, entity)
    feed_or_move(ctx, entity)


def act_diver(ctx: StepContext, entity: Entity) -> None:
    """Scubadiver: no hunger; breeds and moves only by day in sunny weather."""
    increment_age(ctx, entity)
    if not entity.alive:
        return
    if ctx.phase is not Phase.DAY or ctx.weather is not WeatherState.SUNNY:
        return

    give_birth(ctx, entity)
    target = ctx.world.grid.first_free_neighbor(entity.location, ctx.rng)
    if target is not None:
        ctx.world.move(entity, target)
        ctx.stats.moves += 1
    else:
        ctx.kill(entity, "overcrowding")


def act_producer(ctx: StepContext, entity: Entity) -> None:
    """Seaweed: grows older and spreads in sunny weather. Never starves."""
    increment_age(ctx, entity)
    if entity.alive and ctx.weather is WeatherState.SUNNY:
        give_birth(ctx, entity)


BEHAVIORS: dict[Species, Callable[[StepContext, Entity], None]] = {
    Species.ORCA: act_predator,
    Species.SHARK: act_predator,
    Species.SALMON: act_prey_fish,
    Species.SARDINE: act_prey_fish,
    Species.SCUBADIVER: act_diver,
    Species.SEAWEED: act_producer,
}


def act(ctx: StepContext, entity: Entity) -> None:
    """Evaluate one entity's behavior for the current step."""
    BEHAVIORS[entity.species](ctx, entity)
