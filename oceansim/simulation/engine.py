"""
Simulation Engine - the step scheduler for the ocean ecosystem simulator.

One step:
  1. Advance the day/night cycle and the weather cycle
  2. Evaluate every live animal (insertion order), skipping any that died
     earlier in the pass
  3. Evaluate every live producer likewise
  4. Drop the dead from both live collections
  5. Merge staged newborns (those still alive) into the live collections

Newborns are placed on the grid when born but only join the live
collections in step 5, so they never act in the step that created them.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, Optional

import numpy as np

from oceansim.core.config import SimConfig
from oceansim.core.environment import DayNightCycle, Phase, WeatherCycle, WeatherState
from oceansim.core.species import Species
from oceansim.core.world import World
from oceansim.simulation.behavior import StepContext, act
from oceansim.simulation.snapshot import FieldSnapshot, take_snapshot


DEATH_CAUSES = ("age", "starvation", "eaten", "overcrowding", "infection")


class RunState(Enum):
    """Lifecycle of a simulation run."""
    IDLE = auto()       # reset, no step taken yet
    STEPPING = auto()   # at least one step taken, still viable
    STOPPED = auto()    # no longer viable


# ---------------------------------------------------------------------------
# Step statistics - lightweight counters for one step
# ---------------------------------------------------------------------------

@dataclass
class StepStats:
    """Statistics collected during a single step."""
    step: int = 0
    phase: Phase = Phase.DAY
    weather: WeatherState = WeatherState.SUNNY
    births_animals: int = 0
    births_producers: int = 0
    deaths_age: int = 0
    deaths_starvation: int = 0
    deaths_eaten: int = 0
    deaths_overcrowding: int = 0
    deaths_infection: int = 0
    infections: int = 0
    prey_eaten: int = 0
    moves: int = 0
    births_by_species: dict[str, int] = field(default_factory=dict)

    def record_death(self, cause: str) -> None:
        attr = f"deaths_{cause}"
        setattr(self, attr, getattr(self, attr) + 1)

    def record_births(self, species: Species, n: int) -> None:
        if species.is_producer:
            self.births_producers += n
        else:
            self.births_animals += n
        self.births_by_species[species.value] = self.births_by_species.get(species.value, 0) + n

    @property
    def deaths_total(self) -> int:
        return sum(getattr(self, f"deaths_{cause}") for cause in DEATH_CAUSES)


# ---------------------------------------------------------------------------
# Run result
# ---------------------------------------------------------------------------

@dataclass
class RunResult:
    """Result of a complete simulation run."""
    config: SimConfig
    seed: int
    total_steps: int = 0
    final_counts: dict[Species, int] = field(default_factory=dict)
    viable: bool = True
    stopped_early: bool = False
    population_history: list[dict[Species, int]] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Simulation Engine
# ---------------------------------------------------------------------------

class SimulationEngine:
    """
    Core simulation engine.

    Attributes:
        config: Simulation configuration.
        world: The simulation field.
        rng: The one random source for the run (shared with world and weather).
        day_night: Day/night modulator.
        weather: Weather modulator.
        state: Current RunState.
        step_stats: Statistics for the most recent step.
        on_step: Optional callback invoked after each step(step_number, engine).
    """

    def __init__(self, config: SimConfig, seed: Optional[int] = None):
        """
        Create a simulation engine and seed the field.

        Args:
            config: Simulation configuration.
            seed: Random seed override. None = use config.world.seed.
        """
        self.config = config

        if seed is not None:
            self.config.world.seed = seed

        self.rng = np.random.default_rng(self.config.world.seed)
        self.world = World(self.config, rng=self.rng)
        self.day_night = DayNightCycle(self.config.cycle)
        self.weather = WeatherCycle(self.config.weather, self.rng)

        self.state = RunState.IDLE
        self.step_stats = StepStats()
        self._stop = threading.Event()
        self._wake = threading.Event()

        self.on_step: Optional[Callable[[int, "SimulationEngine"], None]] = None

        self.reset()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def reset(self, populate: bool = True) -> None:
        """
        Return to a fresh starting state: reseed the field (or leave it
        empty when `populate` is False), reset both modulators, withdraw any pending stop request.
        """
        if populate:
            self.world.populate()
        else:
            self.world.clear()
        self.day_night.reset()
        self.weather.reset()
        self.state = RunState.IDLE
        self.step_stats = StepStats()
        self._stop.clear()
        self._wake.clear()

    # ------------------------------------------------------------------
    # Core step
    # ------------------------------------------------------------------

    def step(self) -> StepStats:
        """
        Execute one simulation step.

        Returns:
            StepStats for this step.
        """
        world = self.world
        world.step_count += 1
        world.clear_dead()

        phase = self.day_night.advance()
        weather = self.weather.advance()

        stats = StepStats(step=world.step_count, phase=phase, weather=weather)
        ctx = StepContext(
            world=world,
            rng=self.rng,
            phase=phase,
            weather=weather,
            stats=stats,
        )

        for animal in world.get_alive_animals():
            if animal.alive:
                act(ctx, animal)

        for producer in world.get_alive_producers():
            if producer.alive:
                act(ctx, producer)

        world.prune_dead()

        for young in ctx.newborn_animals + ctx.newborn_producers:
            if young.alive:
                world.register(young)

        self.step_stats = stats
        self.state = RunState.STEPPING if world.is_viable else RunState.STOPPED

        if self.on_step is not None:
            self.on_step(world.step_count, self)

        return stats

    # ------------------------------------------------------------------
    # Multi-step run
    # ------------------------------------------------------------------

    def run(self, num_steps: Optional[int] = None) -> RunResult:
        """
        Step until `num_steps` is reached, the field stops being viable,
        or `request_stop()` is called.

        Viability is checked before every step, so a field that starts with
        fewer than two species never steps. A stop request takes effect
        after the current step completes; one made before `run()` starts
        means no step is taken. The request stays in force until `reset()`.

        Args:
            num_steps: Steps to run. None = config.run.max_steps.

        Returns:
            RunResult with summary statistics.
        """
        if num_steps is None:
            num_steps = self.config.run.max_steps

        result = RunResult(config=self.config, seed=self.config.world.seed)

        steps_run = 0
        while steps_run < num_steps:
            if not self.world.is_viable:
                self.state = RunState.STOPPED
                result.stopped_early = True
                break
            if self._stop.is_set():
                result.stopped_early = True
                break

            self.step()
            steps_run += 1
            result.population_history.append(self.world.population_counts())

            if steps_run < num_steps:
                self._pause()

        result.total_steps = steps_run
        result.final_counts = self.world.population_counts()
        result.viable = self.world.is_viable
        return result

    def request_stop(self) -> None:
        """Ask `run()` to stop after the current step (or before the first).

        Also cuts short any inter-step pause in progress.
        """
        self._stop.set()
        self._wake.set()

    def wake(self) -> None:
        """Cut short the current (or next) inter-step pause; stepping goes on."""
        self._wake.set()

    def _pause(self) -> None:
        delay = self.config.run.step_delay
        if delay > 0:
            # Nothing is mid-step here, so waking early is always safe.
            self._wake.wait(delay)
        self._wake.clear()

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def snapshot(self) -> FieldSnapshot:
        """Read-only view of the field after the last committed step."""
        return take_snapshot(
            self.world.step_count,
            self.day_night.phase,
            self.weather.state,
            self.world.grid,
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    def population_counts(self) -> dict[Species, int]:
        return self.world.population_counts()

    @property
    def is_viable(self) -> bool:
        return self.world.is_viable

    @property
    def current_step(self) -> int:
        return self.world.step_count

    @property
    def phase(self) -> Phase:
        return self.day_night.phase

    @property
    def current_weather(self) -> WeatherState:
        return self.weather.state

    def __repr__(self) -> str:
        return (
            f"SimulationEngine(step={self.current_step}, "
            f"state={self.state.name}, "
            f"animals={len(self.world.animals)}, "
            f"producers={len(self.world.producers)})"
        )
