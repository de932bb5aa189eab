"""
KPI Metrics collection for the ocean ecosystem simulator.

MetricsCollector gathers per-step Key Performance Indicators (KPIs) from a
field snapshot, the world's live entities and the step's statistics. It
produces a flat dictionary per step suitable for CSV export and analysis.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from oceansim.core.config import SimConfig
from oceansim.core.species import Species
from oceansim.core.world import World
from oceansim.simulation.engine import DEATH_CAUSES, StepStats
from oceansim.simulation.snapshot import FieldSnapshot


# ---------------------------------------------------------------------------
# MetricsCollector
# ---------------------------------------------------------------------------

class MetricsCollector:
    """
    Collects and computes KPIs per step.

    Usage:
      1. After a step, call `collect(snapshot, world, step_stats)`
      2. Resulting dict is appended to `history`
      3. Call `get_history()` to retrieve all collected rows

    Attributes:
        config: Simulation configuration.
        history: List of KPI dicts, one per step.
    """

    def __init__(self, config: SimConfig):
        self.config = config
        self.history: list[dict] = []

    def collect(
        self,
        snapshot: FieldSnapshot,
        world: World,
        stats: StepStats,
    ) -> dict:
        """
        Compute all KPIs for the current step and append to history.

        Args:
            snapshot: Read-only field view taken after the step.
            world: Current world (for per-entity age/infection stats).
            stats: Counters gathered during the step.

        Returns:
            Dict of KPI_name -> value.
        """
        kpis: dict = {}

        # --- Environment ---
        kpis["step"] = snapshot.step
        kpis["phase"] = snapshot.phase.value
        kpis["weather"] = snapshot.weather.value

        # --- Population ---
        for species in Species:
            kpis[f"pop_{species.value}"] = snapshot.counts[species]
        kpis["pop_total"] = snapshot.total
        kpis["viable"] = snapshot.is_viable

        # --- Infection and age, per species ---
        by_species: dict[Species, list] = {s: [] for s in Species}
        for entity in world.get_alive_animals() + world.get_alive_producers():
            by_species[entity.species].append(entity)

        for species, members in by_species.items():
            kpis[f"infected_{species.value}"] = sum(1 for e in members if e.infected)
            if members:
                kpis[f"mean_age_{species.value}"] = float(np.mean([e.age for e in members]))
            else:
                kpis[f"mean_age_{species.value}"] = 0.0

        # --- Births ---
        kpis["births_animals"] = stats.births_animals
        kpis["births_producers"] = stats.births_producers

        # --- Deaths ---
        for cause in DEATH_CAUSES:
            kpis[f"deaths_{cause}"] = getattr(stats, f"deaths_{cause}")
        kpis["deaths_total"] = stats.deaths_total

        # --- Interactions ---
        kpis["prey_eaten"] = stats.prey_eaten
        kpis["new_infections"] = stats.infections
        kpis["moves"] = stats.moves

        self.history.append(kpis)
        return kpis

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_history(self) -> list[dict]:
        """Return all collected KPI rows."""
        return list(self.history)

    def get_last(self) -> Optional[dict]:
        """Return the last collected KPI row, or None."""
        return self.history[-1] if self.history else None

    def get_kpi_series(self, kpi_name: str) -> list:
        """Extract a single KPI as a list across all steps."""
        return [row[kpi_name] for row in self.history if kpi_name in row]

    def population_series(self, species: Species) -> np.ndarray:
        """Population of one species over the collected steps."""
        return np.array(self.get_kpi_series(f"pop_{species.value}"), dtype=np.int64)

    @staticmethod
    def kpi_names() -> list[str]:
        """Return the ordered list of all KPI names."""
        names = ["step", "phase", "weather"]
        names += [f"pop_{s.value}" for s in Species]
        names += ["pop_total", "viable"]
        for s in Species:
            names += [f"infected_{s.value}", f"mean_age_{s.value}"]
        names += ["births_animals", "births_producers"]
        names += [f"deaths_{cause}" for cause in DEATH_CAUSES]
        names += ["deaths_total", "prey_eaten", "new_infections", "moves"]
        return names
