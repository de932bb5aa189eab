"""
Unit tests for KPI metrics collection.
"""

import numpy as np
import pytest

from oceansim.core.config import SimConfig
from oceansim.core.species import Species
from oceansim.simulation.engine import SimulationEngine
from oceansim.simulation.metrics import MetricsCollector


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def engine() -> SimulationEngine:
    cfg = SimConfig()
    cfg.world.depth = 15
    cfg.world.width = 15
    cfg.world.seed = 8
    return SimulationEngine(cfg)


@pytest.fixture
def metrics(engine) -> MetricsCollector:
    collector = MetricsCollector(engine.config)
    engine.on_step = lambda n, eng: collector.collect(eng.snapshot(), eng.world, eng.step_stats)
    return collector


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

class TestMetricsCollector:
    def test_one_row_per_step(self, engine, metrics):
        engine.run(4)
        assert len(metrics.get_history()) == 4
        assert metrics.get_kpi_series("step") == [1, 2, 3, 4]

    def test_row_keys_match_kpi_names(self, engine, metrics):
        engine.step()
        assert list(metrics.get_last().keys()) == MetricsCollector.kpi_names()

    def test_population_matches_world(self, engine, metrics):
        engine.step()
        row = metrics.get_last()
        counts = engine.population_counts()
        for species in Species:
            assert row[f"pop_{species.value}"] == counts[species]
        assert row["pop_total"] == sum(counts.values())
        assert row["viable"] == engine.is_viable

    def test_step_counters_copied(self, engine, metrics):
        stats = engine.step()
        row = metrics.get_last()
        assert row["births_animals"] == stats.births_animals
        assert row["births_producers"] == stats.births_producers
        assert row["deaths_total"] == stats.deaths_total
        assert row["prey_eaten"] == stats.prey_eaten
        assert row["moves"] == stats.moves
        assert row["weather"] == stats.weather.value

    def test_mean_age_zero_for_absent_species(self, engine, metrics):
        engine.world.clear()
        engine.step()
        row = metrics.get_last()
        assert all(row[f"mean_age_{s.value}"] == 0.0 for s in Species)

    def test_population_series(self, engine, metrics):
        engine.run(3)
        series = metrics.population_series(Species.SEAWEED)
        assert isinstance(series, np.ndarray)
        assert series.shape == (3,)

    def test_get_last_empty(self, engine):
        assert MetricsCollector(engine.config).get_last() is None
