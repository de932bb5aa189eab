"""
Unit tests for run output: the KPI CSV log (schema check, typed read-back),
snapshot files and the run manager.
"""

import json

import pytest

from oceansim.core.config import SimConfig, load_config
from oceansim.logging.csv_logger import CSVLogger
from oceansim.logging.run_manager import RunManager
from oceansim.logging.snapshot import SnapshotManager
from oceansim.simulation.engine import SimulationEngine
from oceansim.simulation.metrics import MetricsCollector


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def config(tmp_path) -> SimConfig:
    cfg = SimConfig()
    cfg.world.depth = 12
    cfg.world.width = 12
    cfg.world.seed = 21
    cfg.output.output_dir = str(tmp_path / "runs")
    cfg.output.snapshot_every_n_steps = 2
    return cfg


# ---------------------------------------------------------------------------
# CSVLogger
# ---------------------------------------------------------------------------

class TestCSVLogger:
    def test_header_and_rows(self, tmp_path):
        logger = CSVLogger(tmp_path / "m.csv", columns=["step", "pop_total"])
        logger.log_row({"step": 1, "pop_total": 10, "extra": "ignored"})
        logger.log_row({"step": 2, "pop_total": 12})
        rows = logger.read_back()
        assert rows == [{"step": "1", "pop_total": "10"}, {"step": "2", "pop_total": "12"}]

    def test_log_all_overwrites(self, tmp_path):
        logger = CSVLogger(tmp_path / "m.csv", columns=["step"])
        logger.log_row({"step": 1})
        logger.log_all([{"step": 5}, {"step": 6}])
        assert [r["step"] for r in logger.read_back()] == ["5", "6"]

    def test_read_back_missing_file(self, tmp_path):
        assert CSVLogger(tmp_path / "none.csv").read_back() == []

    def test_default_columns(self, tmp_path):
        assert CSVLogger(tmp_path / "m.csv").columns == MetricsCollector.kpi_names()

    def test_reopen_with_same_schema_appends(self, tmp_path):
        path = tmp_path / "m.csv"
        CSVLogger(path, columns=["step"]).log_row({"step": 1})
        CSVLogger(path, columns=["step"]).log_row({"step": 2})
        lines = path.read_text().splitlines()
        assert lines == ["step", "1", "2"]

    def test_reopen_with_other_schema_refused(self, tmp_path):
        path = tmp_path / "m.csv"
        CSVLogger(path, columns=["step", "pop_orca"]).log_row({"step": 1, "pop_orca": 3})
        other = CSVLogger(path, columns=["step", "pop_shark"])
        assert other.existing_header() == ["step", "pop_orca"]
        with pytest.raises(ValueError, match="pop_shark"):
            other.log_row({"step": 2, "pop_shark": 1})
        assert len(path.read_text().splitlines()) == 2

    def test_typed_read_back(self, tmp_path, config):
        engine = SimulationEngine(config)
        metrics = MetricsCollector(config)
        engine.step()
        kpis = metrics.collect(engine.snapshot(), engine.world, engine.step_stats)
        logger = CSVLogger(tmp_path / "m.csv")
        logger.log_row(kpis)

        raw = logger.read_back()[0]
        assert raw["viable"] in ("0", "1")

        row = logger.read_back(typed=True)[0]
        assert row["step"] == 1
        assert row["phase"] == kpis["phase"]
        assert row["weather"] == kpis["weather"]
        assert row["viable"] is kpis["viable"]
        assert row["pop_seaweed"] == kpis["pop_seaweed"]
        assert row["mean_age_seaweed"] == pytest.approx(kpis["mean_age_seaweed"], abs=1e-4)


# ---------------------------------------------------------------------------
# SnapshotManager
# ---------------------------------------------------------------------------

class TestSnapshotManager:
    def test_save_and_load(self, tmp_path, config):
        engine = SimulationEngine(config)
        engine.step()
        manager = SnapshotManager(tmp_path)
        path = manager.save(engine.snapshot())
        assert path.name == "step_000001.json"
        data = manager.load(1)
        assert data["step"] == 1
        assert len(data["cells"]) == 12
        assert manager.list_snapshots() == [1]

    def test_load_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            SnapshotManager(tmp_path).load(3)


# ---------------------------------------------------------------------------
# RunManager
# ---------------------------------------------------------------------------

class TestRunManager:
    def test_attached_run_writes_outputs(self, config):
        engine = SimulationEngine(config)
        metrics = MetricsCollector(config)
        manager = RunManager(config, run_name="r1")
        manager.attach(engine, metrics)
        result = engine.run(5)

        assert result.total_steps == 5
        rows = manager.csv_logger.read_back()
        assert [int(r["step"]) for r in rows] == [1, 2, 3, 4, 5]
        assert manager.snapshot_manager.list_snapshots() == [2, 4]
        assert load_config(manager.config_path).world.seed == 21

    def test_finalize_writes_summary(self, config):
        manager = RunManager(config, run_name="r2")
        manager.finalize({"total_steps": 7})
        summary = json.loads((manager.run_dir / "summary.json").read_text())
        assert summary == {"total_steps": 7}

    def test_list_runs(self, config):
        RunManager(config, run_name="b")
        RunManager(config, run_name="a")
        assert RunManager.list_runs(config.output.output_dir) == ["a", "b"]

    def test_snapshots_disabled(self, config):
        config.output.snapshot_every_n_steps = 0
        engine = SimulationEngine(config)
        manager = RunManager(config, run_name="r3")
        manager.attach(engine, MetricsCollector(config))
        engine.run(3)
        assert manager.snapshot_manager.list_snapshots() == []
