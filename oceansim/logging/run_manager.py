"""
Run Manager for the ocean ecosystem simulator.

Manages output directories for simulation runs:
  - Creates timestamped run directories under a base output path
  - Copies the config used for the run
  - Logs per-step KPIs and periodic field snapshots while an engine runs
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from oceansim.core.config import SimConfig, save_config
from oceansim.logging.csv_logger import CSVLogger
from oceansim.logging.snapshot import SnapshotManager

if TYPE_CHECKING:
    from oceansim.simulation.engine import SimulationEngine
    from oceansim.simulation.metrics import MetricsCollector
    from oceansim.simulation.snapshot import FieldSnapshot


class RunManager:
    """
    Manages a single simulation run's output directory.

    Directory structure:
        {base_dir}/{run_name}/
            config.json          - copy of the simulation config
            metrics.csv          - per-step KPIs
            summary.json         - written by finalize()
            snapshots/           - field snapshots (JSON)
                step_000100.json
                ...

    Attributes:
        run_dir: Path to this run's output directory.
        csv_logger: CSVLogger instance for metrics.
        snapshot_manager: SnapshotManager instance for field snapshots.
        snapshot_every: Save a snapshot every N steps (0 = never).
    """

    def __init__(
        self,
        config: SimConfig,
        base_dir: Optional[str | Path] = None,
        run_name: Optional[str] = None,
    ):
        """
        Initialize a run manager and create the output directory.

        Args:
            config: Simulation configuration (saved as config.json).
            base_dir: Base output directory. None = config.output.output_dir.
            run_name: Name for this run's subdirectory. None = timestamp.
        """
        if base_dir is None:
            base_dir = config.output.output_dir

        if run_name is None:
            run_name = datetime.now().strftime("%Y%m%d_%H%M%S")

        self.run_dir = Path(base_dir) / run_name
        self.run_dir.mkdir(parents=True, exist_ok=True)

        config_path = self.run_dir / "config.json"
        save_config(config, config_path)
        self._config_path = config_path

        self.snapshot_every = config.output.snapshot_every_n_steps
        self.csv_logger = CSVLogger(self.run_dir / "metrics.csv")
        self.snapshot_manager = SnapshotManager(self.run_dir)

    @property
    def config_path(self) -> Path:
        return self._config_path

    @property
    def metrics_path(self) -> Path:
        return self.csv_logger.file_path

    @property
    def snapshots_dir(self) -> Path:
        return self.snapshot_manager.snapshot_dir

    def log_step(self, kpi_dict: dict) -> None:
        """Log a step's KPIs to CSV."""
        self.csv_logger.log_row(kpi_dict)

    def save_snapshot(self, snapshot: FieldSnapshot) -> Path:
        return self.snapshot_manager.save(snapshot)

    def attach(self, engine: SimulationEngine, metrics: MetricsCollector) -> None:
        """
        Hook this run's logging onto an engine.

        Every committed step is collected into `metrics` and appended to the
        CSV; every `snapshot_every` steps the field snapshot is saved.
        """
        def on_step(step_number: int, eng: SimulationEngine) -> None:
            snap = eng.snapshot()
            kpis = metrics.collect(snap, eng.world, eng.step_stats)
            self.log_step(kpis)
            if self.snapshot_every > 0 and step_number % self.snapshot_every == 0:
                self.save_snapshot(snap)

        engine.on_step = on_step

    def finalize(self, summary: Optional[dict] = None) -> None:
        """Finalize the run (write summary.json if a summary is given)."""
        if summary is not None:
            summary_path = self.run_dir / "summary.json"
            with open(summary_path, "w", encoding="utf-8") as f:
                json.dump(summary, f, indent=2, ensure_ascii=False)

    @staticmethod
    def list_runs(base_dir: str | Path) -> list[str]:
        """Sorted names of run directories under `base_dir`."""
        base = Path(base_dir)
        if not base.exists():
            return []
        return sorted(
            d.name for d in base.iterdir()
            if d.is_dir() and (d / "config.json").exists()
        )

    def __repr__(self) -> str:
        return f"RunManager(run_dir='{self.run_dir}')"
