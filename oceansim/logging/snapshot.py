"""
Snapshot manager for the ocean ecosystem simulator.

Saves field snapshots (JSON) at chosen steps for later analysis.
A saved snapshot holds the step, phase, weather, per-species counts and the
species code of every cell. It is an analysis artifact; runs are never
resumed from one.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import numpy as np

from oceansim.simulation.snapshot import FieldSnapshot


class SnapshotManager:
    """
    Saves and loads field snapshots as JSON files.

    Each snapshot is saved to: {output_dir}/snapshots/step_{N:06d}.json

    Attributes:
        output_dir: Base output directory for the run.
    """

    def __init__(self, output_dir: str | Path):
        self.output_dir = Path(output_dir)
        self.snapshot_dir = self.output_dir / "snapshots"
        self.snapshot_dir.mkdir(parents=True, exist_ok=True)

    def save(self, snapshot: FieldSnapshot) -> Path:
        """
        Save a field snapshot.

        Returns:
            Path to the saved snapshot file.
        """
        file_path = self._path_for(snapshot.step)

        with open(file_path, "w", encoding="utf-8") as f:
            json.dump(snapshot.to_dict(), f, ensure_ascii=False, default=_json_default)

        return file_path

    def load(self, step: int) -> dict:
        """
        Load the snapshot saved for a step.

        Raises:
            FileNotFoundError: If snapshot doesn't exist.
        """
        file_path = self._path_for(step)
        if not file_path.exists():
            raise FileNotFoundError(f"Snapshot not found: {file_path}")

        with open(file_path, "r", encoding="utf-8") as f:
            return json.load(f)

    def list_snapshots(self) -> list[int]:
        """Sorted step numbers of all saved snapshots."""
        steps = []
        for p in self.snapshot_dir.glob("step_*.json"):
            try:
                steps.append(int(p.stem.split("_")[1]))
            except (IndexError, ValueError):
                continue
        return sorted(steps)

    def _path_for(self, step: int) -> Path:
        return self.snapshot_dir / f"step_{step:06d}.json"


def _json_default(obj: Any) -> Any:
    """JSON serialization fallback for NumPy types."""
    if isinstance(obj, (np.integer,)):
        return int(obj)
    if isinstance(obj, (np.floating,)):
        return float(obj)
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    raise TypeError(f"Object of type {type(obj)} is not JSON serializable")
