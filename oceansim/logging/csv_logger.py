"""
Per-step KPI log (metrics.csv) for the ocean ecosystem simulator.

The column schema is `MetricsCollector.kpi_names()`: environment columns
(step, phase, weather), then per-species population, infection and mean
age, then the step's birth/death/interaction counters. A run directory's
log is append-only, so reopening a file written with a different schema is
refused instead of mixing rows under the wrong header.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Any, Optional

from oceansim.simulation.metrics import MetricsCollector


_TEXT_COLUMNS = frozenset({"phase", "weather"})
_BOOL_COLUMNS = frozenset({"viable"})


def _cell(column: str, value: Any) -> Any:
    """CSV text for one KPI value (booleans as 0/1, mean ages rounded)."""
    if column in _BOOL_COLUMNS:
        return int(bool(value))
    if column.startswith("mean_age_"):
        return f"{float(value):.4f}"
    return value


def _parse(column: str, text: str) -> Any:
    """Inverse of `_cell` for a KPI column."""
    if text == "" or column in _TEXT_COLUMNS:
        return text
    if column in _BOOL_COLUMNS:
        return text == "1"
    if column.startswith("mean_age_"):
        return float(text)
    return int(text)


class CSVLogger:
    """
    Appends one KPI row per step to a CSV file.

    Usage:
        logger = CSVLogger(run_dir / "metrics.csv")
        logger.log_row(kpis)                  # one step
        rows = logger.read_back(typed=True)   # ints/floats/bools restored

    Attributes:
        file_path: Path to the CSV file.
        columns: Ordered column names (the header).
    """

    def __init__(
        self,
        file_path: str | Path,
        columns: Optional[list[str]] = None,
    ):
        self.file_path = Path(file_path)
        self.columns = list(columns) if columns is not None else MetricsCollector.kpi_names()
        self._checked = False
        self.file_path.parent.mkdir(parents=True, exist_ok=True)

    def existing_header(self) -> Optional[list[str]]:
        """Header of the file on disk, or None if there is no file yet."""
        if not self.file_path.exists() or self.file_path.stat().st_size == 0:
            return None
        with open(self.file_path, "r", newline="", encoding="utf-8") as f:
            return next(csv.reader(f), None)

    def _prepare(self) -> None:
        """Write the header for a new file; refuse a file with another schema."""
        if self._checked:
            return
        header = self.existing_header()
        if header is None:
            with open(self.file_path, "w", newline="", encoding="utf-8") as f:
                csv.writer(f).writerow(self.columns)
        elif header != self.columns:
            missing = [c for c in self.columns if c not in header]
            extra = [c for c in header if c not in self.columns]
            raise ValueError(
                f"{self.file_path} was written with a different KPI schema "
                f"(missing: {missing}, unexpected: {extra})"
            )
        self._checked = True

    def _append(self, rows: list[dict]) -> None:
        with open(self.file_path, "a", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            for row in rows:
                writer.writerow([_cell(c, row.get(c, "")) for c in self.columns])

    def log_row(self, kpi_dict: dict) -> None:
        """Append one step's KPIs. Keys outside the schema are ignored."""
        self._prepare()
        self._append([kpi_dict])

    def log_all(self, kpi_list: list[dict]) -> None:
        """Replace the file with a header and the given rows."""
        self.file_path.unlink(missing_ok=True)
        self._checked = False
        self._prepare()
        self._append(kpi_list)

    def read_back(self, typed: bool = False) -> list[dict]:
        """
        Read every row back.

        Args:
            typed: Convert values to int/float/bool per KPI column instead
                of returning the raw strings.
        """
        if not self.file_path.exists():
            return []
        with open(self.file_path, "r", newline="", encoding="utf-8") as f:
            rows = list(csv.DictReader(f))
        if typed:
            rows = [{k: _parse(k, v) for k, v in row.items()} for row in rows]
        return rows
