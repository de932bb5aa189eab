"""
Configuration system for the ocean ecosystem simulator.

Provides a hierarchical dataclass-based config with JSON serialization,
validation, and sensible defaults for every simulation constant: grid size,
per-species biology, day/night and weather timing, run pacing and output.
"""

from __future__ import annotations

import json
import warnings
from copy import deepcopy
from dataclasses import asdict, dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from oceansim.core.species import Species


# ---------------------------------------------------------------------------
# Sub-config dataclasses (grouped by domain)
# ---------------------------------------------------------------------------

@dataclass
class WorldConfig:
    """Grid and random-source settings.

    Non-positive dimensions are tolerated here; the grid replaces them
    with the defaults when it is built.
    """
    depth: int = 60
    width: int = 100
    seed: int = 42

    def validate(self) -> list[str]:
        errors = []
        if self.depth > 10_000:
            errors.append(f"world.depth must be <= 10000, got {self.depth}")
        if self.width > 10_000:
            errors.append(f"world.width must be <= 10000, got {self.width}")
        return errors


@dataclass
class SpeciesConfig:
    """Biological constants for one species.

    `max_age` and `food_value` are None for species that never die of old
    age or never feed. `initial_max_age` bounds the random age of seeded
    (non-newborn) individuals; None means "use max_age".
    """
    name: str = ""
    breeding_age: int = 1
    max_age: Optional[int] = None
    breeding_probability: float = 0.1
    max_litter_size: int = 1
    food_value: Optional[int] = None
    creation_probability: float = 0.0
    infection_probability: float = 0.0        # chance of spawning infected
    infection_death_probability: float = 0.0  # chance of dying after eating infected prey
    contracts_infection: bool = False
    initial_max_age: Optional[int] = None

    def validate(self) -> list[str]:
        errors = []
        p = f"species.{self.name or '?'}"
        if self.breeding_age < 0:
            errors.append(f"{p}.breeding_age must be >= 0, got {self.breeding_age}")
        if self.max_age is not None and self.max_age < 1:
            errors.append(f"{p}.max_age must be >= 1 or null, got {self.max_age}")
        if self.max_litter_size < 1:
            errors.append(f"{p}.max_litter_size must be >= 1, got {self.max_litter_size}")
        if self.food_value is not None and self.food_value < 1:
            errors.append(f"{p}.food_value must be >= 1 or null, got {self.food_value}")
        if self.initial_max_age is not None and self.initial_max_age < 1:
            errors.append(f"{p}.initial_max_age must be >= 1 or null, got {self.initial_max_age}")
        for attr in ("breeding_probability", "creation_probability",
                     "infection_probability", "infection_death_probability"):
            value = getattr(self, attr)
            if not (0.0 <= value <= 1.0):
                errors.append(f"{p}.{attr} must be in [0, 1], got {value}")
        return errors

    @property
    def seeded_age_bound(self) -> Optional[int]:
        """Upper (exclusive) bound for the random age of seeded individuals."""
        if self.initial_max_age is not None:
            return self.initial_max_age
        return self.max_age


@dataclass
class CycleConfig:
    """Day/night cycle lengths, in steps."""
    day_length: int = 8
    night_length: int = 4

    def validate(self) -> list[str]:
        errors = []
        if self.day_length < 1:
            errors.append(f"cycle.day_length must be >= 1, got {self.day_length}")
        if self.night_length < 1:
            errors.append(f"cycle.night_length must be >= 1, got {self.night_length}")
        return errors


@dataclass
class WeatherConfig:
    """Weather selection thresholds and period bounds.

    A new weather state is drawn by checking `stormy_threshold` first, then
    `freezing_threshold` with a fresh draw, else sunny. Periods are drawn
    uniformly from [0, bound).
    """
    stormy_threshold: float = 0.2
    freezing_threshold: float = 0.1
    max_period: int = 14
    freezing_max_period: int = 6

    def validate(self) -> list[str]:
        errors = []
        for attr in ("stormy_threshold", "freezing_threshold"):
            value = getattr(self, attr)
            if not (0.0 <= value <= 1.0):
                errors.append(f"weather.{attr} must be in [0, 1], got {value}")
        if self.max_period < 1:
            errors.append(f"weather.max_period must be >= 1, got {self.max_period}")
        if self.freezing_max_period < 1:
            errors.append(f"weather.freezing_max_period must be >= 1, got {self.freezing_max_period}")
        return errors


@dataclass
class RunConfig:
    """Run length and pacing."""
    max_steps: int = 4000
    step_delay: float = 0.0  # seconds between steps; presentation pacing only

    def validate(self) -> list[str]:
        errors = []
        if self.max_steps < 1:
            errors.append(f"run.max_steps must be >= 1, got {self.max_steps}")
        if self.step_delay < 0:
            errors.append(f"run.step_delay must be >= 0, got {self.step_delay}")
        return errors


@dataclass
class OutputConfig:
    """Run output settings."""
    output_dir: str = "runs"
    snapshot_every_n_steps: int = 100  # 0 = never

    def validate(self) -> list[str]:
        errors = []
        if self.snapshot_every_n_steps < 0:
            errors.append(
                f"output.snapshot_every_n_steps must be >= 0, got {self.snapshot_every_n_steps}"
            )
        return errors


# ---------------------------------------------------------------------------
# Species defaults
# ---------------------------------------------------------------------------

def _orca() -> SpeciesConfig:
    return SpeciesConfig(
        name="orca", breeding_age=15, max_age=150, breeding_probability=0.16,
        max_litter_size=3, food_value=14, creation_probability=0.02,
        infection_death_probability=0.002, contracts_infection=True,
    )


def _shark() -> SpeciesConfig:
    return SpeciesConfig(
        name="shark", breeding_age=20, max_age=200, breeding_probability=0.2,
        max_litter_size=2, food_value=15, creation_probability=0.01,
    )


def _salmon() -> SpeciesConfig:
    return SpeciesConfig(
        name="salmon", breeding_age=6, max_age=10, breeding_probability=0.14,
        max_litter_size=5, food_value=8, creation_probability=0.04,
        contracts_infection=True,
    )


def _sardine() -> SpeciesConfig:
    return SpeciesConfig(
        name="sardine", breeding_age=4, max_age=12, breeding_probability=0.15,
        max_litter_size=4, food_value=7, creation_probability=0.05,
    )


def _scubadiver() -> SpeciesConfig:
    return SpeciesConfig(
        name="scubadiver", breeding_age=2, max_age=20, breeding_probability=0.4,
        max_litter_size=6, creation_probability=0.02,
    )


def _seaweed() -> SpeciesConfig:
    return SpeciesConfig(
        name="seaweed", breeding_age=5, breeding_probability=0.4,
        max_litter_size=9, creation_probability=0.2,
        infection_probability=0.0005, initial_max_age=5,
    )


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------

@dataclass
class SimConfig:
    """
    Top-level simulation configuration.

    All parameters are adjustable. Nested dataclasses group related settings.
    Load from JSON with `load_config()`, validate with `validate()`.
    """
    world: WorldConfig = field(default_factory=WorldConfig)
    orca: SpeciesConfig = field(default_factory=_orca)
    shark: SpeciesConfig = field(default_factory=_shark)
    salmon: SpeciesConfig = field(default_factory=_salmon)
    sardine: SpeciesConfig = field(default_factory=_sardine)
    scubadiver: SpeciesConfig = field(default_factory=_scubadiver)
    seaweed: SpeciesConfig = field(default_factory=_seaweed)
    cycle: CycleConfig = field(default_factory=CycleConfig)
    weather: WeatherConfig = field(default_factory=WeatherConfig)
    run: RunConfig = field(default_factory=RunConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    def validate(self) -> list[str]:
        """Validate all config sections. Returns list of error messages (empty = valid)."""
        errors = []
        for f in fields(self):
            sub = getattr(self, f.name)
            if hasattr(sub, "validate"):
                errors.extend(sub.validate())
        return errors

    def species_config(self, species: Species) -> SpeciesConfig:
        """Biological constants for a species tag."""
        return getattr(self, species.value)

    def to_dict(self) -> dict[str, Any]:
        """Convert to nested dict for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SimConfig:
        """Create SimConfig from nested dict, merging with defaults."""
        config = cls()
        _merge_section(config, data, "")
        return config

    def copy(self) -> SimConfig:
        """Deep copy of this config."""
        return deepcopy(self)


# ---------------------------------------------------------------------------
# Merging, overrides and JSON I/O
# ---------------------------------------------------------------------------

def _is_section(value: Any) -> bool:
    return is_dataclass(value) and not isinstance(value, type)


def _coerce(current: Any, value: Any) -> Any:
    """JSON writes 0 and 1 for float probabilities; keep float fields float."""
    if isinstance(current, float) and isinstance(value, int) and not isinstance(value, bool):
        return float(value)
    return value


def _merge_section(section: Any, data: dict[str, Any], where: str) -> None:
    """
    Copy `data` onto a section dataclass, recursing into nested sections.

    Unknown keys warn and are skipped; a non-object given for a nested
    section is an error.
    """
    names = {f.name for f in fields(section)}
    for key, value in data.items():
        path = f"{where}.{key}" if where else key
        if key not in names:
            warnings.warn(f"Unknown config key '{path}' - ignored.", UserWarning, stacklevel=4)
            continue
        current = getattr(section, key)
        if _is_section(current):
            if not isinstance(value, dict):
                raise ValueError(f"Config section '{path}' must be an object, got {value!r}")
            _merge_section(current, value, path)
        else:
            setattr(section, key, _coerce(current, value))


def _raise_if_invalid(errors: list[str]) -> None:
    if errors:
        raise ValueError("Invalid configuration:\n" + "\n".join(f"  - {e}" for e in errors))


def load_config(path: str | Path) -> SimConfig:
    """
    Read a JSON config, layering it over the defaults.

    Raises:
        FileNotFoundError: If path doesn't exist.
        ValueError: If the JSON is not an object or any value is invalid.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a JSON object")
    config = SimConfig.from_dict(data)
    _raise_if_invalid(config.validate())
    return config


def save_config(config: SimConfig, path: str | Path) -> Path:
    """Write `config` as indented JSON; returns the path written."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config.to_dict(), indent=2) + "\n", encoding="utf-8")
    return path


def get_default_config() -> SimConfig:
    config = SimConfig()
    _raise_if_invalid(config.validate())
    return config


def apply_param_override(config: SimConfig, dotted_key: str, value: Any) -> None:
    """
    Set one leaf value by dotted path, e.g. ``"shark.breeding_age"``.

    Only dataclass fields are addressable. The owning section is validated
    afterwards; an invalid value is rolled back and reported.

    Raises:
        KeyError: If the path does not name a leaf field.
        ValueError: If the new value fails validation.
    """
    *parents, leaf = dotted_key.split(".")
    section: Any = config
    for name in parents:
        if not _is_section(section) or name not in {f.name for f in fields(section)}:
            raise KeyError(f"Config path '{dotted_key}': no section '{name}'")
        section = getattr(section, name)

    if not _is_section(section) or leaf not in {f.name for f in fields(section)}:
        raise KeyError(f"Config path '{dotted_key}': no field '{leaf}'")
    old = getattr(section, leaf)
    if _is_section(old):
        raise KeyError(f"Config path '{dotted_key}' names a section, not a value")

    setattr(section, leaf, _coerce(old, value))
    errors = section.validate()
    if errors:
        setattr(section, leaf, old)
        _raise_if_invalid(errors)
