"""
Environment modulators: the day/night cycle and the weather cycle.

Both are advanced exactly once per simulation step, before any entity
acts, and are read by every behavior evaluation in that step.

Day/night is deterministic. The timer counts steps since the last
night -> day switch: day ends once the timer passes `day_length`, night
ends once it passes `day_length + night_length`, and only the night -> day
switch resets the timer.

Weather holds one of three states for a randomly drawn period. When the
elapsed timer passes the period, a new state and period are drawn from the
shared random source.
"""

from __future__ import annotations

from enum import Enum

import numpy as np

from oceansim.core.config import CycleConfig, WeatherConfig


class Phase(Enum):
    DAY = "day"
    NIGHT = "night"


class WeatherState(Enum):
    SUNNY = "sunny"
    STORMY = "stormy"
    FREEZING = "freezing"


class DayNightCycle:
    """
    Alternates day and night on fixed-length timers.

    Attributes:
        phase: Current phase.
        timer: Steps since the last night -> day switch.
    """

    def __init__(self, config: CycleConfig):
        self.day_length = config.day_length
        self.night_length = config.night_length
        self.phase = Phase.DAY
        self.timer = 0

    @property
    def is_day(self) -> bool:
        return self.phase is Phase.DAY

    def advance(self) -> Phase:
        """Advance one step; returns the phase for this step."""
        self.timer += 1
        if self.phase is Phase.DAY and self.timer > self.day_length:
            self.phase = Phase.NIGHT
        elif self.phase is Phase.NIGHT and self.timer > self.day_length + self.night_length:
            self.phase = Phase.DAY
            self.timer = 0
        return self.phase

    def reset(self) -> None:
        self.phase = Phase.DAY
        self.timer = 0

    def __repr__(self) -> str:
        return f"DayNightCycle(phase={self.phase.value}, timer={self.timer})"


class WeatherCycle:
    """
    Three-state weather with randomly drawn period lengths.

    Attributes:
        state: Current weather.
        timer: Steps the current weather has lasted.
        period: Steps the current weather is meant to last.
    """

    def __init__(self, config: WeatherConfig, rng: np.random.Generator):
        self.config = config
        self.rng = rng
        self.state = WeatherState.SUNNY
        self.timer = 0
        self.period = 0
        self.reset()

    def advance(self) -> WeatherState:
        """Advance one step; re-rolls once the period is exceeded."""
        self.timer += 1
        if self.timer > self.period:
            self.reset()
        return self.state

    def reset(self) -> None:
        """Draw a fresh state and period and restart the timer."""
        self.state = self._draw_state()
        self.period = self._draw_period(self.state)
        self.timer = 0

    def force(self, state: WeatherState, period: int) -> None:
        """Pin the weather to `state` for `period` more steps."""
        self.state = state
        self.period = period
        self.timer = 0

    def _draw_state(self) -> WeatherState:
        cfg = self.config
        if self.rng.random() < cfg.stormy_threshold:
            return WeatherState.STORMY
        if self.rng.random() < cfg.freezing_threshold:
            return WeatherState.FREEZING
        return WeatherState.SUNNY

    def _draw_period(self, state: WeatherState) -> int:
        if state is WeatherState.FREEZING:
            bound = self.config.freezing_max_period
        else:
            bound = self.config.max_period
        return int(self.rng.integers(0, bound))

    def __repr__(self) -> str:
        return (
            f"WeatherCycle(state={self.state.value}, "
            f"timer={self.timer}, period={self.period})"
        )
