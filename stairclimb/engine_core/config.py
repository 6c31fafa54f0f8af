"""
Game Config - Tunable constants for generation, timer and difficulty.

None of these values are contracts. They can be overridden per session
or from the environment (STAIRCLIMB_* variables).
"""

from __future__ import annotations
from dataclasses import dataclass, fields
import os


MAX_TIME = 100.0


@dataclass(frozen=True)
class GameConfig:
    """
    All tunables for one session.

    Timer values are percentages of MAX_TIME.
    """
    # Path generation
    initial_length: int = 20
    lookahead: int = 12
    visible_steps: int = 10
    warmup_steps: int = 4
    initial_flip_probability: float = 0.35
    flip_probability: float = 0.3

    # Timer
    initial_time: float = MAX_TIME
    time_bonus: float = 3.5
    base_decay: float = 0.5
    decay_per_point: float = 0.002
    score_cap: int = 200
    tick_interval: float = 0.05  # seconds

    # Rendering trail
    history_size: int = 8

    def __post_init__(self):
        if self.visible_steps > self.lookahead:
            raise ValueError("visible_steps cannot exceed lookahead")
        if self.lookahead > self.initial_length:
            raise ValueError("lookahead cannot exceed initial_length")
        if not 0 < self.initial_time <= MAX_TIME:
            raise ValueError(f"initial_time must be in (0, {MAX_TIME}]")
        if self.tick_interval <= 0:
            raise ValueError("tick_interval must be positive")
        if self.history_size < 0:
            raise ValueError("history_size must be non-negative")

    @classmethod
    def from_env(cls, prefix: str = "STAIRCLIMB_") -> GameConfig:
        """
        Build a config from environment variables.

        e.g. STAIRCLIMB_TIME_BONUS=4.0, STAIRCLIMB_LOOKAHEAD=14
        """
        overrides = {}
        for f in fields(cls):
            raw = os.getenv(prefix + f.name.upper())
            if raw is None:
                continue
            caster = int if f.type in ("int", int) else float
            try:
                overrides[f.name] = caster(raw)
            except ValueError:
                raise ValueError(f"Invalid value for {prefix}{f.name.upper()}: {raw!r}") from None
        return cls(**overrides)
