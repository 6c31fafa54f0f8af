"""
Path Generator - Produces the clustered left/right stair path.

The path is a biased random walk: each new step repeats the previous
direction unless a flip is drawn. Flip probabilities must stay below 0.5,
so consecutive steps repeat more often than they alternate.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Protocol
import random

from .config import GameConfig
from .state import Direction, StepPath


class RandomSource(Protocol):
    """Anything with random() -> float in [0, 1). random.Random fits."""

    def random(self) -> float: ...


@dataclass
class PathGenerator:
    """
    Generates and extends step paths.

    Usage:
        generator = PathGenerator(config)
        path = generator.generate_initial(20)
        generator.extend(path, 5)
    """
    config: GameConfig = field(default_factory=GameConfig)
    rng: RandomSource = field(default_factory=random.Random)

    def __post_init__(self):
        for name in ("initial_flip_probability", "flip_probability"):
            p = getattr(self.config, name)
            if not 0.0 <= p < 0.5:
                raise ValueError(f"{name} must be in [0, 0.5), got {p}")

    def generate_initial(self, length: int) -> StepPath:
        """
        Generate the opening path.

        Starts facing RIGHT and never flips during the warm-up steps,
        so the player is not asked to turn immediately.
        """
        if length < 0:
            raise ValueError(f"length must be non-negative, got {length}")

        path: StepPath = StepPath()
        current = Direction.RIGHT
        for i in range(length):
            if i >= self.config.warmup_steps and self._flip(self.config.initial_flip_probability):
                current = current.opposite()
            path.append(current)
        return path

    def extend(self, path: StepPath, count: int) -> StepPath:
        """
        Append count steps to path in place and return it.

        The running direction is seeded from the last element; nothing
        before the append point is read or changed.
        """
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")

        current = path[-1] if path else Direction.RIGHT
        for _ in range(count):
            if self._flip(self.config.flip_probability):
                current = current.opposite()
            path.append(current)
        return path

    def _flip(self, probability: float) -> bool:
        return self.rng.random() < probability
