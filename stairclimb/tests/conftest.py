"""
Pytest fixtures for Stair Climber tests.
"""

import pytest
from collections import deque

from ..engine_core import GameConfig, PathGenerator, SessionEngine, Direction
from ..scores import HighScoreStore, PlayerProfile
from ..session import SessionManager


L = Direction.LEFT
R = Direction.RIGHT


class ScriptedRandom:
    """Random source that replays fixed values (cycling)."""

    def __init__(self, *values: float):
        self.values = list(values) or [0.99]
        self.calls = 0

    def random(self) -> float:
        value = self.values[self.calls % len(self.values)]
        self.calls += 1
        return value


NEVER_FLIP = 0.99
ALWAYS_FLIP = 0.0


class FixedPathGenerator(PathGenerator):
    """Generator whose opening path is given; extensions never flip."""

    def __init__(self, steps, config=None):
        super().__init__(config=config or GameConfig(), rng=ScriptedRandom(NEVER_FLIP))
        self.steps = list(steps)

    def generate_initial(self, length):
        path = deque(self.steps[:length])
        return self.extend(path, length - len(path))


def make_engine(steps=None, config=None, **kwargs) -> SessionEngine:
    """Engine over a known path (all RIGHT by default)."""
    config = config or GameConfig()
    generator = FixedPathGenerator(steps or [], config=config)
    return SessionEngine(config=config, generator=generator, **kwargs)


@pytest.fixture
def config() -> GameConfig:
    return GameConfig()


@pytest.fixture
def straight_engine(config) -> SessionEngine:
    """Engine whose path is all RIGHT forever."""
    return make_engine(config=config, cosmetic_tag="#F87171", session_id="straight")


@pytest.fixture
def left_first_engine(config) -> SessionEngine:
    """Engine whose first required step is LEFT."""
    return make_engine([L, L, R], config=config, cosmetic_tag="#60A5FA", session_id="left-first")


@pytest.fixture
def player() -> PlayerProfile:
    return PlayerProfile(player_id="p1", display_name="Climber")


@pytest.fixture
def store() -> HighScoreStore:
    """In-memory score store."""
    return HighScoreStore()


@pytest.fixture
def straight_manager(store) -> SessionManager:
    """Manager whose sessions have an all-RIGHT path."""
    return SessionManager(
        store=store,
        generator_factory=lambda cfg: FixedPathGenerator([], config=cfg),
    )
