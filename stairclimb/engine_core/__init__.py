"""
Engine Core - Step path generation and the session state machine.

The engine is the runtime that:
1. Generates a clustered left/right stair path
2. Owns the SessionState
3. Validates climb / turn moves against the next step
4. Applies timer decay per clock tick
5. Hands off the final result when the session ends
"""

from .config import GameConfig, MAX_TIME
from .state import (
    Direction,
    SessionPhase,
    EndReason,
    StepPath,
    SessionState,
    RenderSnapshot,
    SessionResult,
)
from .action import MoveType, OutcomeKind, MoveOutcome
from .path_generator import PathGenerator, RandomSource
from .engine import SessionEngine

__all__ = [
    "GameConfig",
    "MAX_TIME",
    "Direction",
    "SessionPhase",
    "EndReason",
    "StepPath",
    "SessionState",
    "RenderSnapshot",
    "SessionResult",
    "MoveType",
    "OutcomeKind",
    "MoveOutcome",
    "PathGenerator",
    "RandomSource",
    "SessionEngine",
]
