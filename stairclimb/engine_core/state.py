"""
Session State - Mutable record for one play-through.

Design principles:
- Authoritative: the engine owns exactly one SessionState
- Mutated only through SessionEngine.apply_move / apply_decay
- Observable: renderers receive immutable RenderSnapshot copies, never the state
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass, field
from enum import Enum

from .config import GameConfig


class Direction(Enum):
    """Direction of a step, or of the player's facing."""
    LEFT = "left"
    RIGHT = "right"

    def opposite(self) -> Direction:
        return Direction.LEFT if self is Direction.RIGHT else Direction.RIGHT


class SessionPhase(Enum):
    """Lifecycle phase. ENDED is terminal."""
    ACTIVE = "active"
    ENDED = "ended"


class EndReason(Enum):
    """Why a session ended."""
    MISMATCH = "mismatch"
    TIMEOUT = "timeout"


# Rolling window of required steps. Consume from the left, generate on the right.
StepPath = deque


@dataclass
class SessionState:
    """
    State of a single session.

    path[0] is the step that must be matched next.
    history holds the most recently consumed steps (oldest first).
    """
    path: StepPath
    facing: Direction = Direction.RIGHT
    score: int = 0
    timer: float = 100.0
    phase: SessionPhase = SessionPhase.ACTIVE
    history: deque = field(default_factory=lambda: deque(maxlen=8))
    end_reason: EndReason | None = None

    @classmethod
    def create(cls, path: StepPath, config: GameConfig) -> SessionState:
        """Create the initial state for a new session."""
        return cls(
            path=path,
            facing=Direction.RIGHT,
            score=0,
            timer=config.initial_time,
            phase=SessionPhase.ACTIVE,
            history=deque(maxlen=config.history_size),
        )

    @property
    def is_ended(self) -> bool:
        return self.phase == SessionPhase.ENDED

    @property
    def next_step(self) -> Direction | None:
        return self.path[0] if self.path else None


@dataclass(frozen=True)
class RenderSnapshot:
    """
    Read-only view of the session handed to the rendering collaborator.
    """
    facing: Direction
    score: int
    timer: float
    visible_path: tuple[Direction, ...]
    history: tuple[Direction, ...]
    is_ended: bool

    @classmethod
    def of(cls, state: SessionState, visible_steps: int) -> RenderSnapshot:
        return cls(
            facing=state.facing,
            score=state.score,
            timer=state.timer,
            visible_path=tuple(list(state.path)[:visible_steps]),
            history=tuple(state.history),
            is_ended=state.is_ended,
        )

    def to_dict(self) -> dict:
        """JSON-friendly form for transports."""
        return {
            "facing": self.facing.value,
            "score": self.score,
            "timer": self.timer,
            "visible_path": [d.value for d in self.visible_path],
            "history": [d.value for d in self.history],
            "is_ended": self.is_ended,
        }


@dataclass(frozen=True)
class SessionResult:
    """
    Final result of a session, emitted once when it ends.

    cosmetic_tag is opaque to the engine (the player's character color).
    """
    final_score: int
    cosmetic_tag: str | None = None
    end_reason: EndReason | None = None
    session_id: str | None = None
