"""
Moves and Outcomes - What the player does and what the engine reports back.

All state changes flow through SessionEngine and come back as a MoveOutcome.
Gameplay failure (wrong step, clock ran out) is a TERMINAL outcome,
never an exception.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum

from .state import RenderSnapshot, SessionResult


class MoveType(Enum):
    """The two input kinds."""
    CLIMB = "climb"  # Move in the current facing direction
    TURN = "turn"  # Flip facing, then move

    @classmethod
    def parse(cls, value: str) -> MoveType:
        """Parse a move name, case-insensitive."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown move: {value!r} (expected 'climb' or 'turn')") from None


class OutcomeKind(Enum):
    """Kinds of engine outcomes."""
    SUCCESS = "success"  # Move matched the next step
    ONGOING = "ongoing"  # Decay applied, session still active
    TERMINAL = "terminal"  # This call ended the session
    IGNORED = "ignored"  # Session already ended, nothing changed


@dataclass(frozen=True)
class MoveOutcome:
    """
    Result of apply_move or apply_decay.

    Contains:
    - The kind of outcome
    - Score and timer after the call
    - A render snapshot
    - The session result, only on the call that ended the session
    """
    kind: OutcomeKind
    score: int
    timer: float
    snapshot: RenderSnapshot
    move: MoveType | None = None
    result: SessionResult | None = None

    @property
    def is_terminal(self) -> bool:
        return self.kind == OutcomeKind.TERMINAL

    @property
    def final_score(self) -> int | None:
        return self.result.final_score if self.result else None

    @classmethod
    def success(cls, snapshot: RenderSnapshot, move: MoveType | None = None) -> MoveOutcome:
        return cls(
            kind=OutcomeKind.SUCCESS,
            score=snapshot.score,
            timer=snapshot.timer,
            snapshot=snapshot,
            move=move,
        )

    @classmethod
    def ongoing(cls, snapshot: RenderSnapshot) -> MoveOutcome:
        return cls(
            kind=OutcomeKind.ONGOING,
            score=snapshot.score,
            timer=snapshot.timer,
            snapshot=snapshot,
        )

    @classmethod
    def terminal(
        cls,
        snapshot: RenderSnapshot,
        result: SessionResult,
        move: MoveType | None = None,
    ) -> MoveOutcome:
        return cls(
            kind=OutcomeKind.TERMINAL,
            score=snapshot.score,
            timer=snapshot.timer,
            snapshot=snapshot,
            move=move,
            result=result,
        )

    @classmethod
    def ignored(cls, snapshot: RenderSnapshot, move: MoveType | None = None) -> MoveOutcome:
        return cls(
            kind=OutcomeKind.IGNORED,
            score=snapshot.score,
            timer=snapshot.timer,
            snapshot=snapshot,
            move=move,
        )
