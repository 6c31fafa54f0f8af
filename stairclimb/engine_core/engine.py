"""
Session Engine - Validates moves and drives the session state machine.

The engine is the single point of state mutation for a session.
Only apply_move() and apply_decay() change SessionState.

State machine:
    ACTIVE --apply_move(match)-----> ACTIVE
    ACTIVE --apply_move(mismatch)--> ENDED
    ACTIVE --apply_decay(timer<=0)-> ENDED
    ENDED  --(anything)------------> ENDED

Every call runs to completion synchronously, so a move and a decay tick
can never interleave mid-mutation as long as callers serialize them.
"""

from __future__ import annotations
from typing import Callable
import logging

from .config import GameConfig, MAX_TIME
from .state import (
    Direction, SessionState, SessionPhase, EndReason,
    RenderSnapshot, SessionResult, StepPath,
)
from .action import MoveType, MoveOutcome
from .path_generator import PathGenerator


logger = logging.getLogger(__name__)

ResultSink = Callable[[SessionResult], None]


class SessionEngine:
    """
    Owns one SessionState for one play-through.

    Usage:
        engine = SessionEngine(cosmetic_tag="#F87171", result_sink=store_result)

        outcome = engine.climb()   # or engine.turn()
        outcome = engine.apply_decay()  # once per clock tick

        if outcome.is_terminal:
            show_game_over(outcome.final_score)

    A new session needs a new engine; nothing leaves ENDED.
    """

    def __init__(
        self,
        config: GameConfig | None = None,
        generator: PathGenerator | None = None,
        cosmetic_tag: str | None = None,
        session_id: str | None = None,
        result_sink: ResultSink | None = None,
    ):
        self.config = config or GameConfig()
        self.generator = generator or PathGenerator(config=self.config)
        self.cosmetic_tag = cosmetic_tag
        self.session_id = session_id
        self._result_sink = result_sink

        path = self.generator.generate_initial(self.config.initial_length)
        self._state = SessionState.create(path, self.config)
        self._result: SessionResult | None = None

    # =========================================================================
    # Read-only accessors
    # =========================================================================

    @property
    def phase(self) -> SessionPhase:
        return self._state.phase

    @property
    def is_ended(self) -> bool:
        return self._state.is_ended

    @property
    def score(self) -> int:
        return self._state.score

    @property
    def timer(self) -> float:
        return self._state.timer

    @property
    def facing(self) -> Direction:
        return self._state.facing

    @property
    def path(self) -> tuple[Direction, ...]:
        return tuple(self._state.path)

    @property
    def history(self) -> tuple[Direction, ...]:
        return tuple(self._state.history)

    @property
    def end_reason(self) -> EndReason | None:
        return self._state.end_reason

    @property
    def result(self) -> SessionResult | None:
        """The final result, set once the session has ended."""
        return self._result

    def snapshot(self) -> RenderSnapshot:
        return RenderSnapshot.of(self._state, self.config.visible_steps)

    def decay_per_tick(self) -> float:
        """
        Timer decay for one tick at the current score.

        Grows with score but stops growing at score_cap.
        """
        capped = min(self._state.score, self.config.score_cap)
        return self.config.base_decay + capped * self.config.decay_per_point

    # =========================================================================
    # Moves
    # =========================================================================

    def climb(self) -> MoveOutcome:
        """Move in the current facing direction."""
        return self.apply_move(self._state.facing, is_turn_move=False)

    def turn(self) -> MoveOutcome:
        """Flip facing, then move in the new direction."""
        return self.apply_move(self._state.facing.opposite(), is_turn_move=True)

    def apply_input(self, move: MoveType) -> MoveOutcome:
        """Dispatch one of the two input kinds."""
        if move == MoveType.TURN:
            return self.turn()
        return self.climb()

    def apply_move(self, attempted_direction: Direction, is_turn_move: bool) -> MoveOutcome:
        """
        Validate a move against the next required step.

        Match: score +1, timer bonus (clamped), step consumed, path refilled.
        Mismatch: session ends with the current score.
        Ended session: no-op, IGNORED.
        """
        state = self._state
        move = MoveType.TURN if is_turn_move else MoveType.CLIMB

        if state.is_ended:
            logger.debug("Ignoring %s on ended session %s", move.value, self.session_id)
            return MoveOutcome.ignored(self.snapshot(), move=move)

        expected = state.facing.opposite() if is_turn_move else state.facing
        if attempted_direction != expected:
            raise ValueError(
                f"{move.value} while facing {state.facing.value} moves "
                f"{expected.value}, not {attempted_direction.value}"
            )

        if is_turn_move:
            state.facing = attempted_direction

        if attempted_direction != state.next_step:
            self._end(EndReason.MISMATCH)
            return MoveOutcome.terminal(self.snapshot(), self._result, move=move)

        state.score += 1
        state.timer = min(MAX_TIME, state.timer + self.config.time_bonus)
        state.history.append(state.path.popleft())
        self._refill(state.path)

        return MoveOutcome.success(self.snapshot(), move=move)

    # =========================================================================
    # Clock
    # =========================================================================

    def apply_decay(self, elapsed_ticks: int = 1) -> MoveOutcome:
        """
        Apply timer decay for elapsed_ticks clock ticks.

        The engine does not schedule the clock; the caller invokes this
        once per tick (or with a batch count).
        """
        if elapsed_ticks < 0:
            raise ValueError(f"elapsed_ticks must be non-negative, got {elapsed_ticks}")

        state = self._state
        if state.is_ended:
            logger.debug("Ignoring decay on ended session %s", self.session_id)
            return MoveOutcome.ignored(self.snapshot())

        if elapsed_ticks == 0:
            return MoveOutcome.ongoing(self.snapshot())

        remaining = state.timer - self.decay_per_tick() * elapsed_ticks
        if remaining <= 0:
            state.timer = 0.0
            self._end(EndReason.TIMEOUT)
            return MoveOutcome.terminal(self.snapshot(), self._result)

        state.timer = remaining
        return MoveOutcome.ongoing(self.snapshot())

    # =========================================================================
    # Internals
    # =========================================================================

    def _refill(self, path: StepPath):
        if len(path) < self.config.lookahead:
            self.generator.extend(path, self.config.initial_length - len(path))

    def _end(self, reason: EndReason):
        """ACTIVE -> ENDED. Builds the result and hands it off once."""
        state = self._state
        state.phase = SessionPhase.ENDED
        state.end_reason = reason
        self._result = SessionResult(
            final_score=state.score,
            cosmetic_tag=self.cosmetic_tag,
            end_reason=reason,
            session_id=self.session_id,
        )
        logger.info(
            "Session %s ended (%s) with score %d",
            self.session_id, reason.value, state.score,
        )

        if self._result_sink is None:
            return
        try:
            self._result_sink(self._result)
        except Exception:
            logger.exception("Result sink failed for session %s", self.session_id)
