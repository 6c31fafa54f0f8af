"""
Bot Policy - Automatic player for simulations and smoke tests.

A bot looks at the render snapshot (the same view a human gets) and
chooses climb or turn. A mistake rate makes it pick the wrong move
now and then so simulated sessions actually end.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import random

from ..engine_core import (
    SessionEngine, RenderSnapshot, MoveType, MoveOutcome, SessionResult,
)


@dataclass
class BotDecision:
    """A move chosen by a bot, and whether it meant to get it right."""
    move: MoveType
    intended_correct: bool = True


@dataclass
class AutoPlayer:
    """
    Plays by reading the next visible step.

    mistake_rate: chance of deliberately picking the wrong move
    """
    mistake_rate: float = 0.0
    rng: random.Random = field(default_factory=random.Random)

    def __post_init__(self):
        if not 0.0 <= self.mistake_rate <= 1.0:
            raise ValueError(f"mistake_rate must be in [0, 1], got {self.mistake_rate}")

    def decide(self, snapshot: RenderSnapshot) -> BotDecision:
        """Choose the move for the next step."""
        if not snapshot.visible_path:
            return BotDecision(move=MoveType.CLIMB, intended_correct=False)

        correct = MoveType.CLIMB if snapshot.visible_path[0] == snapshot.facing else MoveType.TURN
        if self.mistake_rate and self.rng.random() < self.mistake_rate:
            wrong = MoveType.TURN if correct == MoveType.CLIMB else MoveType.CLIMB
            return BotDecision(move=wrong, intended_correct=False)
        return BotDecision(move=correct)


@dataclass
class SimulationReport:
    """Summary of a simulated session."""
    moves: int = 0
    ticks: int = 0
    result: SessionResult | None = None
    outcomes: list[MoveOutcome] = field(default_factory=list)

    @property
    def final_score(self) -> int | None:
        return self.result.final_score if self.result else None


def simulate_session(
    engine: SessionEngine,
    bot: AutoPlayer,
    ticks_per_move: int = 1,
    max_moves: int = 10_000,
    keep_outcomes: bool = False,
) -> SimulationReport:
    """
    Play a session with a manual clock: ticks_per_move decay ticks
    between consecutive moves. Stops at the end of the session or
    after max_moves.
    """
    report = SimulationReport()

    while not engine.is_ended and report.moves < max_moves:
        decision = bot.decide(engine.snapshot())
        outcome = engine.apply_input(decision.move)
        report.moves += 1
        if keep_outcomes:
            report.outcomes.append(outcome)
        if engine.is_ended:
            break

        for _ in range(ticks_per_move):
            outcome = engine.apply_decay()
            report.ticks += 1
            if keep_outcomes:
                report.outcomes.append(outcome)
            if engine.is_ended:
                break

    report.result = engine.result
    return report
