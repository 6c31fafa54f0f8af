"""
Tests for the auto-player.
"""

import pytest
import random

from ..bots import AutoPlayer, simulate_session
from ..engine_core import MoveType, EndReason, GameConfig
from .conftest import make_engine, L


class TestAutoPlayer:
    """Tests for bot decisions."""

    def test_climbs_when_facing_next_step(self, straight_engine):
        decision = AutoPlayer().decide(straight_engine.snapshot())

        assert decision.move == MoveType.CLIMB
        assert decision.intended_correct

    def test_turns_when_next_step_is_behind(self, left_first_engine):
        decision = AutoPlayer().decide(left_first_engine.snapshot())
        assert decision.move == MoveType.TURN

    def test_always_wrong(self, straight_engine):
        decision = AutoPlayer(mistake_rate=1.0).decide(straight_engine.snapshot())

        assert decision.move == MoveType.TURN
        assert not decision.intended_correct

    def test_invalid_mistake_rate(self):
        with pytest.raises(ValueError):
            AutoPlayer(mistake_rate=1.5)


class TestSimulation:
    """Tests for simulated sessions."""

    def test_perfect_bot_hits_move_limit(self):
        engine = make_engine([L, L])
        report = simulate_session(engine, AutoPlayer(), ticks_per_move=1, max_moves=200)

        assert report.moves == 200
        assert report.result is None
        assert engine.score == 200

    def test_clumsy_bot_ends_on_first_move(self, straight_engine):
        report = simulate_session(straight_engine, AutoPlayer(mistake_rate=1.0))

        assert report.moves == 1
        assert report.final_score == 0
        assert report.result.end_reason == EndReason.MISMATCH

    def test_slow_bot_runs_out_of_time(self):
        config = GameConfig(base_decay=5.0)
        engine = make_engine(config=config)

        report = simulate_session(engine, AutoPlayer(), ticks_per_move=10, keep_outcomes=True)

        assert report.result.end_reason == EndReason.TIMEOUT
        assert report.outcomes[-1].is_terminal
        assert engine.timer == 0.0

    def test_mostly_right_bot_scores(self):
        from ..engine_core import SessionEngine, PathGenerator

        engine = SessionEngine(generator=PathGenerator(rng=random.Random(21)))
        report = simulate_session(engine, AutoPlayer(mistake_rate=0.05, rng=random.Random(21)))

        assert report.result is not None
        assert report.final_score == engine.score
