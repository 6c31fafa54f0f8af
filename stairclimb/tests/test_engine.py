"""
Tests for the session engine (state transitions).

Tests:
- Move validation (climb / turn)
- Timer bonus, decay and difficulty scaling
- ACTIVE -> ENDED transitions and absorption
- Result hand-off
"""

import pytest
import random

from ..engine_core import (
    GameConfig, SessionEngine, PathGenerator, Direction, SessionPhase,
    EndReason, OutcomeKind, MoveType, MAX_TIME,
)
from ..bots import AutoPlayer
from .conftest import make_engine, L, R


def frozen_view(engine: SessionEngine):
    return (engine.score, engine.timer, engine.facing, engine.path, engine.history, engine.phase)


class TestInitialState:
    """Tests for a fresh session."""

    def test_defaults(self):
        engine = SessionEngine(generator=PathGenerator(rng=random.Random(1)))

        assert engine.phase == SessionPhase.ACTIVE
        assert not engine.is_ended
        assert engine.score == 0
        assert engine.timer == MAX_TIME
        assert engine.facing == R
        assert engine.history == ()
        assert len(engine.path) == engine.config.initial_length
        assert engine.result is None

    def test_snapshot_shows_visible_steps(self, straight_engine):
        snapshot = straight_engine.snapshot()

        assert len(snapshot.visible_path) == 10
        assert snapshot.facing == R
        assert snapshot.score == 0
        assert not snapshot.is_ended


class TestClimb:
    """Tests for climb moves."""

    def test_correct_climb(self, straight_engine):
        """First step RIGHT, climb while facing RIGHT -> success."""
        before = len(straight_engine.path)

        outcome = straight_engine.climb()

        assert outcome.kind == OutcomeKind.SUCCESS
        assert outcome.move == MoveType.CLIMB
        assert straight_engine.score == 1
        assert outcome.score == 1
        assert straight_engine.timer == MAX_TIME  # clamped
        assert len(straight_engine.path) == before - 1
        assert straight_engine.history == (R,)

    def test_wrong_climb_ends_session(self, left_first_engine):
        """Required LEFT, climb while facing RIGHT -> session over."""
        engine = left_first_engine

        outcome = engine.climb()

        assert outcome.kind == OutcomeKind.TERMINAL
        assert outcome.is_terminal
        assert outcome.final_score == 0
        assert engine.is_ended
        assert engine.end_reason == EndReason.MISMATCH
        assert engine.facing == R
        assert engine.path[0] == L

    def test_mismatch_keeps_score(self):
        engine = make_engine([R, R, L])
        engine.climb()
        engine.climb()

        outcome = engine.climb()

        assert outcome.is_terminal
        assert outcome.final_score == 2
        assert engine.result.final_score == 2


class TestTurn:
    """Tests for turn moves."""

    def test_turn_onto_left_step(self, left_first_engine):
        """Facing RIGHT, required LEFT, turn -> facing LEFT and success."""
        engine = left_first_engine

        outcome = engine.turn()

        assert outcome.kind == OutcomeKind.SUCCESS
        assert outcome.move == MoveType.TURN
        assert engine.facing == L
        assert engine.score == 1

    def test_climb_after_turn_keeps_new_facing(self, left_first_engine):
        engine = left_first_engine
        engine.turn()

        outcome = engine.climb()

        assert outcome.kind == OutcomeKind.SUCCESS
        assert engine.facing == L
        assert engine.score == 2

    def test_wrong_turn_flips_then_ends(self, straight_engine):
        outcome = straight_engine.turn()

        assert outcome.is_terminal
        assert straight_engine.facing == L

    def test_apply_input_dispatch(self, left_first_engine):
        outcome = left_first_engine.apply_input(MoveType.TURN)
        assert outcome.move == MoveType.TURN
        assert outcome.kind == OutcomeKind.SUCCESS

    def test_apply_move_direct(self, left_first_engine):
        outcome = left_first_engine.apply_move(Direction.LEFT, is_turn_move=True)
        assert outcome.kind == OutcomeKind.SUCCESS

    def test_inconsistent_direction_rejected(self, straight_engine):
        """A climb can only go the way the player faces."""
        with pytest.raises(ValueError):
            straight_engine.apply_move(Direction.LEFT, is_turn_move=False)
        assert straight_engine.score == 0


class TestPathWindow:
    """Tests for the rolling path window."""

    def test_refills_below_lookahead(self, straight_engine):
        config = straight_engine.config
        moves = config.initial_length - config.lookahead + 1

        for _ in range(moves):
            straight_engine.climb()

        assert len(straight_engine.path) == config.initial_length

    def test_window_never_below_lookahead(self):
        """A perfect player never sees the window run short."""
        engine = SessionEngine(generator=PathGenerator(rng=random.Random(5)))
        bot = AutoPlayer(rng=random.Random(0))

        for _ in range(500):
            engine.apply_input(bot.decide(engine.snapshot()).move)
            assert not engine.is_ended
            assert len(engine.path) >= engine.config.lookahead
            assert len(engine.snapshot().visible_path) >= 10

    def test_history_is_capped(self, straight_engine):
        for _ in range(20):
            straight_engine.climb()

        assert len(straight_engine.history) == 8


class TestTimer:
    """Tests for timer bonus and decay."""

    def test_bonus_added(self):
        engine = make_engine(config=GameConfig(initial_time=50.0))
        engine.climb()
        assert engine.timer == pytest.approx(53.5)

    def test_decay_at_zero_score(self, straight_engine):
        outcome = straight_engine.apply_decay()

        assert outcome.kind == OutcomeKind.ONGOING
        assert straight_engine.timer == pytest.approx(99.5)

    def test_decay_grows_with_score(self, straight_engine):
        for _ in range(50):
            straight_engine.climb()

        assert straight_engine.decay_per_tick() == pytest.approx(0.5 + 50 * 0.002)

    def test_decay_growth_is_capped(self):
        engine = make_engine(config=GameConfig(score_cap=20))
        for _ in range(60):
            engine.climb()

        assert engine.decay_per_tick() == pytest.approx(0.5 + 20 * 0.002)

    def test_batched_ticks(self, straight_engine):
        straight_engine.apply_decay(4)
        assert straight_engine.timer == pytest.approx(98.0)

    def test_zero_ticks_is_noop(self, straight_engine):
        outcome = straight_engine.apply_decay(0)
        assert outcome.kind == OutcomeKind.ONGOING
        assert straight_engine.timer == MAX_TIME

    def test_negative_ticks_rejected(self, straight_engine):
        with pytest.raises(ValueError):
            straight_engine.apply_decay(-1)

    def test_timeout_ends_session(self):
        """timer 2, decay 3 -> timer 0 and session over."""
        config = GameConfig(initial_time=2.0, base_decay=3.0, decay_per_point=0.0)
        engine = make_engine(config=config)

        outcome = engine.apply_decay()

        assert outcome.kind == OutcomeKind.TERMINAL
        assert engine.timer == 0.0
        assert engine.is_ended
        assert engine.end_reason == EndReason.TIMEOUT
        assert outcome.final_score == 0

    def test_timeout_reports_score_before_decay(self):
        config = GameConfig(initial_time=2.0, time_bonus=0.0, base_decay=3.0, decay_per_point=0.0)
        engine = make_engine(config=config)
        engine.climb()
        engine.climb()

        outcome = engine.apply_decay()

        assert outcome.final_score == 2

    def test_exactly_zero_ends_session(self):
        config = GameConfig(initial_time=1.0, base_decay=0.5, decay_per_point=0.0)
        engine = make_engine(config=config)

        assert engine.apply_decay().kind == OutcomeKind.ONGOING
        assert engine.apply_decay().kind == OutcomeKind.TERMINAL
        assert engine.timer == 0.0

    def test_timer_stays_in_bounds(self):
        engine = SessionEngine(generator=PathGenerator(rng=random.Random(11)))
        bot = AutoPlayer(mistake_rate=0.01, rng=random.Random(4))

        while not engine.is_ended:
            engine.apply_input(bot.decide(engine.snapshot()).move)
            assert 0.0 <= engine.timer <= MAX_TIME
            engine.apply_decay(3)
            assert 0.0 <= engine.timer <= MAX_TIME


class TestEndedSession:
    """Tests for the absorbing ENDED state."""

    def test_second_mismatch_is_noop(self, left_first_engine):
        engine = left_first_engine
        engine.climb()
        after_first = frozen_view(engine)

        outcome = engine.climb()

        assert outcome.kind == OutcomeKind.IGNORED
        assert frozen_view(engine) == after_first

    def test_nothing_changes_after_end(self, left_first_engine):
        engine = left_first_engine
        engine.climb()
        after_end = frozen_view(engine)

        for _ in range(5):
            assert engine.turn().kind == OutcomeKind.IGNORED
            assert engine.climb().kind == OutcomeKind.IGNORED
            assert engine.apply_decay(10).kind == OutcomeKind.IGNORED

        assert frozen_view(engine) == after_end

    def test_score_is_monotonic(self):
        engine = SessionEngine(generator=PathGenerator(rng=random.Random(8)))
        bot = AutoPlayer(mistake_rate=0.05, rng=random.Random(2))
        last = 0

        for _ in range(300):
            engine.apply_input(bot.decide(engine.snapshot()).move)
            engine.apply_decay()
            assert engine.score >= last
            last = engine.score


class TestResultHandOff:
    """Tests for the one-time result hand-off."""

    def test_sink_called_once(self, config):
        received = []
        engine = make_engine([L], config=config, cosmetic_tag="#4ADE80",
                             session_id="s1", result_sink=received.append)

        engine.climb()
        engine.climb()
        engine.apply_decay()

        assert len(received) == 1
        result = received[0]
        assert result.final_score == 0
        assert result.cosmetic_tag == "#4ADE80"
        assert result.session_id == "s1"
        assert result.end_reason == EndReason.MISMATCH

    def test_failing_sink_does_not_break_engine(self, caplog):
        def broken_sink(result):
            raise RuntimeError("disk full")

        engine = make_engine([L], result_sink=broken_sink)

        outcome = engine.climb()

        assert outcome.is_terminal
        assert engine.is_ended
        assert engine.result.final_score == 0
        assert "Result sink failed" in caplog.text


class TestGameConfig:
    """Tests for tunables."""

    def test_lookahead_must_fit_initial_length(self):
        with pytest.raises(ValueError):
            GameConfig(initial_length=10, lookahead=12)

    def test_visible_steps_within_lookahead(self):
        with pytest.raises(ValueError):
            GameConfig(visible_steps=13)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("STAIRCLIMB_TIME_BONUS", "4.0")
        monkeypatch.setenv("STAIRCLIMB_LOOKAHEAD", "14")

        config = GameConfig.from_env()

        assert config.time_bonus == 4.0
        assert config.lookahead == 14
        assert isinstance(config.lookahead, int)
        assert config.flip_probability == 0.3

    def test_from_env_rejects_garbage(self, monkeypatch):
        monkeypatch.setenv("STAIRCLIMB_SCORE_CAP", "lots")
        with pytest.raises(ValueError):
            GameConfig.from_env()
