"""
Session Manager - Creates and manages game sessions.

LIFECYCLE:
1. Player starts a session -> fresh engine with a freshly generated path
2. During play:
   - Inputs and clock ticks are applied to the engine (see GameLoop)
   - Every outcome is published to subscribers (renderers, sound)
3. Session ends (wrong step or timer ran out):
   - The engine hands its SessionResult to the manager exactly once
   - The manager offers it to the high score store
4. Player leaves or starts again -> session discarded, state deleted

PERSISTENCE RULES:
- In-progress sessions are in memory only, never saved or resumed
- The only persistence is the high score store
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable
import asyncio
import inspect
import logging
import time
import uuid

from ..engine_core import GameConfig, SessionEngine, PathGenerator, MoveOutcome, SessionResult
from ..scores import HighScoreStore, PlayerProfile, DEFAULT_COLOR
from .controls import normalize_color

if TYPE_CHECKING:
    from .game_loop import GameLoop


logger = logging.getLogger(__name__)

Subscriber = Callable[[MoveOutcome], Any]


@dataclass
class Session:
    """
    An ephemeral game session.

    Contains:
    - The engine (owns the authoritative state)
    - Who is playing and with which character color
    - Outcome subscribers

    The session is discarded when the player leaves; nothing is persisted
    except the final score.
    """
    session_id: str
    engine: SessionEngine
    player: PlayerProfile
    character_color: str = DEFAULT_COLOR
    created_at: float = 0.0
    ended_at: float | None = None
    loop: GameLoop | None = field(default=None, repr=False)

    subscribers: list[Subscriber] = field(default_factory=list)
    _pending: set = field(default_factory=set, repr=False)

    def is_active(self) -> bool:
        """Check if the session is still being played."""
        return not self.engine.is_ended

    def attach_loop(self, loop: GameLoop):
        """
        Make loop the one driver of this session.

        Raises RuntimeError if a different loop already owns it.
        """
        if self.loop is not None and self.loop is not loop:
            raise RuntimeError(f"Session {self.session_id} is already being played")
        self.loop = loop

    def detach_loop(self, loop: GameLoop):
        if self.loop is loop:
            self.loop = None

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register a callback for every outcome.

        Returns a function that removes the subscription.
        """
        self.subscribers.append(callback)

        def unsubscribe():
            if callback in self.subscribers:
                self.subscribers.remove(callback)

        return unsubscribe

    def publish(self, outcome: MoveOutcome):
        """
        Notify subscribers. Fire-and-forget.

        Coroutine subscribers are scheduled, not awaited, so a slow
        display never delays gameplay. Subscriber errors are logged.
        """
        for callback in list(self.subscribers):
            try:
                result = callback(outcome)
            except Exception:
                logger.exception("Subscriber failed for session %s", self.session_id)
                continue
            if inspect.isawaitable(result):
                self._schedule(result)

    async def drain(self):
        """Wait for scheduled async subscribers to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _schedule(self, awaitable):
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No running loop; nothing can drive the coroutine.
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            logger.warning("Dropped async subscriber for session %s: no event loop", self.session_id)
            return
        task = asyncio.ensure_future(awaitable, loop=loop)
        self._pending.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Future):
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(
                "Async subscriber failed for session %s",
                self.session_id,
                exc_info=task.exception(),
            )


class SessionManager:
    """
    Manages game sessions.

    Responsibilities:
    - Create sessions with their engines
    - Track active sessions
    - Forward final results to the high score store
    - Clean up finished sessions

    No persistence of sessions - in-memory only.
    """

    def __init__(
        self,
        store: HighScoreStore | None = None,
        config: GameConfig | None = None,
        generator_factory: Callable[[GameConfig], PathGenerator] | None = None,
    ):
        self.store = store if store is not None else HighScoreStore()
        self.config = config or GameConfig()
        self._generator_factory = generator_factory or (lambda cfg: PathGenerator(config=cfg))
        self._sessions: dict[str, Session] = {}
        self._result_hooks: list[Callable[[Session, SessionResult], None]] = []

    def create_session(
        self,
        player: PlayerProfile,
        character_color: str = DEFAULT_COLOR,
        config: GameConfig | None = None,
    ) -> Session:
        """
        Create a new game session.

        Args:
            player: Who is playing
            character_color: Cosmetic tag, must be a palette color
            config: Optional per-session tunables

        Returns:
            New Session, already active
        """
        color = normalize_color(character_color)
        cfg = config or self.config
        session_id = str(uuid.uuid4())

        holder: dict[str, Session] = {}

        def hand_off(result: SessionResult):
            self._handle_result(holder["session"], result)

        engine = SessionEngine(
            config=cfg,
            generator=self._generator_factory(cfg),
            cosmetic_tag=color,
            session_id=session_id,
            result_sink=hand_off,
        )
        session = Session(
            session_id=session_id,
            engine=engine,
            player=player,
            character_color=color,
            created_at=time.time(),
        )
        holder["session"] = session

        self._sessions[session_id] = session
        logger.info("Created session %s for %s", session_id, player.player_id)
        return session

    def on_result(self, hook: Callable[[Session, SessionResult], None]):
        """Register an extra hook called with every final result."""
        self._result_hooks.append(hook)

    def get_session(self, session_id: str) -> Session | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def end_session(self, session_id: str) -> bool:
        """
        Discard a session.

        Called when the player leaves or starts over. A session that is
        still active is simply dropped; its score is not recorded.
        """
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.subscribers.clear()
        logger.info("Discarded session %s", session_id)
        return True

    def list_active_sessions(self) -> list[str]:
        """List IDs of sessions still being played."""
        return [
            sid for sid, session in self._sessions.items()
            if session.is_active()
        ]

    def list_sessions(self) -> list[str]:
        """List IDs of all known sessions, finished ones included."""
        return list(self._sessions)

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> int:
        """
        Drop finished sessions older than max_age.

        Called periodically to free memory. Returns how many were dropped.
        """
        current_time = time.time()
        to_remove = [
            session_id for session_id, session in self._sessions.items()
            if not session.is_active() and current_time - session.created_at > max_age_seconds
        ]
        for session_id in to_remove:
            self.end_session(session_id)
        return len(to_remove)

    def _handle_result(self, session: Session, result: SessionResult):
        session.ended_at = time.time()
        try:
            self.store.submit(session.player, result)
        except Exception:
            logger.exception("Failed to record score for session %s", session.session_id)
        for hook in list(self._result_hooks):
            try:
                hook(session, result)
            except Exception:
                logger.exception("Result hook failed for session %s", session.session_id)
