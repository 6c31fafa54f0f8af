"""
Game Loop - Serializes player input and clock ticks onto one engine.

The loop:
1. Player presses climb / turn -> event queued
2. Clock fires every tick_interval -> tick queued
3. A single consumer applies events in arrival order
4. Each outcome is published to the session's subscribers
5. Repeat until the session ends or the loop is stopped

Input and ticks never interleave mid-mutation because only the consumer
touches the engine. Held-key auto-repeat is dropped before it is queued.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING
import asyncio
import logging

from ..engine_core.action import MoveType, MoveOutcome

if TYPE_CHECKING:
    from .manager import Session


logger = logging.getLogger(__name__)


class LoopState(Enum):
    """State of the game loop."""
    IDLE = "idle"
    RUNNING = "running"
    GAME_OVER = "game_over"
    STOPPED = "stopped"


class EventKind(Enum):
    INPUT = "input"
    TICK = "tick"
    STOP = "stop"


@dataclass(frozen=True)
class LoopEvent:
    """One queued event."""
    kind: EventKind
    move: MoveType | None = None


TICK = LoopEvent(EventKind.TICK)
STOP = LoopEvent(EventKind.STOP)


class GameLoop:
    """
    The real-time driver for one session.

    Usage:
        loop = GameLoop(session)
        runner = asyncio.create_task(loop.run())

        # From the input handler
        loop.submit(MoveType.CLIMB)

        # Leaving early
        loop.stop()
        await runner
    """

    def __init__(
        self,
        session: Session,
        tick_interval: float | None = None,
        clock_enabled: bool = True,
    ):
        self.session = session
        self.tick_interval = tick_interval or session.engine.config.tick_interval
        self.clock_enabled = clock_enabled
        self.state = LoopState.IDLE
        self.events_applied = 0
        self._queue: asyncio.Queue[LoopEvent] = asyncio.Queue()

    @property
    def accepting(self) -> bool:
        return self.state in {LoopState.IDLE, LoopState.RUNNING} and self.session.is_active()

    def submit(self, move: MoveType, repeat: bool = False) -> bool:
        """
        Queue a player input.

        Returns False if the input was dropped (auto-repeat, or the
        loop/session is already over).
        """
        if repeat:
            logger.debug("Dropping repeated %s for session %s", move.value, self.session.session_id)
            return False
        if not self.accepting:
            return False
        self._queue.put_nowait(LoopEvent(EventKind.INPUT, move))
        return True

    def stop(self):
        """Ask the loop to finish after the events already queued."""
        self._queue.put_nowait(STOP)

    async def run(self) -> LoopState:
        """
        Consume events until the session ends or stop() is called.

        The loop owns the session while running; a second loop on the
        same session raises RuntimeError. The clock task is owned here
        and cancelled on exit.
        """
        self.session.attach_loop(self)
        self.state = LoopState.RUNNING
        clock = asyncio.create_task(self._clock()) if self.clock_enabled else None

        try:
            while True:
                event = await self._queue.get()
                if self.session.engine.is_ended:
                    # Ended outside the loop
                    self.state = LoopState.GAME_OVER
                    break
                if event.kind == EventKind.STOP:
                    self.state = LoopState.STOPPED
                    break

                outcome = self.apply(event)
                if outcome.is_terminal or self.session.engine.is_ended:
                    self.state = LoopState.GAME_OVER
                    break
        finally:
            if clock is not None:
                clock.cancel()
                try:
                    await clock
                except asyncio.CancelledError:
                    pass
            if self.state == LoopState.RUNNING:
                self.state = LoopState.STOPPED
            self.session.detach_loop(self)

        return self.state

    def apply(self, event: LoopEvent) -> MoveOutcome:
        """Apply one event to the engine and publish the outcome."""
        engine = self.session.engine
        if event.kind == EventKind.TICK:
            outcome = engine.apply_decay()
        elif event.kind == EventKind.INPUT and event.move is not None:
            outcome = engine.apply_input(event.move)
        else:
            raise ValueError(f"Cannot apply event: {event}")

        self.events_applied += 1
        self.session.publish(outcome)
        return outcome

    async def _clock(self):
        """
        Enqueue one tick per interval while the session is active.

        Once the session has ended, wakes the consumer with STOP.
        """
        while self.session.is_active():
            await asyncio.sleep(self.tick_interval)
            if not self.session.is_active():
                break
            self._queue.put_nowait(TICK)
        self._queue.put_nowait(STOP)
