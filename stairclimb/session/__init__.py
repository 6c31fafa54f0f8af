"""
Session Module - Manages ephemeral game sessions.

A session represents one play-through:
- Created when the player presses start
- Holds the engine and its authoritative state
- Receives climb / turn inputs and clock ticks
- Ends on a wrong step or when the timer runs out

Sessions are EPHEMERAL:
- No save / resume
- Only the final score is handed to the high score store
"""

from .manager import SessionManager, Session
from .game_loop import GameLoop, LoopState, LoopEvent, EventKind
from .controls import (
    KEY_BINDINGS,
    CHARACTER_COLORS,
    FeedbackCue,
    parse_key,
    cue_for,
    is_valid_color,
    normalize_color,
)

__all__ = [
    "SessionManager",
    "Session",
    "GameLoop",
    "LoopState",
    "LoopEvent",
    "EventKind",
    "KEY_BINDINGS",
    "CHARACTER_COLORS",
    "FeedbackCue",
    "parse_key",
    "cue_for",
    "is_valid_color",
    "normalize_color",
]
