"""
Scores Module - High score persistence.

The only persistence in the system. In-progress sessions are never stored;
only the final score of a finished session is offered to the store, which
keeps it if it beats the player's previous best.
"""

from .store import (
    HighScoreStore,
    PlayerProfile,
    ScoreEntry,
    default_store_path,
    DEFAULT_COLOR,
    DEFAULT_LEADERBOARD_SIZE,
)

__all__ = [
    "HighScoreStore",
    "PlayerProfile",
    "ScoreEntry",
    "default_store_path",
    "DEFAULT_COLOR",
    "DEFAULT_LEADERBOARD_SIZE",
]
