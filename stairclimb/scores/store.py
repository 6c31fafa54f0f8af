"""
High Score Store - Records the best score per player.

The store:
- Receives SessionResult hand-offs from finished sessions
- Keeps one entry per player (their best)
- Only replaces an entry when the new score is strictly greater
- Serves the leaderboard (highest first)

Design decisions:
- Simple file-based JSON storage, no database required
- path=None keeps everything in memory (tests, throwaway servers)
- A failed write is logged and reported, never retried here
"""

from __future__ import annotations
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Callable
import json
import logging
import os
import time

from ..engine_core.state import SessionResult


logger = logging.getLogger(__name__)

DEFAULT_COLOR = "#F87171"
DEFAULT_LEADERBOARD_SIZE = 20


@dataclass(frozen=True)
class PlayerProfile:
    """Who played. Supplied by the authentication collaborator."""
    player_id: str
    display_name: str | None = None
    email: str | None = None

    @property
    def label(self) -> str:
        """Name shown on the leaderboard."""
        if self.display_name:
            return self.display_name
        if self.email:
            return self.email.split("@")[0]
        return "Anonymous"


@dataclass(frozen=True)
class ScoreEntry:
    """A stored high score."""
    player_id: str
    display_name: str
    score: int
    character_color: str = DEFAULT_COLOR
    timestamp: float = 0.0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScoreEntry:
        return cls(
            player_id=str(data["player_id"]),
            display_name=str(data.get("display_name") or "Anonymous"),
            score=int(data["score"]),
            character_color=str(data.get("character_color") or DEFAULT_COLOR),
            timestamp=float(data.get("timestamp", 0.0)),
        )


def default_store_path() -> Path:
    """~/.stairclimb/scores.json, or $STAIRCLIMB_DATA_DIR/scores.json."""
    data_dir = os.getenv("STAIRCLIMB_DATA_DIR")
    base = Path(data_dir) if data_dir else Path.home() / ".stairclimb"
    return base / "scores.json"


class HighScoreStore:
    """
    Best-score-per-player store.

    Usage:
        store = HighScoreStore(path="~/.stairclimb/scores.json")

        # When a session ends
        store.submit(profile, result)

        # Leaderboard
        for entry in store.top(10):
            print(entry.display_name, entry.score)
    """

    def __init__(
        self,
        path: str | Path | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.path = Path(path).expanduser() if path is not None else None
        self._clock = clock
        self._entries: dict[str, ScoreEntry] = {}
        if self.path is not None:
            self._load()

    def submit(self, player: PlayerProfile, result: SessionResult) -> bool:
        """
        Record a finished session.

        Returns True if it became the player's new best and was saved.
        """
        existing = self._entries.get(player.player_id)
        if existing is not None and result.final_score <= existing.score:
            logger.debug(
                "Score %d for %s does not beat best %d",
                result.final_score, player.player_id, existing.score,
            )
            return False

        entry = ScoreEntry(
            player_id=player.player_id,
            display_name=player.label,
            score=result.final_score,
            character_color=result.cosmetic_tag or DEFAULT_COLOR,
            timestamp=self._clock(),
        )
        self._entries[player.player_id] = entry

        if not self._save():
            # Keep the file and memory consistent
            if existing is None:
                self._entries.pop(player.player_id, None)
            else:
                self._entries[player.player_id] = existing
            return False

        logger.info("New best for %s: %d", player.player_id, entry.score)
        return True

    def best_for(self, player_id: str) -> ScoreEntry | None:
        """Get a player's best entry."""
        return self._entries.get(player_id)

    def top(self, limit: int = DEFAULT_LEADERBOARD_SIZE) -> list[ScoreEntry]:
        """Highest scores first; ties go to whoever got there first."""
        ranked = sorted(
            self._entries.values(),
            key=lambda e: (-e.score, e.timestamp),
        )
        return ranked[:max(limit, 0)]

    def clear(self):
        """Remove every entry."""
        self._entries.clear()
        self._save()

    def __len__(self) -> int:
        return len(self._entries)

    def _load(self):
        if not self.path.exists():
            return
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
            entries = [ScoreEntry.from_dict(item) for item in raw.get("scores", [])]
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning("Ignoring unreadable score file %s: %s", self.path, e)
            return
        self._entries = {e.player_id: e for e in entries}

    def _save(self) -> bool:
        if self.path is None:
            return True
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(".tmp")
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(
                    {"scores": [asdict(e) for e in self._entries.values()]},
                    f,
                    indent=2,
                )
            tmp_path.replace(self.path)
        except OSError:
            logger.exception("Failed to write score file %s", self.path)
            return False
        return True
