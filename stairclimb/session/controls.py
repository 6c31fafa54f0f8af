"""
Controls - Input mapping, feedback cues and the cosmetic palette.

These are the narrow contracts with the outer collaborators:
- Keyboard keys map to the two move kinds
- Outcomes map to fire-and-forget feedback cues (sound / haptics)
- Character colors are the cosmetic tag carried into the final result
"""

from __future__ import annotations
from enum import Enum

from ..engine_core.action import MoveType, MoveOutcome, OutcomeKind


KEY_BINDINGS: dict[str, MoveType] = {
    # Climb: Up Arrow, Right Arrow, Z
    "ArrowUp": MoveType.CLIMB,
    "ArrowRight": MoveType.CLIMB,
    "z": MoveType.CLIMB,
    "Z": MoveType.CLIMB,
    # Turn: Down Arrow, Left Arrow, X
    "ArrowDown": MoveType.TURN,
    "ArrowLeft": MoveType.TURN,
    "x": MoveType.TURN,
    "X": MoveType.TURN,
}

CHARACTER_COLORS: tuple[str, ...] = (
    "#F87171",  # Red
    "#FB923C",  # Orange
    "#FACC15",  # Yellow
    "#4ADE80",  # Green
    "#60A5FA",  # Blue
    "#A78BFA",  # Purple
    "#F472B6",  # Pink
    "#94A3B8",  # Slate
)


def parse_key(key: str) -> MoveType | None:
    """Map a key name to a move, or None if the key is unbound."""
    return KEY_BINDINGS.get(key)


def is_valid_color(color: str) -> bool:
    return color.upper() in CHARACTER_COLORS


def normalize_color(color: str) -> str:
    """Validate and upper-case a palette color."""
    normalized = color.upper()
    if normalized not in CHARACTER_COLORS:
        raise ValueError(f"Unknown character color: {color}")
    return normalized


class FeedbackCue(Enum):
    """Notifications for the audio / haptics collaborator."""
    JUMP = "jump"
    TURN = "turn"
    GAME_OVER = "gameover"


def cue_for(outcome: MoveOutcome) -> FeedbackCue | None:
    """
    Pick the cue for an outcome.

    Decay ticks and ignored inputs make no sound.
    """
    if outcome.kind == OutcomeKind.TERMINAL:
        return FeedbackCue.GAME_OVER
    if outcome.kind == OutcomeKind.SUCCESS:
        return FeedbackCue.TURN if outcome.move == MoveType.TURN else FeedbackCue.JUMP
    return None
