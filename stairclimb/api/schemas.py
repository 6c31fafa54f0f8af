"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the exact contract between the game client and the engine.

Error Codes:
- SESSION_NOT_FOUND: Session does not exist or was discarded
- SESSION_IN_PLAY: Session is being played over a WebSocket
- INVALID_MOVE: Move name is not climb or turn
- INVALID_COLOR: Character color is not in the palette
- VALIDATION_ERROR: Request parameters are out of range
- INTERNAL_ERROR: Unexpected server failure
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class SessionStatus(str, Enum):
    """Session status values."""
    ACTIVE = "active"
    ENDED = "ended"


class MoveName(str, Enum):
    """The two moves a player can make."""
    CLIMB = "climb"
    TURN = "turn"


class OutcomeName(str, Enum):
    """What happened when a move or tick was applied."""
    SUCCESS = "success"
    ONGOING = "ongoing"
    TERMINAL = "terminal"
    IGNORED = "ignored"


class DirectionName(str, Enum):
    LEFT = "left"
    RIGHT = "right"


class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    SESSION_IN_PLAY = "SESSION_IN_PLAY"
    INVALID_MOVE = "INVALID_MOVE"
    INVALID_COLOR = "INVALID_COLOR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class SnapshotInfo(BaseModel):
    """Everything a renderer needs to draw the current frame."""
    facing: DirectionName
    score: int = Field(ge=0)
    timer: float = Field(ge=0.0, le=100.0)
    visible_path: list[DirectionName] = Field(
        default_factory=list, description="Upcoming steps, next step first"
    )
    history: list[DirectionName] = Field(
        default_factory=list, description="Recently climbed steps, oldest first"
    )
    is_ended: bool = False


class ResultInfo(BaseModel):
    """Final result of a finished session."""
    final_score: int = Field(ge=0)
    character_color: Optional[str] = None
    end_reason: Optional[str] = Field(None, description="mismatch or timeout")


class ScoreEntryInfo(BaseModel):
    """A leaderboard row."""
    rank: int = Field(ge=1)
    player_id: str
    display_name: str
    score: int = Field(ge=0)
    character_color: str
    timestamp: float

    model_config = {"from_attributes": True}


# =============================================================================
# Request Models
# =============================================================================

class CreateSessionRequest(BaseModel):
    """Request to start a new session."""
    player_id: str = Field(..., min_length=1, description="Player identifier from the auth provider")
    display_name: Optional[str] = Field(None, description="Name shown on the leaderboard")
    email: Optional[str] = Field(None, description="Used for the name when display_name is missing")
    character_color: str = Field("#F87171", description="Palette color for the character")


class MoveRequest(BaseModel):
    """A single player input."""
    move: MoveName


class TickRequest(BaseModel):
    """Clock ticks for clients that run their own clock."""
    ticks: int = Field(1, ge=0, le=1000, description="Number of decay ticks to apply")


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class SessionResponse(BaseModel):
    """Response containing session information."""
    session_id: str
    status: SessionStatus
    player_id: str
    display_name: str
    character_color: str
    snapshot: SnapshotInfo
    result: Optional[ResultInfo] = None
    created_at: float = 0.0
    api_version: str = "v1"


class OutcomeResponse(BaseModel):
    """Response after applying a move or ticks."""
    session_id: str
    outcome: OutcomeName
    move: Optional[MoveName] = None
    cue: Optional[str] = Field(None, description="Feedback cue: jump, turn, gameover")
    snapshot: SnapshotInfo
    result: Optional[ResultInfo] = None
    api_version: str = "v1"


class SessionListResponse(BaseModel):
    """List of session IDs."""
    sessions: list[str] = Field(default_factory=list)
    count: int = 0


class EndSessionResponse(BaseModel):
    """Response after discarding a session."""
    success: bool
    session_id: str


class LeaderboardResponse(BaseModel):
    """Top scores, highest first."""
    entries: list[ScoreEntryInfo] = Field(default_factory=list)
    count: int = 0
    api_version: str = "v1"


class PlayerBestResponse(BaseModel):
    """A player's best score, if any."""
    player_id: str
    best: Optional[ScoreEntryInfo] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    service: str = "stairclimb-engine"
    version: str = "0.1.0"
