"""
API Module - Game client interface.

Exposes the engine via REST and WebSocket for game clients.
The client:
1. Starts a session (player id, display name, character color)
2. Sends climb / turn inputs
3. Receives snapshots to render after every change
4. Reads the leaderboard

Session state lives in memory; only final scores are stored.
"""

from .schemas import (
    # Requests
    CreateSessionRequest,
    MoveRequest,
    TickRequest,
    # Responses
    SessionResponse,
    OutcomeResponse,
    SessionListResponse,
    EndSessionResponse,
    LeaderboardResponse,
    PlayerBestResponse,
    ErrorResponse,
    HealthResponse,
    # Shared
    SnapshotInfo,
    ResultInfo,
    ScoreEntryInfo,
    # Enums
    ErrorCode,
    SessionStatus,
    MoveName,
    OutcomeName,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "CreateSessionRequest",
    "MoveRequest",
    "TickRequest",
    # Responses
    "SessionResponse",
    "OutcomeResponse",
    "SessionListResponse",
    "EndSessionResponse",
    "LeaderboardResponse",
    "PlayerBestResponse",
    "ErrorResponse",
    "HealthResponse",
    # Shared
    "SnapshotInfo",
    "ResultInfo",
    "ScoreEntryInfo",
    # Enums
    "ErrorCode",
    "SessionStatus",
    "MoveName",
    "OutcomeName",
    # Service
    "APIService",
    "create_app",
]
