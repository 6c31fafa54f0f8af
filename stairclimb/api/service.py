"""
API Service - Business logic layer between the API and the engine.

The service:
1. Translates API requests to engine calls
2. Manages sessions
3. Publishes outcomes to session subscribers
4. Formats responses for the client

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field

from .schemas import (
    # Requests
    CreateSessionRequest,
    MoveRequest,
    # Responses
    SessionResponse,
    OutcomeResponse,
    LeaderboardResponse,
    PlayerBestResponse,
    ErrorResponse,
    # Shared
    SnapshotInfo,
    ResultInfo,
    ScoreEntryInfo,
    # Enums
    SessionStatus,
    MoveName,
    OutcomeName,
    DirectionName,
    ErrorCode,
)
from ..engine_core import MoveType, MoveOutcome, RenderSnapshot, SessionResult
from ..scores import PlayerProfile, ScoreEntry, DEFAULT_LEADERBOARD_SIZE
from ..session import SessionManager, Session, cue_for


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()

        # Start playing
        session = service.create_session(CreateSessionRequest(player_id="p1"))

        # Inputs and clock
        service.apply_move(session.session_id, MoveRequest(move="climb"))
        service.apply_ticks(session.session_id, 1)
    """
    session_manager: SessionManager = field(default_factory=SessionManager)

    def create_session(self, request: CreateSessionRequest) -> SessionResponse:
        """
        Start a new session.

        Raises ValueError for a color outside the palette.
        """
        player = PlayerProfile(
            player_id=request.player_id,
            display_name=request.display_name,
            email=request.email,
        )
        session = self.session_manager.create_session(
            player=player,
            character_color=request.character_color,
        )
        return self.session_to_response(session)

    def get_session(self, session_id: str) -> SessionResponse | ErrorResponse:
        """Get session status and the current snapshot."""
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)
        return self.session_to_response(session)

    def apply_move(self, session_id: str, request: MoveRequest) -> OutcomeResponse | ErrorResponse:
        """
        Apply a climb or turn.

        Moves on an ended session come back as 'ignored', not as errors.
        Refused with SESSION_IN_PLAY while a WebSocket loop owns the session.
        """
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)
        if session.loop is not None:
            return self._in_play(session_id)

        move = MoveType(request.move.value)
        outcome = session.engine.apply_input(move)
        session.publish(outcome)
        return self.outcome_to_response(session, outcome)

    def apply_ticks(self, session_id: str, ticks: int = 1) -> OutcomeResponse | ErrorResponse:
        """Apply clock decay for a client-driven clock."""
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)
        if session.loop is not None:
            return self._in_play(session_id)

        outcome = session.engine.apply_decay(ticks)
        session.publish(outcome)
        return self.outcome_to_response(session, outcome)

    def end_session(self, session_id: str) -> bool:
        """Discard a session."""
        return self.session_manager.end_session(session_id)

    def list_sessions(self, include_ended: bool = False) -> list[str]:
        """List session IDs."""
        if include_ended:
            return self.session_manager.list_sessions()
        return self.session_manager.list_active_sessions()

    def leaderboard(self, limit: int = DEFAULT_LEADERBOARD_SIZE) -> LeaderboardResponse:
        """Top scores, highest first."""
        entries = [
            self._entry_info(entry, rank)
            for rank, entry in enumerate(self.session_manager.store.top(limit), start=1)
        ]
        return LeaderboardResponse(entries=entries, count=len(entries))

    def player_best(self, player_id: str) -> PlayerBestResponse:
        """A player's best score and its rank."""
        entry = self.session_manager.store.best_for(player_id)
        if entry is None:
            return PlayerBestResponse(player_id=player_id)

        ranked = self.session_manager.store.top(len(self.session_manager.store))
        rank = next(
            (i for i, e in enumerate(ranked, start=1) if e.player_id == player_id),
            len(ranked),
        )
        return PlayerBestResponse(player_id=player_id, best=self._entry_info(entry, rank))

    # =========================================================================
    # Conversion helpers
    # =========================================================================

    def session_to_response(self, session: Session) -> SessionResponse:
        """Convert Session to SessionResponse."""
        engine = session.engine
        return SessionResponse(
            session_id=session.session_id,
            status=SessionStatus.ENDED if engine.is_ended else SessionStatus.ACTIVE,
            player_id=session.player.player_id,
            display_name=session.player.label,
            character_color=session.character_color,
            snapshot=self.snapshot_info(engine.snapshot()),
            result=self.result_info(engine.result) if engine.result else None,
            created_at=session.created_at,
        )

    def outcome_to_response(self, session: Session, outcome: MoveOutcome) -> OutcomeResponse:
        """Convert MoveOutcome to OutcomeResponse."""
        cue = cue_for(outcome)
        return OutcomeResponse(
            session_id=session.session_id,
            outcome=OutcomeName(outcome.kind.value),
            move=MoveName(outcome.move.value) if outcome.move else None,
            cue=cue.value if cue else None,
            snapshot=self.snapshot_info(outcome.snapshot),
            result=self.result_info(outcome.result) if outcome.result else None,
        )

    @staticmethod
    def snapshot_info(snapshot: RenderSnapshot) -> SnapshotInfo:
        return SnapshotInfo(
            facing=DirectionName(snapshot.facing.value),
            score=snapshot.score,
            timer=snapshot.timer,
            visible_path=[DirectionName(d.value) for d in snapshot.visible_path],
            history=[DirectionName(d.value) for d in snapshot.history],
            is_ended=snapshot.is_ended,
        )

    @staticmethod
    def result_info(result: SessionResult) -> ResultInfo:
        return ResultInfo(
            final_score=result.final_score,
            character_color=result.cosmetic_tag,
            end_reason=result.end_reason.value if result.end_reason else None,
        )

    @staticmethod
    def _entry_info(entry: ScoreEntry, rank: int) -> ScoreEntryInfo:
        return ScoreEntryInfo(
            rank=rank,
            player_id=entry.player_id,
            display_name=entry.display_name,
            score=entry.score,
            character_color=entry.character_color,
            timestamp=entry.timestamp,
        )

    @staticmethod
    def _not_found(session_id: str) -> ErrorResponse:
        return ErrorResponse(
            error=f"Session {session_id} not found",
            error_code=ErrorCode.SESSION_NOT_FOUND,
        )

    @staticmethod
    def _in_play(session_id: str) -> ErrorResponse:
        return ErrorResponse(
            error=f"Session {session_id} is driven by a live game loop",
            error_code=ErrorCode.SESSION_IN_PLAY,
        )

