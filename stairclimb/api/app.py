"""
FastAPI Application - REST and WebSocket API for game clients.

Endpoints:
    POST   /api/v1/sessions               Start a session
    GET    /api/v1/sessions               List sessions
    GET    /api/v1/sessions/{id}          Get session snapshot
    DELETE /api/v1/sessions/{id}          Discard session
    POST   /api/v1/sessions/{id}/moves    Apply climb / turn
    POST   /api/v1/sessions/{id}/tick     Apply clock ticks (client-driven clock)
    WS     /api/v1/sessions/{id}/ws       Real-time play with a server-driven clock
    GET    /api/v1/leaderboard            Top scores
    GET    /api/v1/players/{id}/best      A player's best score

Real-time flow (WebSocket):
    1. Client connects and receives the initial state
    2. Server runs the clock (one decay tick per tick interval)
    3. Client sends {"type": "climb"} / {"type": "turn"} per key press
       (or {"type": "key", "key": "ArrowUp"}); "repeat": true events are dropped
    4. Server pushes a state_update after every applied event
       (one live connection per session; REST moves and ticks are refused meanwhile)
    5. On a wrong step or an empty timer the server sends game_over and closes

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Annotated, Optional, Union
import asyncio
import json
import logging
import os

from fastapi import FastAPI, Query, Request, WebSocket, WebSocketDisconnect
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .service import APIService
from .schemas import (
    # Request models
    CreateSessionRequest,
    MoveRequest,
    TickRequest,
    # Response models
    SessionResponse,
    OutcomeResponse,
    SessionListResponse,
    EndSessionResponse,
    LeaderboardResponse,
    PlayerBestResponse,
    ErrorResponse,
    HealthResponse,
    # Enums
    ErrorCode,
)
from .. import __version__
from ..engine_core import GameConfig, MoveType, MoveOutcome
from ..scores import HighScoreStore, default_store_path
from ..session import SessionManager, GameLoop, LoopState, parse_key


logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ErrorCode.SESSION_NOT_FOUND: 404,
    ErrorCode.SESSION_IN_PLAY: 409,
}

# Environment configuration
STAIRCLIMB_ENV = os.getenv("STAIRCLIMB_ENV", "development")
STAIRCLIMB_DATA_DIR = os.getenv("STAIRCLIMB_DATA_DIR", None)
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")


def build_default_service() -> APIService:
    """Service with a file-backed score store (in memory when STAIRCLIMB_ENV=test)."""
    store = HighScoreStore() if STAIRCLIMB_ENV == "test" else HighScoreStore(default_store_path())
    manager = SessionManager(store=store, config=GameConfig.from_env())
    return APIService(session_manager=manager)


def create_app(service: Optional[APIService] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    app = FastAPI(
        title="Stair Climber Engine API",
        description="""
Endless stair-climbing arcade engine.

## Moves

- **climb**: step in the direction the character faces
- **turn**: flip the character, then step

A wrong step or an empty timer ends the session. The final score is
recorded if it beats the player's best.

## Error Codes

| Code | Description |
|------|-------------|
| `SESSION_NOT_FOUND` | Session does not exist |
| `SESSION_IN_PLAY` | Session is being played over a WebSocket |
| `INVALID_MOVE` | Move is not climb or turn |
| `INVALID_COLOR` | Character color is not in the palette |
| `VALIDATION_ERROR` | Request parameters are invalid |
| `INTERNAL_ERROR` | Unexpected server failure |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_service = service or build_default_service()
    app.state.api_service = api_service

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(Exception)
    async def internal_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return make_error_response(ErrorCode.INTERNAL_ERROR, "Internal server error", status_code=500)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        is_move_error = any("move" in [str(part) for part in e.get("loc", ())] for e in errors)
        return make_error_response(
            ErrorCode.INVALID_MOVE if is_move_error else ErrorCode.VALIDATION_ERROR,
            "Invalid move" if is_move_error else "Invalid request",
            status_code=422,
            details={"errors": json.loads(json.dumps(errors, default=str))},
        )

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=SessionResponse,
        responses={400: {"model": ErrorResponse, "description": "Invalid character color"}},
        tags=["Sessions"],
        summary="Start a new session",
    )
    async def create_session(body: CreateSessionRequest) -> Union[SessionResponse, JSONResponse]:
        """
        Start a new session with a freshly generated stair path.

        The timer starts full and the character faces right.
        """
        try:
            return api_service.create_session(body)
        except ValueError as e:
            return make_error_response(ErrorCode.INVALID_COLOR, str(e))

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List sessions",
    )
    async def list_sessions(
        include_ended: Annotated[bool, Query(description="Include finished sessions")] = False,
    ) -> SessionListResponse:
        """List session IDs (active only by default)."""
        sessions = api_service.list_sessions(include_ended=include_ended)
        return SessionListResponse(sessions=sessions, count=len(sessions))

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get session status",
    )
    async def get_session(session_id: str) -> Union[SessionResponse, JSONResponse]:
        """Get the current snapshot of a session."""
        response = api_service.get_session(session_id)
        if isinstance(response, ErrorResponse):
            return make_error_response(response.error_code, response.error, status_code=404)
        return response

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        tags=["Sessions"],
        summary="Discard a session",
    )
    async def end_session(session_id: str) -> EndSessionResponse:
        """Discard a session. An unfinished session's score is not recorded."""
        success = api_service.end_session(session_id)
        return EndSessionResponse(success=success, session_id=session_id)

    # =========================================================================
    # Gameplay Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions/{session_id}/moves",
        response_model=OutcomeResponse,
        responses={
            404: {"model": ErrorResponse, "description": "Session not found"},
            409: {"model": ErrorResponse, "description": "Session is being played over a WebSocket"},
            422: {"model": ErrorResponse, "description": "Invalid move"},
        },
        tags=["Gameplay"],
        summary="Climb or turn",
    )
    async def apply_move(session_id: str, body: MoveRequest) -> Union[OutcomeResponse, JSONResponse]:
        """
        Apply one move.

        **Request Body:**
        ```json
        {"move": "turn"}
        ```
        """
        response = api_service.apply_move(session_id, body)
        if isinstance(response, ErrorResponse):
            status_code = ERROR_STATUS[response.error_code]
            return make_error_response(response.error_code, response.error, status_code=status_code)
        return response

    @app.post(
        "/api/v1/sessions/{session_id}/tick",
        response_model=OutcomeResponse,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Gameplay"],
        summary="Apply clock ticks",
    )
    async def apply_tick(
        session_id: str,
        body: Optional[TickRequest] = None,
    ) -> Union[OutcomeResponse, JSONResponse]:
        """Apply timer decay for clients that drive their own clock."""
        ticks = body.ticks if body else 1
        response = api_service.apply_ticks(session_id, ticks)
        if isinstance(response, ErrorResponse):
            status_code = ERROR_STATUS[response.error_code]
            return make_error_response(response.error_code, response.error, status_code=status_code)
        return response

    # =========================================================================
    # Leaderboard Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/leaderboard",
        response_model=LeaderboardResponse,
        tags=["Scores"],
        summary="Top scores",
    )
    async def leaderboard(
        limit: Annotated[int, Query(ge=1, le=100, description="Number of entries")] = 20,
    ) -> LeaderboardResponse:
        """Best score per player, highest first."""
        return api_service.leaderboard(limit)

    @app.get(
        "/api/v1/players/{player_id}/best",
        response_model=PlayerBestResponse,
        tags=["Scores"],
        summary="A player's best score",
    )
    async def player_best(player_id: str) -> PlayerBestResponse:
        return api_service.player_best(player_id)

    # =========================================================================
    # WebSocket Endpoint
    # =========================================================================

    @app.websocket("/api/v1/sessions/{session_id}/ws")
    async def play_websocket(websocket: WebSocket, session_id: str):
        """
        WebSocket for real-time play.

        Messages from server:
        - state_update: An input or tick was applied (payload: OutcomeResponse)
        - game_over: Session ended (payload: SessionResponse)
        - pong: Reply to ping
        - error: Bad message

        Messages from client:
        - climb / turn: A move ("repeat": true is dropped)
        - key: A raw key name, mapped with the default bindings
        - ping: Keep-alive
        """
        await websocket.accept()

        session = api_service.session_manager.get_session(session_id)
        if session is None:
            await websocket.send_json({
                "type": "error",
                "payload": {"error_code": ErrorCode.SESSION_NOT_FOUND.value,
                            "message": f"Session {session_id} not found"},
            })
            await websocket.close(code=4404)
            return

        if session.loop is not None:
            await websocket.send_json({
                "type": "error",
                "payload": {"error_code": ErrorCode.SESSION_IN_PLAY.value,
                            "message": f"Session {session_id} is already being played"},
            })
            await websocket.close(code=4409)
            return

        # Claim before the first await
        loop = GameLoop(session)
        session.attach_loop(loop)
        try:
            await _play(websocket, session, loop)
        finally:
            session.detach_loop(loop)

    async def _play(websocket: WebSocket, session, loop: GameLoop):
        await websocket.send_json({
            "type": "state_update",
            "payload": api_service.session_to_response(session).model_dump(mode="json"),
        })

        if not session.is_active():
            await _send_game_over(websocket, session)
            await websocket.close()
            return

        async def push(outcome: MoveOutcome):
            await websocket.send_json({
                "type": "state_update",
                "payload": api_service.outcome_to_response(session, outcome).model_dump(mode="json"),
            })

        unsubscribe = session.subscribe(push)
        runner = asyncio.create_task(loop.run())
        disconnected = False

        try:
            while not runner.done():
                receive = asyncio.create_task(websocket.receive_text())
                done, _ = await asyncio.wait({receive, runner}, return_when=asyncio.FIRST_COMPLETED)
                if receive not in done:
                    receive.cancel()
                    break
                try:
                    data = receive.result()
                except WebSocketDisconnect:
                    disconnected = True
                    break
                await _handle_client_message(websocket, loop, data)
        finally:
            if not runner.done():
                loop.stop()
            state = await runner
            await session.drain()
            unsubscribe()

        if not disconnected and state == LoopState.GAME_OVER:
            await _send_game_over(websocket, session)
            await websocket.close()

    async def _handle_client_message(websocket: WebSocket, loop: GameLoop, data: str):
        try:
            message = json.loads(data)
        except json.JSONDecodeError:
            await websocket.send_json({"type": "error", "payload": {"message": "Invalid JSON"}})
            return
        if not isinstance(message, dict):
            await websocket.send_json({"type": "error", "payload": {"message": "Expected an object"}})
            return

        kind = message.get("type")
        repeat = bool(message.get("repeat", False))
        if kind == "ping":
            await websocket.send_json({"type": "pong"})
            return

        move = None
        if kind == "key":
            move = parse_key(str(message.get("key", "")))
            if move is None:
                return  # Unbound keys are ignored
        else:
            try:
                move = MoveType.parse(str(kind))
            except ValueError as e:
                await websocket.send_json({
                    "type": "error",
                    "payload": {"error_code": ErrorCode.INVALID_MOVE.value, "message": str(e)},
                })
                return
        loop.submit(move, repeat=repeat)

    async def _send_game_over(websocket: WebSocket, session):
        await websocket.send_json({
            "type": "game_over",
            "payload": api_service.session_to_response(session).model_dump(mode="json"),
        })

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="stairclimb-engine",
            version=__version__,
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Stair Climber Engine API",
            "version": __version__,
            "docs": "/api/docs",
            "health": "/health",
        }

    return app


# For running directly: uvicorn stairclimb.api.app:app
app = create_app()
