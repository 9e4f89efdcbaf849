"""
FastAPI Application - REST API for table clients.

Endpoints:
    POST   /api/v1/games                       Create a game (lobby)
    GET    /api/v1/games/{code}                Lobby status by join code
    POST   /api/v1/games/{code}/join           Join a lobby
    POST   /api/v1/games/{code}/start          Start the game (host only)
    GET    /api/v1/games/{id}/state            Get game state
    POST   /api/v1/games/{id}/actions          Submit a player action
    DELETE /api/v1/games/{id}/players/{pid}    Leave / disconnect
    GET    /api/v1/phases                      Round structure and action whitelist

Action Flow:
    1. The client sends POST /actions with its player_id and the action
    2. The registry checks the seat may send it (buyer, current player, ...)
    3. The engine validates and applies it, running every automatic phase
    4. The response carries the new state as seen from the sender's seat

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Optional, Union
import logging
import os

# Environment configuration
OFFERUP_ENV = os.getenv("OFFERUP_ENV", "development")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")
OFFERUP_MAX_GAMES = int(os.getenv("OFFERUP_MAX_GAMES", "10"))
OFFERUP_STALE_GAME_SECONDS = int(os.getenv("OFFERUP_STALE_GAME_SECONDS", "1800"))
OFFERUP_LOG_LEVEL = os.getenv("OFFERUP_LOG_LEVEL", "INFO")

logger = logging.getLogger(__name__)


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI, Query
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from .service import APIService
    from .schemas import (
        # Request models
        CreateGameRequest,
        JoinGameRequest,
        StartGameRequest,
        ActionRequest,
        # Response models
        ActionResponse,
        ErrorResponse,
        GameStateResponse,
        HealthResponse,
        JoinResponse,
        LeaveResponse,
        LobbyResponse,
        PhaseListResponse,
        StatsResponse,
        # Enums
        ErrorCode,
    )
    from ..session import GameRegistry, GameNotFoundError, LobbyError, CapacityError, SessionError
    from .. import __version__

    app = FastAPI(
        title="Offer Up Engine API",
        description="""
Rules engine for Offer Up, a trading and bluffing card game for 3-6 players.

## Playing a game

1. `POST /api/v1/games` opens a lobby and returns a six-character join code
2. Other players `POST /api/v1/games/{code}/join`
3. The host calls `POST /api/v1/games/{code}/start`
4. Everyone submits actions to `POST /api/v1/games/{id}/actions`

## Error Codes

| Code | Description |
|------|-------------|
| `PHASE_VIOLATION` | Action not allowed in the current phase |
| `CONFIGURATION_VIOLATION` | Player count or names rejected |
| `IDENTIFIER_VIOLATION` | Unknown player, offer or card |
| `CARDINALITY_VIOLATION` | Wrong number of cards or index out of range |
| `BUSINESS_RULE_VIOLATION` | Action breaks a game rule |
| `NOT_PERMITTED` | This seat may not send this action |
| `GAME_OVER` | A winner has been declared |
| `GAME_NOT_FOUND` | Game does not exist |
| `LOBBY_ERROR` | Join or start refused |
| `CAPACITY_EXCEEDED` | Too many games running |
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

    # Service instance
    api_service = service or APIService(
        registry=GameRegistry(
            max_games=OFFERUP_MAX_GAMES,
            stale_after_seconds=OFFERUP_STALE_GAME_SECONDS,
        )
    )

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

    def session_error_response(error: SessionError) -> JSONResponse:
        if isinstance(error, GameNotFoundError):
            return make_error_response(ErrorCode.GAME_NOT_FOUND, str(error), status_code=404)
        if isinstance(error, CapacityError):
            return make_error_response(ErrorCode.CAPACITY_EXCEEDED, str(error), status_code=503)
        return make_error_response(ErrorCode.LOBBY_ERROR, str(error), status_code=409)

    # =========================================================================
    # Lobby Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/games",
        response_model=JoinResponse,
        responses={503: {"model": ErrorResponse, "description": "Server at capacity"}},
        tags=["Lobby"],
        summary="Create a new game",
    )
    async def create_game(request: CreateGameRequest) -> Union[JoinResponse, JSONResponse]:
        """Open a lobby. The host is seated and receives the join code."""
        try:
            return api_service.create_game(request.host_name)
        except SessionError as e:
            return session_error_response(e)

    @app.get(
        "/api/v1/games/{game_code}",
        response_model=LobbyResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Lobby"],
        summary="Get lobby status",
    )
    async def get_lobby(game_code: str) -> Union[LobbyResponse, JSONResponse]:
        try:
            return api_service.get_lobby(game_code)
        except SessionError as e:
            return session_error_response(e)

    @app.post(
        "/api/v1/games/{game_code}/join",
        response_model=JoinResponse,
        responses={
            404: {"model": ErrorResponse},
            409: {"model": ErrorResponse, "description": "Full, started, or name taken"},
        },
        tags=["Lobby"],
        summary="Join a game by code",
    )
    async def join_game(game_code: str, request: JoinGameRequest) -> Union[JoinResponse, JSONResponse]:
        try:
            return api_service.join_game(game_code, request.player_name)
        except SessionError as e:
            return session_error_response(e)

    @app.post(
        "/api/v1/games/{game_code}/start",
        response_model=GameStateResponse,
        responses={
            404: {"model": ErrorResponse},
            409: {"model": ErrorResponse, "description": "Not the host, or too few players"},
        },
        tags=["Lobby"],
        summary="Start the game",
    )
    async def start_game(game_code: str, request: StartGameRequest) -> Union[GameStateResponse, JSONResponse]:
        """Seat everyone in join order, pick a buyer and deal the first round."""
        try:
            return api_service.start_game(game_code, request.player_id, seed=request.seed)
        except SessionError as e:
            return session_error_response(e)

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/games/{game_id}/state",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Get game state",
    )
    async def get_game_state(
        game_id: str,
        player_id: Optional[str] = Query(default=None, description="View the table from this player's seat; omit for the public view"),
    ) -> Union[GameStateResponse, JSONResponse]:
        try:
            return api_service.get_state(game_id, player_id)
        except SessionError as e:
            return session_error_response(e)

    @app.post(
        "/api/v1/games/{game_id}/actions",
        response_model=ActionResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Action rejected by the rules"},
            403: {"model": ErrorResponse, "description": "Seat may not send this action"},
            404: {"model": ErrorResponse},
        },
        tags=["Game"],
        summary="Submit a player action",
    )
    async def submit_action(game_id: str, request: ActionRequest) -> Union[ActionResponse, JSONResponse]:
        try:
            result, response = api_service.submit_action(game_id, request)
        except SessionError as e:
            return session_error_response(e)

        if response is None:
            code = ErrorCode(result.error_code) if result.error_code else ErrorCode.INTERNAL_ERROR
            status = 403 if code == ErrorCode.NOT_PERMITTED else 400
            return make_error_response(code, result.error or "Action rejected", status_code=status)
        return response

    @app.delete(
        "/api/v1/games/{game_id}/players/{player_id}",
        response_model=LeaveResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Leave a game",
    )
    async def leave_game(game_id: str, player_id: str) -> Union[LeaveResponse, JSONResponse]:
        try:
            ended = api_service.leave_game(game_id, player_id)
        except SessionError as e:
            return session_error_response(e)
        return LeaveResponse(success=True, game_ended=ended)

    @app.post(
        "/api/v1/games/{game_id}/players/{player_id}/reconnect",
        response_model=JoinResponse,
        responses={
            404: {"model": ErrorResponse},
            409: {"model": ErrorResponse, "description": "Player is not seated in this game"},
        },
        tags=["Game"],
        summary="Reconnect to a game",
    )
    async def reconnect(game_id: str, player_id: str) -> Union[JoinResponse, JSONResponse]:
        """Take a seat back after a dropped connection."""
        try:
            return api_service.rejoin_game(game_id, player_id)
        except SessionError as e:
            return session_error_response(e)

    @app.get(
        "/api/v1/phases",
        response_model=PhaseListResponse,
        tags=["Game"],
        summary="List the phases of a round",
    )
    async def list_phases() -> PhaseListResponse:
        return api_service.phases()

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
            service="offerup-engine",
            version=__version__,
            active_games=len(api_service.registry.list_active_games()),
        )

    @app.get(
        "/api/v1/stats",
        response_model=StatsResponse,
        tags=["System"],
        summary="Registry statistics",
    )
    async def get_stats() -> StatsResponse:
        return api_service.stats()

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Offer Up Engine API",
            "version": __version__,
            "environment": OFFERUP_ENV,
            "docs": "/api/docs",
            "health": "/health",
        }

    logger.debug("Created app (env=%s, max_games=%d)", OFFERUP_ENV, OFFERUP_MAX_GAMES)
    return app


# For running directly: uvicorn offerup.api.app:app
app = create_app()
