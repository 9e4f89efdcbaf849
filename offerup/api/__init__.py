"""
API Module - Table client interface.

Exposes the engine via REST API. A client:
1. Creates or joins a game by code
2. Starts the game (host)
3. Polls the state from its own seat
4. Submits actions when it is its turn to decide

All state is game-scoped. No persistent user accounts required.
"""

from .schemas import (
    # Requests
    CreateGameRequest,
    JoinGameRequest,
    StartGameRequest,
    ActionRequest,
    # Responses
    ActionResponse,
    ErrorResponse,
    GameStateResponse,
    JoinResponse,
    LobbyResponse,
    PhaseListResponse,
    StatsResponse,
    # Shared
    CardInfo,
    OfferCardInfo,
    PlayerInfo,
    EffectInfo,
    ErrorCode,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "CreateGameRequest",
    "JoinGameRequest",
    "StartGameRequest",
    "ActionRequest",
    # Responses
    "ActionResponse",
    "ErrorResponse",
    "GameStateResponse",
    "JoinResponse",
    "LobbyResponse",
    "PhaseListResponse",
    "StatsResponse",
    # Shared
    "CardInfo",
    "OfferCardInfo",
    "PlayerInfo",
    "EffectInfo",
    "ErrorCode",
    # Service
    "APIService",
    "create_app",
]
