"""
Session Module - Manages in-process games.

A game in the registry represents one table:
- Created by a host, joined by code
- Holds the canonical game state
- Routes each player's actions through the seat checks and the reducer
- Ends when someone wins or the table empties

Games are EPHEMERAL:
- No persistence to database
- Dropped after a period without activity
"""

from .manager import (
    GameRegistry,
    GameSession,
    GameStatus,
    LobbyPlayer,
    SessionError,
    GameNotFoundError,
    LobbyError,
    CapacityError,
)
from .codes import generate_game_code, is_valid_game_code
from .validator import validate_seat_action

__all__ = [
    "GameRegistry",
    "GameSession",
    "GameStatus",
    "LobbyPlayer",
    "SessionError",
    "GameNotFoundError",
    "LobbyError",
    "CapacityError",
    "generate_game_code",
    "is_valid_game_code",
    "validate_seat_action",
]
