"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between table clients and the engine.
All responses include explicit types for OpenAPI schema generation.

Error Codes:
- PHASE_VIOLATION: Action is not allowed in the current phase
- CONFIGURATION_VIOLATION: Player count or names rejected
- IDENTIFIER_VIOLATION: Unknown player, offer or card
- CARDINALITY_VIOLATION: Wrong number of cards or index out of range
- BUSINESS_RULE_VIOLATION: Action breaks a game rule
- NOT_PERMITTED: This seat may not send this action
- GAME_OVER: A winner has been declared
- GAME_NOT_FOUND: Game does not exist or has expired
- LOBBY_ERROR: Join or start request refused
- CAPACITY_EXCEEDED: Too many games running
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field

from ..engine_core.action import ActionType, GotchaChoice
from ..engine_core.state import MIN_PLAYERS, MAX_PLAYERS


# =============================================================================
# Enums
# =============================================================================

class GameStatusValue(str, Enum):
    """Registry status values."""
    LOBBY = "lobby"
    PLAYING = "playing"
    FINISHED = "finished"
    ABANDONED = "abandoned"


class ErrorCode(str, Enum):
    """Structured error codes."""
    PHASE_VIOLATION = "PHASE_VIOLATION"
    CONFIGURATION_VIOLATION = "CONFIGURATION_VIOLATION"
    IDENTIFIER_VIOLATION = "IDENTIFIER_VIOLATION"
    CARDINALITY_VIOLATION = "CARDINALITY_VIOLATION"
    BUSINESS_RULE_VIOLATION = "BUSINESS_RULE_VIOLATION"
    NOT_PERMITTED = "NOT_PERMITTED"
    GAME_OVER = "GAME_OVER"
    GAME_NOT_FOUND = "GAME_NOT_FOUND"
    LOBBY_ERROR = "LOBBY_ERROR"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class CardInfo(BaseModel):
    """Card information for display."""
    id: str
    type: str = Field(description="thing, gotcha or action")
    subtype: str
    name: str
    set_size: int
    effect: Optional[str] = None

    model_config = {"from_attributes": True}


class OfferCardInfo(BaseModel):
    """One slot of an offer. card is hidden for face-down cards of other players."""
    position: int
    face_up: bool
    card: Optional[CardInfo] = None


class PlayerInfo(BaseModel):
    """Player information for display."""
    id: int
    name: str
    points: int = 0
    has_money: bool = False
    is_buyer: bool = False
    is_current: bool = False
    done: bool = False
    hand_count: int = 0
    hand: Optional[list[CardInfo]] = Field(
        default=None, description="Only present for the viewer's own seat or the table view"
    )
    offer: list[OfferCardInfo] = Field(default_factory=list)
    collection: list[CardInfo] = Field(default_factory=list)


class EffectInfo(BaseModel):
    """The interactive effect waiting for input."""
    kind: str = Field(description="gotcha, flip_one, add_one, remove_one, remove_two, steal_a_point")
    player_id: Optional[int] = Field(default=None, description="Seat expected to respond")
    details: dict[str, Any] = Field(default_factory=dict)


class LobbyPlayerInfo(BaseModel):
    """A person in the lobby."""
    player_id: str
    name: str
    seat: Optional[int] = None
    connected: bool = True
    is_host: bool = False


# =============================================================================
# Request Models
# =============================================================================

class CreateGameRequest(BaseModel):
    """Request to open a new lobby."""
    host_name: str = Field(..., min_length=1, max_length=20, description="Display name for the host")


class JoinGameRequest(BaseModel):
    """Request to join a lobby by code."""
    player_name: str = Field(..., min_length=1, max_length=20)


class StartGameRequest(BaseModel):
    """Request to start the game (host only)."""
    player_id: str = Field(..., description="The host's player id")
    seed: Optional[int] = Field(default=None, description="Fix shuffles for a reproducible game")


class ActionRequest(BaseModel):
    """
    A player action.

    Seat-specific fields (the acting player, the buyer) are filled in
    from player_id; only the targets of the action are sent.
    """
    player_id: str = Field(..., description="Lobby id of the sending player")
    action_type: ActionType
    card_id: Optional[str] = None
    card_ids: Optional[list[str]] = Field(default=None, description="PLACE_OFFER: three hand card ids")
    face_up_index: Optional[int] = Field(default=None, description="PLACE_OFFER: 0, 1 or 2")
    offer_id: Optional[int] = Field(default=None, description="Seat whose offer is targeted")
    card_index: Optional[int] = None
    seller_id: Optional[int] = Field(default=None, description="SELECT_OFFER: seat of the chosen seller")
    target_player_id: Optional[int] = Field(
        default=None, description="Steal target, or the seat to view for CHANGE_PERSPECTIVE"
    )
    gotcha_choice: Optional[GotchaChoice] = None


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    error_code: ErrorCode
    details: Optional[dict[str, Any]] = None


class LobbyResponse(BaseModel):
    """Lobby status for a game."""
    game_id: str
    game_code: str
    status: GameStatusValue
    host_player_id: str
    players: list[LobbyPlayerInfo]
    can_start: bool
    min_players: int = MIN_PLAYERS
    max_players: int = MAX_PLAYERS


class JoinResponse(BaseModel):
    """Returned to whoever created or joined a game."""
    game_id: str
    game_code: str
    player_id: str
    lobby: LobbyResponse


class GameStateResponse(BaseModel):
    """Table state, as seen from one seat or from above."""
    game_id: str
    status: GameStatusValue
    round: int
    phase: str
    phase_instructions: str
    current_player_index: int
    current_buyer_index: int
    next_buyer_index: int
    winner: Optional[int] = None
    players: list[PlayerInfo]
    draw_pile_count: int
    discard_pile_count: int
    pending_effect: Optional[EffectInfo] = None
    previous_round_summary: Optional[str] = None
    selected_perspective: int = 0
    auto_follow_perspective: bool = True
    allowed_actions: list[str] = Field(default_factory=list)
    recent_changes: list[str] = Field(default_factory=list)


class ActionResponse(BaseModel):
    """Result of an accepted action."""
    success: bool
    state_changes: list[str] = Field(default_factory=list)
    state: GameStateResponse


class LeaveResponse(BaseModel):
    success: bool
    game_ended: bool = False


class PhaseInfo(BaseModel):
    phase: str
    instructions: str
    allowed_actions: list[str]


class PhaseListResponse(BaseModel):
    """The round structure, for clients that gray out controls."""
    phases: list[PhaseInfo]


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    service: str = "offerup-engine"
    version: str = "0.1.0"
    active_games: int = 0


class StatsResponse(BaseModel):
    """Registry counts, by game status."""
    total_games: int = 0
    total_players: int = 0
    lobby: int = 0
    playing: int = 0
    finished: int = 0
    abandoned: int = 0
