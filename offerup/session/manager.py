"""
Game Registry - Creates and manages games in process.

LIFECYCLE:
1. Host creates a game → registry issues a game id and a join code
2. Players join by code while the game is in the lobby (3-6 seats)
3. Host starts the game → START_GAME seats everyone in join order
4. During play:
   - A connected player sends an action
   - Registry checks the seat is allowed to send it
   - Reducer validates and applies it against the canonical state
5. A winner finishes the game; too many disconnections abandon it
6. Stale games are cleaned up after a period without activity

PERSISTENCE RULES:
- NO database; every game lives in memory only
- Each game holds its own GameState value, referenced by id
- Actions for one game are applied one at a time, in arrival order
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable
import logging
import random
import time
import uuid

from ..engine_core.state import GameState, GamePhase, MIN_PLAYERS, MAX_PLAYERS
from ..engine_core.action import Action, ActionResult
from ..engine_core.reducer import Reducer, create_initial_state
from .codes import generate_game_code, is_valid_game_code
from .validator import validate_seat_action


logger = logging.getLogger(__name__)

MAX_LOBBY_NAME_LENGTH = 20
DEFAULT_MAX_GAMES = 10
DEFAULT_STALE_SECONDS = 30 * 60

NOT_PERMITTED = "NOT_PERMITTED"


class GameStatus(Enum):
    """State of a game in the registry."""
    LOBBY = "lobby"  # Waiting for players
    PLAYING = "playing"  # Game in progress
    FINISHED = "finished"  # Winner declared
    ABANDONED = "abandoned"  # Too few players left, or stale


class SessionError(Exception):
    """Base class for registry errors."""


class GameNotFoundError(SessionError):
    pass


class LobbyError(SessionError):
    """Join or start request that the lobby cannot accept."""


class CapacityError(SessionError):
    pass


@dataclass
class LobbyPlayer:
    """A connected person, and the seat they hold once the game starts."""
    player_id: str
    name: str
    joined_at: float
    seat: int | None = None
    connected: bool = True
    last_seen: float = 0.0


@dataclass
class GameSession:
    """
    One game in the registry.

    Contains:
    - Lobby membership and the host
    - The canonical GameState
    - Recent state changes for clients to display
    """
    game_id: str
    game_code: str
    host_player_id: str
    created_at: float
    last_activity: float

    status: GameStatus = GameStatus.LOBBY
    players: list[LobbyPlayer] = field(default_factory=list)
    game_state: GameState = field(default_factory=create_initial_state)
    recent_changes: list[str] = field(default_factory=list)

    def is_active(self) -> bool:
        return self.status in {GameStatus.LOBBY, GameStatus.PLAYING}

    def get_player(self, player_id: str) -> LobbyPlayer | None:
        for p in self.players:
            if p.player_id == player_id:
                return p
        return None

    def connected_players(self) -> list[LobbyPlayer]:
        return [p for p in self.players if p.connected]

    @property
    def can_start(self) -> bool:
        return self.status == GameStatus.LOBBY and len(self.players) >= MIN_PLAYERS


class GameRegistry:
    """
    Manages games.

    Responsibilities:
    - Create games and hand out join codes
    - Seat players and start games
    - Route player actions to the reducer
    - Track connections and clean up stale games

    No persistence - games are in-memory only.
    """

    def __init__(
        self,
        max_games: int = DEFAULT_MAX_GAMES,
        stale_after_seconds: float = DEFAULT_STALE_SECONDS,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.max_games = max_games
        self.stale_after_seconds = stale_after_seconds
        self._rng = rng or random.Random()
        self._clock = clock
        self._games: dict[str, GameSession] = {}
        self._codes: dict[str, str] = {}

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_game(self, game_id: str) -> GameSession:
        game = self._games.get(game_id)
        if game is None:
            raise GameNotFoundError(f"Game {game_id} not found")
        return game

    def get_game_by_code(self, game_code: str) -> GameSession:
        code = (game_code or "").upper()
        if not is_valid_game_code(code) or code not in self._codes:
            raise GameNotFoundError(f"Game {game_code} not found")
        return self._games[self._codes[code]]

    def list_active_games(self) -> list[GameSession]:
        return [g for g in self._games.values() if g.is_active()]

    # ------------------------------------------------------------------
    # Lobby
    # ------------------------------------------------------------------

    def create_game(self, host_name: str) -> tuple[GameSession, LobbyPlayer]:
        """Open a new lobby with the host already seated."""
        name = self._check_name(host_name)
        if len(self.list_active_games()) >= self.max_games:
            self.cleanup_stale_games()
        if len(self.list_active_games()) >= self.max_games:
            raise CapacityError("Server is at capacity, try again later")

        now = self._clock()
        code = self._new_code()
        host = LobbyPlayer(player_id=str(uuid.uuid4()), name=name, joined_at=now, last_seen=now)
        game = GameSession(
            game_id=str(uuid.uuid4()),
            game_code=code,
            host_player_id=host.player_id,
            created_at=now,
            last_activity=now,
            players=[host],
        )
        self._games[game.game_id] = game
        self._codes[code] = game.game_id
        logger.info("Created game %s (%s) hosted by %s", game.game_id, code, name)
        return game, host

    def join_game(self, game_code: str, player_name: str) -> tuple[GameSession, LobbyPlayer]:
        game = self.get_game_by_code(game_code)
        name = self._check_name(player_name)
        if game.status != GameStatus.LOBBY:
            raise LobbyError("Game has already started")
        if len(game.players) >= MAX_PLAYERS:
            raise LobbyError("Game is full")
        if any(p.name.lower() == name.lower() for p in game.players):
            raise LobbyError("Player name already taken")

        now = self._clock()
        player = LobbyPlayer(player_id=str(uuid.uuid4()), name=name, joined_at=now, last_seen=now)
        game.players.append(player)
        game.last_activity = now
        logger.info("%s joined game %s", name, game.game_code)
        return game, player

    def start_game(self, game_code: str, host_player_id: str, seed: int | None = None) -> GameSession:
        """Seat the lobby in join order and deal the first round."""
        game = self.get_game_by_code(game_code)
        if game.host_player_id != host_player_id:
            raise LobbyError("Only the host can start the game")
        if game.status != GameStatus.LOBBY:
            raise LobbyError("Game has already started")
        if len(game.players) < MIN_PLAYERS:
            raise LobbyError(f"Need at least {MIN_PLAYERS} players to start")

        action = Action.start_game([p.name for p in game.players], seed=seed)
        result = Reducer(rng=self._rng).apply(game.game_state, action)
        if not result.success:
            raise LobbyError(result.error)

        for seat, player in enumerate(game.players):
            player.seat = seat
        game.game_state = result.new_state
        game.recent_changes = result.state_changes
        game.status = GameStatus.PLAYING
        game.last_activity = self._clock()
        logger.info("Started game %s with %d players", game.game_code, len(game.players))
        return game

    # ------------------------------------------------------------------
    # Play
    # ------------------------------------------------------------------

    def process_action(self, game_id: str, player_id: str, action: Action) -> ActionResult:
        """
        Apply an action sent by a connected player.

        Returns ActionResult; the stored state only changes on success.
        """
        game = self.get_game(game_id)
        if game.status != GameStatus.PLAYING:
            return ActionResult.failure("Game is not in playing state", error_code=NOT_PERMITTED)
        player = game.get_player(player_id)
        if player is None or player.seat is None:
            return ActionResult.failure("Player not found in game", error_code=NOT_PERMITTED)

        error = validate_seat_action(
            game.game_state,
            player.seat,
            action,
            is_host=player_id == game.host_player_id,
        )
        if error:
            logger.debug("Rejected %s from %s: %s", action.action_type.name, player.name, error)
            return ActionResult.failure(error, error_code=NOT_PERMITTED)

        result = Reducer(rng=self._rng).apply(game.game_state, action)
        now = self._clock()
        player.last_seen = now
        if not result.success:
            logger.debug("Rejected %s from %s: %s", action.action_type.name, player.name, result.error)
            return result

        game.game_state = result.new_state
        game.recent_changes = result.state_changes
        game.last_activity = now
        if game.game_state.winner is not None:
            game.status = GameStatus.FINISHED
            winner = game.game_state.players[game.game_state.winner]
            logger.info("Game %s finished, %s wins", game.game_code, winner.name)
        return result

    def disconnect(self, game_id: str, player_id: str) -> bool:
        """
        Handle a player leaving.

        In the lobby the player is removed and the host role moves on.
        During play the seat stays, but the player no longer blocks the
        action phase. Returns True when the game ended as a result.
        """
        game = self.get_game(game_id)
        player = game.get_player(player_id)
        if player is None:
            raise LobbyError("Player not found in game")
        player.connected = False
        player.last_seen = self._clock()

        if game.status == GameStatus.LOBBY:
            game.players.remove(player)
            if game.host_player_id == player_id and game.players:
                game.host_player_id = game.players[0].player_id
            if not game.players:
                game.status = GameStatus.ABANDONED
                logger.info("Game %s abandoned: lobby empty", game.game_code)
                return True
            return False

        if game.status != GameStatus.PLAYING:
            return False

        if len(game.connected_players()) < MIN_PLAYERS:
            game.status = GameStatus.ABANDONED
            logger.info("Game %s abandoned: too few players connected", game.game_code)
            return True

        state = game.game_state
        if state.current_phase == GamePhase.ACTION_PHASE and state.pending_effect is None:
            if state.current_player_index == player.seat:
                result = Reducer(rng=self._rng).apply(state, Action.declare_done(player.seat))
                if result.success:
                    game.game_state = result.new_state
                    game.recent_changes = result.state_changes
            elif player.seat < len(state.action_phase_done):
                new_state = state.clone()
                new_state.action_phase_done[player.seat] = True
                game.game_state = new_state
        return False

    def reconnect(self, game_id: str, player_id: str) -> LobbyPlayer:
        game = self.get_game(game_id)
        player = game.get_player(player_id)
        if player is None:
            raise LobbyError("Player not found in game")
        player.connected = True
        player.last_seen = self._clock()
        return player

    # ------------------------------------------------------------------
    # Housekeeping
    # ------------------------------------------------------------------

    def remove_game(self, game_id: str) -> bool:
        game = self._games.pop(game_id, None)
        if game is None:
            return False
        self._codes.pop(game.game_code, None)
        return True

    def cleanup_stale_games(self) -> int:
        """
        Drop games without activity for stale_after_seconds.

        Finished and abandoned games are dropped on the same schedule.
        """
        now = self._clock()
        stale = [
            g.game_id for g in self._games.values()
            if now - g.last_activity > self.stale_after_seconds
        ]
        for game_id in stale:
            self._games[game_id].status = GameStatus.ABANDONED
            self.remove_game(game_id)
        if stale:
            logger.info("Cleaned up %d stale game(s)", len(stale))
        return len(stale)

    def stats(self) -> dict[str, int]:
        counts = {status.value: 0 for status in GameStatus}
        for game in self._games.values():
            counts[game.status.value] += 1
        return {
            "total_games": len(self._games),
            "total_players": sum(len(g.players) for g in self._games.values()),
            **counts,
        }

    def _check_name(self, name: str | None) -> str:
        trimmed = (name or "").strip()
        if not trimmed:
            raise LobbyError("Player name is required")
        if len(trimmed) > MAX_LOBBY_NAME_LENGTH:
            raise LobbyError(f"Player name too long (max {MAX_LOBBY_NAME_LENGTH} characters)")
        return trimmed

    def _new_code(self) -> str:
        while True:
            code = generate_game_code(self._rng)
            if code not in self._codes:
                return code
