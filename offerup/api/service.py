"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to engine actions
2. Manages games through the registry
3. Formats game state for each seat

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
Registry errors propagate to the caller; rejected actions come back as
a failed ActionResult.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from .schemas import (
    # Requests
    ActionRequest,
    # Responses
    ActionResponse,
    GameStateResponse,
    JoinResponse,
    LobbyResponse,
    PhaseListResponse,
    StatsResponse,
    # Shared
    CardInfo,
    EffectInfo,
    LobbyPlayerInfo,
    OfferCardInfo,
    PhaseInfo,
    PlayerInfo,
    # Enums
    GameStatusValue,
)
from ..engine_core.state import (
    GameState, Card, GotchaEffect, FlipOneEffect, AddOneEffect, RemoveOneEffect,
    RemoveTwoEffect, StealAPointEffect, EffectState,
)
from ..engine_core.action import Action, ActionType, ActionPayload, ActionResult
from ..engine_core.phases import PHASE_INSTRUCTIONS, get_phase_order, allowed_actions
from ..session import GameRegistry, GameSession, LobbyError


logger = logging.getLogger(__name__)


EFFECT_KINDS: dict[type, str] = {
    GotchaEffect: "gotcha",
    FlipOneEffect: "flip_one",
    AddOneEffect: "add_one",
    RemoveOneEffect: "remove_one",
    RemoveTwoEffect: "remove_two",
    StealAPointEffect: "steal_a_point",
}


@dataclass
class APIService:
    """
    Main API service for table clients.

    Usage:
        service = APIService()

        # Open a lobby and fill it
        created = service.create_game("Ana")
        joined = service.join_game(created.game_code, "Ben")

        # Start and play
        service.start_game(created.game_code, created.player_id)
        result, state = service.submit_action(created.game_id, request)
    """
    registry: GameRegistry = field(default_factory=GameRegistry)

    # ------------------------------------------------------------------
    # Lobby
    # ------------------------------------------------------------------

    def create_game(self, host_name: str) -> JoinResponse:
        game, host = self.registry.create_game(host_name)
        return JoinResponse(
            game_id=game.game_id,
            game_code=game.game_code,
            player_id=host.player_id,
            lobby=self.lobby(game),
        )

    def join_game(self, game_code: str, player_name: str) -> JoinResponse:
        game, player = self.registry.join_game(game_code, player_name)
        return JoinResponse(
            game_id=game.game_id,
            game_code=game.game_code,
            player_id=player.player_id,
            lobby=self.lobby(game),
        )

    def start_game(self, game_code: str, host_player_id: str, seed: int | None = None) -> GameStateResponse:
        game = self.registry.start_game(game_code, host_player_id, seed=seed)
        player = game.get_player(host_player_id)
        return self.serialize_state(game, viewer_seat=player.seat if player else None)

    def get_lobby(self, game_code: str) -> LobbyResponse:
        return self.lobby(self.registry.get_game_by_code(game_code))

    def leave_game(self, game_id: str, player_id: str) -> bool:
        return self.registry.disconnect(game_id, player_id)

    def rejoin_game(self, game_id: str, player_id: str) -> JoinResponse:
        """Mark a seated player connected again after a dropped connection."""
        game = self.registry.get_game(game_id)
        player = self.registry.reconnect(game_id, player_id)
        logger.info("Game %s: %s reconnected", game.game_code, player.name)
        return JoinResponse(
            game_id=game.game_id,
            game_code=game.game_code,
            player_id=player.player_id,
            lobby=self.lobby(game),
        )

    def stats(self) -> StatsResponse:
        return StatsResponse(**self.registry.stats())

    def lobby(self, game: GameSession) -> LobbyResponse:
        return LobbyResponse(
            game_id=game.game_id,
            game_code=game.game_code,
            status=GameStatusValue(game.status.value),
            host_player_id=game.host_player_id,
            players=[
                LobbyPlayerInfo(
                    player_id=p.player_id,
                    name=p.name,
                    seat=p.seat,
                    connected=p.connected,
                    is_host=p.player_id == game.host_player_id,
                )
                for p in game.players
            ],
            can_start=game.can_start,
        )

    # ------------------------------------------------------------------
    # Play
    # ------------------------------------------------------------------

    def get_state(self, game_id: str, player_id: str | None = None) -> GameStateResponse:
        """
        Get the table as seen by player_id.

        Without a player_id only public information is shown: no hands
        and no face-down offer cards.
        """
        game = self.registry.get_game(game_id)
        viewer_seat = None
        if player_id is not None:
            player = game.get_player(player_id)
            if player is None:
                raise LobbyError("Player not found in game")
            viewer_seat = player.seat
        return self.serialize_state(game, viewer_seat=viewer_seat)

    def submit_action(self, game_id: str, request: ActionRequest) -> tuple[ActionResult, ActionResponse | None]:
        """
        Apply a player's action.

        Returns the engine result, plus the response body when it succeeded.
        """
        game = self.registry.get_game(game_id)
        player = game.get_player(request.player_id)
        seat = player.seat if player else None
        action = self.build_action(request, seat)

        result = self.registry.process_action(game_id, request.player_id, action)
        if not result.success:
            logger.info("Game %s: %s rejected (%s)", game.game_code, action.action_type.name, result.error)
            return result, None

        return result, ActionResponse(
            success=True,
            state_changes=result.state_changes,
            state=self.serialize_state(game, viewer_seat=seat),
        )

    def build_action(self, request: ActionRequest, seat: int | None) -> Action:
        """Turn a request into an engine action, acting as seat."""
        action_type = request.action_type
        payload = ActionPayload(
            card_id=request.card_id,
            card_ids=request.card_ids,
            face_up_index=request.face_up_index,
            offer_id=request.offer_id,
            card_index=request.card_index,
            seller_id=request.seller_id,
            target_player_id=request.target_player_id,
            gotcha_choice=request.gotcha_choice,
        )
        if action_type == ActionType.CHANGE_PERSPECTIVE:
            payload.player_id = request.target_player_id
        elif action_type == ActionType.SELECT_OFFER:
            payload.buyer_id = seat
        else:
            payload.player_id = seat
        return Action(action_type=action_type, payload=payload)

    def phases(self) -> PhaseListResponse:
        return PhaseListResponse(
            phases=[
                PhaseInfo(
                    phase=phase.value,
                    instructions=PHASE_INSTRUCTIONS[phase],
                    allowed_actions=[a.value for a in allowed_actions(phase)],
                )
                for phase in get_phase_order()
            ]
        )

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def serialize_state(self, game: GameSession, viewer_seat: int | None = None) -> GameStateResponse:
        """
        Build the state response.

        Hands of other seats and their face-down offer cards are hidden.
        With no viewer seat every hand is hidden.
        """
        state = game.game_state
        return GameStateResponse(
            game_id=game.game_id,
            status=GameStatusValue(game.status.value),
            round=state.round,
            phase=state.current_phase.value,
            phase_instructions=state.phase_instructions,
            current_player_index=state.current_player_index,
            current_buyer_index=state.current_buyer_index,
            next_buyer_index=state.next_buyer_index,
            winner=state.winner,
            players=[self._player_info(state, i, viewer_seat) for i in range(state.num_players)],
            draw_pile_count=len(state.draw_pile),
            discard_pile_count=len(state.discard_pile),
            pending_effect=self._effect_info(state.pending_effect, state),
            previous_round_summary=state.previous_round_summary,
            selected_perspective=state.selected_perspective,
            auto_follow_perspective=state.auto_follow_perspective,
            allowed_actions=[a.value for a in allowed_actions(state.current_phase)],
            recent_changes=game.recent_changes,
        )

    def _player_info(self, state: GameState, index: int, viewer_seat: int | None) -> PlayerInfo:
        player = state.players[index]
        sees_all = viewer_seat == index
        done = state.action_phase_done
        return PlayerInfo(
            id=player.id,
            name=player.name,
            points=player.points,
            has_money=player.has_money,
            is_buyer=index == state.current_buyer_index,
            is_current=index == state.current_player_index,
            done=done[index] if index < len(done) else False,
            hand_count=len(player.hand),
            hand=[_card_info(c) for c in player.hand] if sees_all else None,
            offer=[
                OfferCardInfo(
                    position=oc.position,
                    face_up=oc.face_up,
                    card=_card_info(oc.card) if (oc.face_up or sees_all) else None,
                )
                for oc in player.offer
            ],
            collection=[_card_info(c) for c in player.collection],
        )

    def _effect_info(self, effect: EffectState | None, state: GameState) -> EffectInfo | None:
        if effect is None:
            return None
        kind = EFFECT_KINDS[type(effect)]
        if isinstance(effect, GotchaEffect):
            return EffectInfo(
                kind=kind,
                player_id=state.current_buyer_index,
                details={
                    "gotcha_type": effect.kind.value,
                    "affected_player_index": effect.affected_player_index,
                    "cards_to_select": effect.cards_to_select,
                    "selected_cards": [c.id for c in effect.selected_cards],
                    "awaiting_buyer_choice": effect.awaiting_buyer_choice,
                    "twice_iteration": effect.twice_iteration,
                },
            )
        details: dict = {}
        if isinstance(effect, AddOneEffect):
            details = {
                "awaiting_hand_card_selection": effect.awaiting_hand_card_selection,
                "awaiting_offer_selection": effect.awaiting_offer_selection,
            }
        elif isinstance(effect, RemoveTwoEffect):
            details = {
                "cards_to_select": effect.cards_to_select,
                "selected_cards": [
                    {"offer_id": s.offer_id, "card_index": s.card_index} for s in effect.selected_cards
                ],
            }
        return EffectInfo(kind=kind, player_id=effect.player_id, details=details)


def _card_info(card: Card) -> CardInfo:
    return CardInfo(
        id=card.id,
        type=card.type.value,
        subtype=card.subtype.value,
        name=card.name,
        set_size=card.set_size,
        effect=card.effect,
    )
