"""
Seat checks for actions arriving from connected players.

The engine knows the rules but not who is sending an action. Before an
action reaches the reducer, the registry checks that the seat sending
it is the one the rules expect: the buyer for flips, offer selection
and Gotcha choices, the current player for action cards, the player
who played a card for that card's follow-up.
"""

from __future__ import annotations

from ..engine_core.state import GameState, GotchaEffect
from ..engine_core.action import Action, ActionType
from ..engine_core.effect_resolver import effect_label


BUYER_ACTIONS = {
    ActionType.FLIP_CARD: "Only the buyer can flip cards",
    ActionType.SELECT_OFFER: "Only the buyer can select offers",
    ActionType.SELECT_GOTCHA_CARD: "Only the buyer can make gotcha choices",
    ActionType.CHOOSE_GOTCHA_ACTION: "Only the buyer can make gotcha choices",
}

TURN_ACTIONS = frozenset({ActionType.PLAY_ACTION_CARD, ActionType.DECLARE_DONE})

EFFECT_ACTIONS = frozenset({
    ActionType.SELECT_FLIP_ONE_CARD,
    ActionType.SELECT_ADD_ONE_HAND_CARD,
    ActionType.SELECT_ADD_ONE_OFFER,
    ActionType.SELECT_REMOVE_ONE_CARD,
    ActionType.SELECT_REMOVE_TWO_CARD,
    ActionType.SELECT_STEAL_A_POINT_TARGET,
})

OPEN_ACTIONS = frozenset({ActionType.CHANGE_PERSPECTIVE, ActionType.TOGGLE_AUTO_FOLLOW})

HOST_ACTIONS = frozenset({
    ActionType.ADVANCE_PHASE,
    ActionType.ADVANCE_PLAYER,
    ActionType.DEAL_CARDS,
})


def validate_seat_action(state: GameState, seat: int, action: Action, is_host: bool = False) -> str | None:
    """
    Check that seat may send action.

    Returns error message if not permitted, None if permitted.
    """
    action_type = action.action_type
    payload = action.payload

    if action_type in OPEN_ACTIONS:
        return None

    if action_type in (ActionType.START_GAME, ActionType.RESET_GAME):
        return "Games are started from the lobby"

    if action_type in HOST_ACTIONS:
        return None if is_host else "Only the host can move the game along"

    if action_type == ActionType.PLACE_OFFER:
        if payload.player_id != seat:
            return "Cannot place offer for another player"
        return None

    if action_type in BUYER_ACTIONS:
        if seat != state.current_buyer_index:
            return BUYER_ACTIONS[action_type]
        return None

    if action_type in TURN_ACTIONS:
        if seat != state.current_player_index or payload.player_id != seat:
            return "Not your turn"
        return None

    if action_type in EFFECT_ACTIONS:
        effect = state.pending_effect
        if effect is None or isinstance(effect, GotchaEffect):
            return "No action card effect is waiting for a choice"
        if effect.player_id != seat:
            return f"Only the player who played {effect_label(effect)} can choose"
        return None

    return f"Action {action_type.name} cannot be sent by a player"
