"""
Phase state machine.

The round is a fixed cycle of ten phases. Most actions are legal in
exactly one phase; a handful of table-management actions are legal
at any time.
"""

from __future__ import annotations

from .state import GamePhase
from .action import ActionType


PHASE_ORDER: tuple[GamePhase, ...] = (
    GamePhase.BUYER_ASSIGNMENT,
    GamePhase.DEAL,
    GamePhase.OFFER_PHASE,
    GamePhase.BUYER_FLIP,
    GamePhase.ACTION_PHASE,
    GamePhase.OFFER_SELECTION,
    GamePhase.OFFER_DISTRIBUTION,
    GamePhase.GOTCHA_TRADEINS,
    GamePhase.THING_TRADEINS,
    GamePhase.WINNER_DETERMINATION,
)

NEXT_PHASE: dict[GamePhase, GamePhase] = {
    phase: PHASE_ORDER[(i + 1) % len(PHASE_ORDER)]
    for i, phase in enumerate(PHASE_ORDER)
}

# Phases the engine runs on its own, without waiting for a player
ADMINISTRATIVE_PHASES = frozenset({
    GamePhase.BUYER_ASSIGNMENT,
    GamePhase.DEAL,
    GamePhase.OFFER_DISTRIBUTION,
    GamePhase.GOTCHA_TRADEINS,
    GamePhase.THING_TRADEINS,
    GamePhase.WINNER_DETERMINATION,
})

UNIVERSAL_ACTIONS = frozenset({
    ActionType.START_GAME,
    ActionType.RESET_GAME,
    ActionType.CHANGE_PERSPECTIVE,
    ActionType.TOGGLE_AUTO_FOLLOW,
    ActionType.ADVANCE_PHASE,
    ActionType.ADVANCE_PLAYER,
})

ACTION_PHASES: dict[ActionType, GamePhase] = {
    ActionType.DEAL_CARDS: GamePhase.DEAL,
    ActionType.PLACE_OFFER: GamePhase.OFFER_PHASE,
    ActionType.FLIP_CARD: GamePhase.BUYER_FLIP,
    ActionType.PLAY_ACTION_CARD: GamePhase.ACTION_PHASE,
    ActionType.DECLARE_DONE: GamePhase.ACTION_PHASE,
    ActionType.SELECT_FLIP_ONE_CARD: GamePhase.ACTION_PHASE,
    ActionType.SELECT_ADD_ONE_HAND_CARD: GamePhase.ACTION_PHASE,
    ActionType.SELECT_ADD_ONE_OFFER: GamePhase.ACTION_PHASE,
    ActionType.SELECT_REMOVE_ONE_CARD: GamePhase.ACTION_PHASE,
    ActionType.SELECT_REMOVE_TWO_CARD: GamePhase.ACTION_PHASE,
    ActionType.SELECT_STEAL_A_POINT_TARGET: GamePhase.ACTION_PHASE,
    ActionType.SELECT_OFFER: GamePhase.OFFER_SELECTION,
    ActionType.SELECT_GOTCHA_CARD: GamePhase.GOTCHA_TRADEINS,
    ActionType.CHOOSE_GOTCHA_ACTION: GamePhase.GOTCHA_TRADEINS,
}

PHASE_INSTRUCTIONS: dict[GamePhase, str] = {
    GamePhase.BUYER_ASSIGNMENT: "Buyer assignment: Transferring buyer role to money bag holder...",
    GamePhase.DEAL: "Deal phase: Dealing cards to all players...",
    GamePhase.OFFER_PHASE: "Offer phase: Sellers place their 3-card offers...",
    GamePhase.BUYER_FLIP: "Buyer-flip phase: Buyer flips one face-down card...",
    GamePhase.ACTION_PHASE: "Action phase: Players may play action cards...",
    GamePhase.OFFER_SELECTION: "Offer selection: Buyer selects one offer...",
    GamePhase.OFFER_DISTRIBUTION: "Offer distribution: Distributing cards and money bag...",
    GamePhase.GOTCHA_TRADEINS: "Gotcha trade-ins: Processing Gotcha card effects...",
    GamePhase.THING_TRADEINS: "Thing trade-ins: Converting complete sets to points...",
    GamePhase.WINNER_DETERMINATION: "Winner determination: Checking for game winner...",
}


def get_phase_order() -> list[GamePhase]:
    return list(PHASE_ORDER)


def next_phase(phase: GamePhase) -> GamePhase:
    return NEXT_PHASE[phase]


def advance_phase(phase: GamePhase, round_number: int) -> tuple[GamePhase, int]:
    """
    Next phase and round number.

    The round only increments on the WINNER_DETERMINATION ->
    BUYER_ASSIGNMENT edge.
    """
    following = NEXT_PHASE[phase]
    if following == GamePhase.BUYER_ASSIGNMENT:
        return following, round_number + 1
    return following, round_number


def is_action_allowed(phase: GamePhase, action_type: ActionType) -> bool:
    if action_type in UNIVERSAL_ACTIONS:
        return True
    return ACTION_PHASES.get(action_type) == phase


def allowed_actions(phase: GamePhase) -> list[ActionType]:
    """Everything a UI may enable during phase."""
    return [a for a in ActionType if is_action_allowed(phase, a)]
