"""
Engine Core - Deterministic rules engine for Offer Up.

The engine is the runtime that:
1. Builds the deck and seats the players
2. Manages GameState
3. Validates actions against the phase whitelist and the rules
4. Applies actions via the reducer
5. Runs trade-ins and action-card effects step by step
"""

from .state import (
    GameState, GamePhase, Player, Card, OfferCard, CardType,
    ThingKind, GotchaKind, ActionKind,
)
from .action import Action, ActionType, ActionPayload, ActionResult, GotchaChoice
from .reducer import Reducer, transition, apply_action, create_initial_state
from .cards import build_deck, make_card, shuffle
from .phases import get_phase_order, is_action_allowed
from .effect_resolver import EffectResolver
from .errors import GameRuleError

__all__ = [
    "GameState",
    "GamePhase",
    "Player",
    "Card",
    "OfferCard",
    "CardType",
    "ThingKind",
    "GotchaKind",
    "ActionKind",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "GotchaChoice",
    "Reducer",
    "transition",
    "apply_action",
    "create_initial_state",
    "build_deck",
    "make_card",
    "shuffle",
    "get_phase_order",
    "is_action_allowed",
    "EffectResolver",
    "GameRuleError",
]
