"""
Action System - Actions, payloads, and results.

Actions represent:
1. Table management (start, reset, perspective, manual advancement)
2. Seller and buyer moves (offers, flips, offer selection)
3. Action-card play and the follow-up selections each card asks for
4. Buyer decisions while Gotcha sets are traded in

All state changes flow through actions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ActionType(Enum):
    """Types of actions in the system."""
    # Table management
    START_GAME = "start_game"
    RESET_GAME = "reset_game"
    CHANGE_PERSPECTIVE = "change_perspective"
    TOGGLE_AUTO_FOLLOW = "toggle_auto_follow"
    ADVANCE_PHASE = "advance_phase"
    ADVANCE_PLAYER = "advance_player"
    DEAL_CARDS = "deal_cards"

    # Round play
    PLACE_OFFER = "place_offer"
    FLIP_CARD = "flip_card"
    PLAY_ACTION_CARD = "play_action_card"
    DECLARE_DONE = "declare_done"
    SELECT_OFFER = "select_offer"

    # Gotcha trade-in decisions
    SELECT_GOTCHA_CARD = "select_gotcha_card"
    CHOOSE_GOTCHA_ACTION = "choose_gotcha_action"

    # Action-card follow-ups
    SELECT_FLIP_ONE_CARD = "select_flip_one_card"
    SELECT_ADD_ONE_HAND_CARD = "select_add_one_hand_card"
    SELECT_ADD_ONE_OFFER = "select_add_one_offer"
    SELECT_REMOVE_ONE_CARD = "select_remove_one_card"
    SELECT_REMOVE_TWO_CARD = "select_remove_two_card"
    SELECT_STEAL_A_POINT_TARGET = "select_steal_a_point_target"


class GotchaChoice(Enum):
    """What the buyer does with a card taken by Gotcha Once/Twice."""
    STEAL = "steal"
    DISCARD = "discard"


@dataclass
class ActionPayload:
    """
    Payload for an action - contains the action parameters.

    Different action types have different payload shapes.
    This is a generic container; validation happens in the reducer.
    """
    # START_GAME
    player_names: list[str] | None = None
    seed: int | None = None

    # Common fields
    player_id: int | None = None
    card_id: str | None = None
    target_player_id: int | None = None

    # PLACE_OFFER
    card_ids: list[str] | None = None
    face_up_index: int | None = None

    # Offer references (FLIP_CARD and the offer-targeting selections)
    offer_id: int | None = None
    card_index: int | None = None

    # SELECT_OFFER
    buyer_id: int | None = None
    seller_id: int | None = None

    # CHOOSE_GOTCHA_ACTION
    gotcha_choice: GotchaChoice | None = None


@dataclass
class Action:
    """
    A complete action to be applied to the game state.

    Actions are:
    - Validated before application
    - Applied atomically by the reducer
    """
    action_type: ActionType
    payload: ActionPayload = field(default_factory=ActionPayload)
    timestamp: float | None = None
    action_id: str | None = None

    @classmethod
    def start_game(cls, player_names: list[str], seed: int | None = None) -> Action:
        """Factory for starting a new game."""
        return cls(
            action_type=ActionType.START_GAME,
            payload=ActionPayload(player_names=list(player_names), seed=seed),
        )

    @classmethod
    def reset_game(cls) -> Action:
        return cls(action_type=ActionType.RESET_GAME)

    @classmethod
    def change_perspective(cls, player_id: int) -> Action:
        return cls(
            action_type=ActionType.CHANGE_PERSPECTIVE,
            payload=ActionPayload(player_id=player_id),
        )

    @classmethod
    def toggle_auto_follow(cls) -> Action:
        return cls(action_type=ActionType.TOGGLE_AUTO_FOLLOW)

    @classmethod
    def advance_phase(cls) -> Action:
        return cls(action_type=ActionType.ADVANCE_PHASE)

    @classmethod
    def advance_player(cls) -> Action:
        return cls(action_type=ActionType.ADVANCE_PLAYER)

    @classmethod
    def deal_cards(cls) -> Action:
        return cls(action_type=ActionType.DEAL_CARDS)

    @classmethod
    def place_offer(cls, player_id: int, card_ids: list[str], face_up_index: int) -> Action:
        """Factory for a seller committing three hand cards."""
        return cls(
            action_type=ActionType.PLACE_OFFER,
            payload=ActionPayload(
                player_id=player_id,
                card_ids=list(card_ids),
                face_up_index=face_up_index,
            ),
        )

    @classmethod
    def flip_card(cls, offer_id: int, card_index: int) -> Action:
        """Factory for the buyer's flip."""
        return cls(
            action_type=ActionType.FLIP_CARD,
            payload=ActionPayload(offer_id=offer_id, card_index=card_index),
        )

    @classmethod
    def play_action_card(cls, player_id: int, card_id: str) -> Action:
        return cls(
            action_type=ActionType.PLAY_ACTION_CARD,
            payload=ActionPayload(player_id=player_id, card_id=card_id),
        )

    @classmethod
    def declare_done(cls, player_id: int) -> Action:
        return cls(
            action_type=ActionType.DECLARE_DONE,
            payload=ActionPayload(player_id=player_id),
        )

    @classmethod
    def select_offer(cls, buyer_id: int, seller_id: int) -> Action:
        """Factory for the buyer choosing which offer to buy."""
        return cls(
            action_type=ActionType.SELECT_OFFER,
            payload=ActionPayload(buyer_id=buyer_id, seller_id=seller_id),
        )

    @classmethod
    def select_gotcha_card(cls, card_id: str) -> Action:
        return cls(
            action_type=ActionType.SELECT_GOTCHA_CARD,
            payload=ActionPayload(card_id=card_id),
        )

    @classmethod
    def choose_gotcha_action(cls, choice: GotchaChoice | str) -> Action:
        return cls(
            action_type=ActionType.CHOOSE_GOTCHA_ACTION,
            payload=ActionPayload(gotcha_choice=GotchaChoice(choice)),
        )

    @classmethod
    def select_flip_one_card(cls, offer_id: int, card_index: int) -> Action:
        return cls(
            action_type=ActionType.SELECT_FLIP_ONE_CARD,
            payload=ActionPayload(offer_id=offer_id, card_index=card_index),
        )

    @classmethod
    def select_add_one_hand_card(cls, card_id: str) -> Action:
        return cls(
            action_type=ActionType.SELECT_ADD_ONE_HAND_CARD,
            payload=ActionPayload(card_id=card_id),
        )

    @classmethod
    def select_add_one_offer(cls, offer_id: int) -> Action:
        return cls(
            action_type=ActionType.SELECT_ADD_ONE_OFFER,
            payload=ActionPayload(offer_id=offer_id),
        )

    @classmethod
    def select_remove_one_card(cls, offer_id: int, card_index: int) -> Action:
        return cls(
            action_type=ActionType.SELECT_REMOVE_ONE_CARD,
            payload=ActionPayload(offer_id=offer_id, card_index=card_index),
        )

    @classmethod
    def select_remove_two_card(cls, offer_id: int, card_index: int) -> Action:
        return cls(
            action_type=ActionType.SELECT_REMOVE_TWO_CARD,
            payload=ActionPayload(offer_id=offer_id, card_index=card_index),
        )

    @classmethod
    def select_steal_a_point_target(cls, target_player_id: int) -> Action:
        return cls(
            action_type=ActionType.SELECT_STEAL_A_POINT_TARGET,
            payload=ActionPayload(target_player_id=target_player_id),
        )


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether action succeeded
    - New state (if succeeded)
    - Errors (if failed)
    - Human-readable changes (for UI updates)
    """
    success: bool
    new_state: Any | None = None  # GameState
    error: str | None = None
    error_code: str | None = None

    # For UI/presentation
    state_changes: list[str] = field(default_factory=list)

    @classmethod
    def failure(cls, error: str, error_code: str | None = None) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def success_with_state(cls, state: Any, changes: list[str] | None = None) -> ActionResult:
        """Create a success result with new state."""
        return cls(success=True, new_state=state, state_changes=changes or [])
