"""
Reducer - Applies actions to game state.

The reducer is the single point of state mutation.
All state changes must go through transition() or apply_action().

Design principles:
- Pure function: (state, action) -> new_state; the input is never touched
- Validates before applying, raising a GameRuleError on any violation
- Delegates trade-ins and card effects to EffectResolver
- After every action the cascade loop runs administrative phases
  until a player has to decide something or the game is won
"""

from __future__ import annotations
from dataclasses import dataclass, field
import random

from .state import (
    GameState, GamePhase, Player, OfferCard, OFFER_SIZE, MIN_PLAYERS, MAX_PLAYERS, MAX_NAME_LENGTH,
    GotchaEffect, FlipOneEffect, AddOneEffect, RemoveOneEffect, RemoveTwoEffect, StealAPointEffect,
)
from .action import Action, ActionType, ActionResult
from .cards import build_deck, shuffle, deal_cards
from .phases import PHASE_ORDER, PHASE_INSTRUCTIONS, advance_phase, is_action_allowed
from .rotation import (
    next_eligible_player, advance_to_next_eligible_player, follow_active_player, phase_awaits_player,
)
from .effect_resolver import EffectResolver, determine_winner, effect_label
from .errors import (
    GameRuleError, PhaseViolationError, ConfigurationError, IdentifierError,
    CardinalityError, BusinessRuleError,
)


# Two full rounds without anyone able to act means the table is stuck
MAX_CASCADE_STEPS = 2 * len(PHASE_ORDER)

TABLE_ACTIONS = frozenset({
    ActionType.START_GAME,
    ActionType.RESET_GAME,
    ActionType.CHANGE_PERSPECTIVE,
    ActionType.TOGGLE_AUTO_FOLLOW,
})

EFFECT_RESPONSES: dict[type, frozenset[ActionType]] = {
    GotchaEffect: frozenset({ActionType.SELECT_GOTCHA_CARD, ActionType.CHOOSE_GOTCHA_ACTION}),
    FlipOneEffect: frozenset({ActionType.SELECT_FLIP_ONE_CARD}),
    AddOneEffect: frozenset({ActionType.SELECT_ADD_ONE_HAND_CARD, ActionType.SELECT_ADD_ONE_OFFER}),
    RemoveOneEffect: frozenset({ActionType.SELECT_REMOVE_ONE_CARD}),
    RemoveTwoEffect: frozenset({ActionType.SELECT_REMOVE_TWO_CARD}),
    StealAPointEffect: frozenset({ActionType.SELECT_STEAL_A_POINT_TARGET}),
}

GAME_OVER = "GAME_OVER"


def validate_player_configuration(names: list[str]) -> list[str]:
    """Every problem with the proposed player list (empty when valid)."""
    errors = []
    if not MIN_PLAYERS <= len(names) <= MAX_PLAYERS:
        errors.append(
            f"Invalid player count: {len(names)}. "
            f"Must be between {MIN_PLAYERS} and {MAX_PLAYERS} players."
        )
    trimmed = [n.strip() for n in names]
    if any(not n for n in trimmed):
        errors.append("All player names must be non-empty")
    lowered = [n.lower() for n in trimmed if n]
    if len(set(lowered)) != len(lowered):
        errors.append("Player names must be unique")
    if any(len(n) > MAX_NAME_LENGTH for n in trimmed):
        errors.append(f"Player names must be {MAX_NAME_LENGTH} characters or less")
    return errors


def create_initial_state() -> GameState:
    """The empty table shown before START_GAME."""
    return GameState(phase_instructions="Start a new game to begin")


@dataclass
class Reducer:
    """
    Reducer applies actions to game state.

    Stateless apart from the optional random source used to seed new
    games; all game state is in GameState.
    """
    rng: random.Random | None = None
    resolver: EffectResolver = field(default_factory=EffectResolver)

    def apply(self, state: GameState, action: Action) -> ActionResult:
        """
        Apply an action to the game state.

        Returns ActionResult with new state or error.
        """
        if state.winner is not None and action.action_type != ActionType.CHANGE_PERSPECTIVE:
            return ActionResult.failure("Game is over - no actions allowed", error_code=GAME_OVER)
        try:
            return self._apply(state, action)
        except GameRuleError as e:
            return ActionResult.failure(e.message, error_code=e.code)

    def transition(self, state: GameState, action: Action) -> GameState:
        """Apply an action, raising GameRuleError when it is rejected."""
        return self._apply(state, action).new_state

    def _apply(self, state: GameState, action: Action) -> ActionResult:
        if state.winner is not None and action.action_type != ActionType.CHANGE_PERSPECTIVE:
            return ActionResult.success_with_state(state)

        self._validate_action(state, action)

        handler = self._get_handler(action.action_type)
        if not handler:
            raise BusinessRuleError(f"No handler for action type: {action.action_type.name}")
        return handler(state.clone(), action)

    def _validate_action(self, state: GameState, action: Action) -> None:
        """Phase whitelist, game-started and pending-effect checks."""
        action_type = action.action_type

        if not state.game_started and action_type not in TABLE_ACTIONS:
            raise BusinessRuleError("Game has not started")

        if not is_action_allowed(state.current_phase, action_type):
            raise PhaseViolationError(
                f"Action {action_type.name} is not allowed during phase {state.current_phase.name}"
            )

        effect = state.pending_effect
        if effect is not None and action_type not in TABLE_ACTIONS:
            if action_type not in EFFECT_RESPONSES[type(effect)]:
                raise BusinessRuleError(
                    f"Action {action_type.name} is not allowed while a "
                    f"{effect_label(effect)} effect is pending"
                )

    def _get_handler(self, action_type: ActionType):
        """Get the handler function for an action type."""
        handlers = {
            ActionType.START_GAME: self._handle_start_game,
            ActionType.RESET_GAME: self._handle_reset_game,
            ActionType.CHANGE_PERSPECTIVE: self._handle_change_perspective,
            ActionType.TOGGLE_AUTO_FOLLOW: self._handle_toggle_auto_follow,
            ActionType.ADVANCE_PHASE: self._handle_advance_phase,
            ActionType.ADVANCE_PLAYER: self._handle_advance_player,
            ActionType.DEAL_CARDS: self._handle_deal_cards,
            ActionType.PLACE_OFFER: self._handle_place_offer,
            ActionType.FLIP_CARD: self._handle_flip_card,
            ActionType.PLAY_ACTION_CARD: self._handle_play_action_card,
            ActionType.DECLARE_DONE: self._handle_declare_done,
            ActionType.SELECT_OFFER: self._handle_select_offer,
            ActionType.SELECT_GOTCHA_CARD: self._handle_select_gotcha_card,
            ActionType.CHOOSE_GOTCHA_ACTION: self._handle_choose_gotcha_action,
            ActionType.SELECT_FLIP_ONE_CARD: self._handle_select_flip_one_card,
            ActionType.SELECT_ADD_ONE_HAND_CARD: self._handle_select_add_one_hand_card,
            ActionType.SELECT_ADD_ONE_OFFER: self._handle_select_add_one_offer,
            ActionType.SELECT_REMOVE_ONE_CARD: self._handle_select_remove_one_card,
            ActionType.SELECT_REMOVE_TWO_CARD: self._handle_select_remove_two_card,
            ActionType.SELECT_STEAL_A_POINT_TARGET: self._handle_select_steal_a_point_target,
        }
        return handlers.get(action_type)

    # ============================================================
    # Phase cascade
    # ============================================================

    def _enter_phase(self, state: GameState) -> list[str]:
        """Run the automatic work of the phase just entered and pick who acts."""
        phase = state.current_phase
        state.phase_instructions = PHASE_INSTRUCTIONS[phase]
        changes: list[str] = []

        if phase == GamePhase.BUYER_ASSIGNMENT:
            state.current_buyer_index = state.next_buyer_index
            state.action_phase_done = []
            changes.append(f"{state.buyer.name} is the buyer for round {state.round}")
        elif phase == GamePhase.DEAL:
            changes.extend(deal_cards(state))
        elif phase == GamePhase.ACTION_PHASE:
            self.resolver.reset_done_states(state)
        elif phase == GamePhase.OFFER_DISTRIBUTION:
            # Offers still on the table were not bought
            returned = self.resolver.return_unselected_offers(state)
            if state.next_buyer_index == state.current_buyer_index:
                summary = "No offer was bought"
                if returned:
                    summary += f"; {', '.join(returned)} took their offers back"
                state.previous_round_summary = summary
                changes.append(summary)
        elif phase == GamePhase.GOTCHA_TRADEINS:
            changes.extend(self.resolver.process_gotcha_tradeins(state))
        elif phase == GamePhase.THING_TRADEINS:
            changes.extend(self.resolver.process_thing_tradeins(state))
        elif phase == GamePhase.WINNER_DETERMINATION:
            winner = determine_winner(state.players)
            if winner is not None:
                champion = state.players[winner]
                state.winner = winner
                state.phase_instructions = (
                    f"Game Over! {champion.name} wins with {champion.points} points!"
                )
                changes.append(state.phase_instructions)

        first = next_eligible_player(-1, state)
        state.current_player_index = first if first is not None else state.current_buyer_index
        follow_active_player(state)
        return changes

    def _advance(self, state: GameState) -> list[str]:
        state.current_phase, state.round = advance_phase(state.current_phase, state.round)
        return [f"Phase: {state.current_phase.name}"] + self._enter_phase(state)

    def _settle(self, state: GameState) -> list[str]:
        """
        Advance through phases nobody needs to act in.

        Stops at the first phase waiting on a player, at a pending
        effect, or once a winner is declared.
        """
        changes: list[str] = []
        for _ in range(MAX_CASCADE_STEPS):
            if state.winner is not None or phase_awaits_player(state):
                break
            changes.extend(self._advance(state))
        return changes

    def _finish_action_effect(self, state: GameState) -> list[str]:
        """After an action-card effect completes, pass the turn on."""
        if state.pending_effect is not None:
            return []
        advance_to_next_eligible_player(state)
        return self._settle(state)

    # ============================================================
    # Table management
    # ============================================================

    def _handle_start_game(self, state: GameState, action: Action) -> ActionResult:
        """Seat the players, pick a random buyer and deal the first round."""
        names = action.payload.player_names or []
        errors = validate_player_configuration(names)
        if errors:
            raise ConfigurationError(f"Invalid player configuration: {', '.join(errors)}")

        seed = action.payload.seed
        if seed is None:
            seed = (self.rng or random.Random()).randrange(2 ** 32)

        new_state = create_initial_state()
        new_state.random_seed = seed
        new_state.game_started = True
        new_state.players = [Player(id=i, name=name.strip()) for i, name in enumerate(names)]

        buyer = new_state.next_rng().randrange(len(names))
        new_state.players[buyer].has_money = True
        new_state.current_buyer_index = buyer
        new_state.next_buyer_index = buyer
        new_state.draw_pile = shuffle(build_deck(), new_state.next_rng())

        changes = [f"New game with {', '.join(p.name for p in new_state.players)}"]
        changes.extend(self._enter_phase(new_state))
        changes.extend(self._settle(new_state))
        return ActionResult.success_with_state(new_state, changes)

    def _handle_reset_game(self, state: GameState, action: Action) -> ActionResult:
        return ActionResult.success_with_state(create_initial_state(), ["Game reset"])

    def _handle_change_perspective(self, state: GameState, action: Action) -> ActionResult:
        player = state.get_player(action.payload.player_id)
        if player is None:
            raise IdentifierError(f"Invalid player ID: {action.payload.player_id}")
        state.selected_perspective = player.id
        state.auto_follow_perspective = False
        return ActionResult.success_with_state(state, [f"Viewing the table as {player.name}"])

    def _handle_toggle_auto_follow(self, state: GameState, action: Action) -> ActionResult:
        state.auto_follow_perspective = not state.auto_follow_perspective
        follow_active_player(state)
        mode = "on" if state.auto_follow_perspective else "off"
        return ActionResult.success_with_state(state, [f"Auto-follow {mode}"])

    def _handle_advance_phase(self, state: GameState, action: Action) -> ActionResult:
        changes = self._advance(state)
        changes.extend(self._settle(state))
        return ActionResult.success_with_state(state, changes)

    def _handle_advance_player(self, state: GameState, action: Action) -> ActionResult:
        if advance_to_next_eligible_player(state) is not None:
            return ActionResult.success_with_state(
                state, [f"{state.current_player.name} is now active"]
            )
        changes = self._advance(state)
        changes.extend(self._settle(state))
        return ActionResult.success_with_state(state, changes)

    def _handle_deal_cards(self, state: GameState, action: Action) -> ActionResult:
        changes = deal_cards(state)
        changes.extend(self._advance(state))
        changes.extend(self._settle(state))
        return ActionResult.success_with_state(state, changes)

    # ============================================================
    # Round play
    # ============================================================

    def _handle_place_offer(self, state: GameState, action: Action) -> ActionResult:
        """Handle a seller committing three hand cards, one face up."""
        payload = action.payload
        player = state.get_player(payload.player_id)
        if player is None:
            raise IdentifierError(f"Invalid player ID: {payload.player_id}")
        if player.id == state.current_buyer_index:
            raise BusinessRuleError("Buyer cannot place offers")

        card_ids = payload.card_ids or []
        if len(card_ids) != OFFER_SIZE:
            raise CardinalityError(f"Offer must contain exactly 3 cards, got {len(card_ids)}")
        face_up_index = payload.face_up_index
        if face_up_index is None or not 0 <= face_up_index < OFFER_SIZE:
            raise CardinalityError(f"Face up index must be 0, 1, or 2, got {face_up_index}")
        if player.offer:
            raise BusinessRuleError("Player already has an offer placed")

        cards = []
        for card_id in card_ids:
            card = player.find_in_hand(card_id)
            if card is None:
                raise IdentifierError(f"Card {card_id} is not in player's hand")
            if card in cards:
                raise BusinessRuleError(f"Card {card.name} is listed more than once")
            cards.append(card)

        for card in cards:
            player.hand.remove(card)
        player.offer = [
            OfferCard(card=card, face_up=(i == face_up_index), position=i)
            for i, card in enumerate(cards)
        ]
        changes = [f"{player.name} placed an offer showing {cards[face_up_index].name}"]

        following = next_eligible_player(player.id, state)
        if following is not None:
            state.current_player_index = following
            follow_active_player(state)
        changes.extend(self._settle(state))
        return ActionResult.success_with_state(state, changes)

    def _handle_flip_card(self, state: GameState, action: Action) -> ActionResult:
        """The buyer's single flip ends the buyer-flip phase."""
        changes = self.resolver.flip_offer_card(state, action.payload.offer_id, action.payload.card_index)
        changes.extend(self._advance(state))
        changes.extend(self._settle(state))
        return ActionResult.success_with_state(state, changes)

    def _handle_play_action_card(self, state: GameState, action: Action) -> ActionResult:
        changes = self.resolver.play_action_card(state, action.payload.player_id, action.payload.card_id)
        return ActionResult.success_with_state(state, changes)

    def _handle_declare_done(self, state: GameState, action: Action) -> ActionResult:
        player = state.get_player(action.payload.player_id)
        if player is None:
            raise IdentifierError(f"Invalid player ID: {action.payload.player_id}")
        if player.id != state.current_player_index:
            raise BusinessRuleError("Only the current player can declare done")

        if len(state.action_phase_done) != state.num_players:
            self.resolver.reset_done_states(state)
        state.action_phase_done[player.id] = True
        changes = [f"{player.name} is done playing action cards"]

        advance_to_next_eligible_player(state)
        changes.extend(self._settle(state))
        return ActionResult.success_with_state(state, changes)

    def _handle_select_offer(self, state: GameState, action: Action) -> ActionResult:
        """Handle the buyer buying one offer; the rest go home."""
        payload = action.payload
        if payload.buyer_id != state.current_buyer_index:
            raise BusinessRuleError("Only the current buyer can select offers")
        seller = state.get_player(payload.seller_id)
        if seller is None:
            raise IdentifierError(f"Invalid seller ID: {payload.seller_id}")
        if seller.id == state.current_buyer_index:
            raise BusinessRuleError("Buyer cannot select their own offer (buyer has no offer)")
        if not seller.offer:
            raise BusinessRuleError("Selected seller has no offer to select")

        changes = self.resolver.distribute_offers(state, seller.id)
        changes.extend(self._settle(state))
        return ActionResult.success_with_state(state, changes)

    # ============================================================
    # Gotcha decisions
    # ============================================================

    def _handle_select_gotcha_card(self, state: GameState, action: Action) -> ActionResult:
        changes = self.resolver.select_gotcha_card(state, action.payload.card_id)
        return ActionResult.success_with_state(state, changes)

    def _handle_choose_gotcha_action(self, state: GameState, action: Action) -> ActionResult:
        changes = self.resolver.choose_gotcha_action(state, action.payload.gotcha_choice)
        changes.extend(self._settle(state))
        return ActionResult.success_with_state(state, changes)

    # ============================================================
    # Action-card follow-ups
    # ============================================================

    def _handle_select_flip_one_card(self, state: GameState, action: Action) -> ActionResult:
        changes = self.resolver.select_flip_one_card(
            state, action.payload.offer_id, action.payload.card_index
        )
        changes.extend(self._finish_action_effect(state))
        return ActionResult.success_with_state(state, changes)

    def _handle_select_add_one_hand_card(self, state: GameState, action: Action) -> ActionResult:
        changes = self.resolver.select_add_one_hand_card(state, action.payload.card_id)
        return ActionResult.success_with_state(state, changes)

    def _handle_select_add_one_offer(self, state: GameState, action: Action) -> ActionResult:
        changes = self.resolver.select_add_one_offer(state, action.payload.offer_id)
        changes.extend(self._finish_action_effect(state))
        return ActionResult.success_with_state(state, changes)

    def _handle_select_remove_one_card(self, state: GameState, action: Action) -> ActionResult:
        changes = self.resolver.select_remove_one_card(
            state, action.payload.offer_id, action.payload.card_index
        )
        changes.extend(self._finish_action_effect(state))
        return ActionResult.success_with_state(state, changes)

    def _handle_select_remove_two_card(self, state: GameState, action: Action) -> ActionResult:
        changes = self.resolver.select_remove_two_card(
            state, action.payload.offer_id, action.payload.card_index
        )
        changes.extend(self._finish_action_effect(state))
        return ActionResult.success_with_state(state, changes)

    def _handle_select_steal_a_point_target(self, state: GameState, action: Action) -> ActionResult:
        changes = self.resolver.select_steal_a_point_target(state, action.payload.target_player_id)
        changes.extend(self._finish_action_effect(state))
        return ActionResult.success_with_state(state, changes)


def transition(state: GameState, action: Action, rng: random.Random | None = None) -> GameState:
    """
    Apply an action and return the next state.

    Raises a GameRuleError subclass when the action is rejected; the
    given state is never modified either way.
    """
    return Reducer(rng=rng).transition(state, action)


def apply_action(state: GameState, action: Action, rng: random.Random | None = None) -> ActionResult:
    """Convenience function to apply an action, reporting rejections in the result."""
    return Reducer(rng=rng).apply(state, action)
