"""
Effect Resolver - Trade-ins and action-card effects.

This module handles the card-moving rules of the game:
- Gotcha trade-ins (bad, twice, once) and the buyer's steal/discard choices
- Thing trade-ins
- Offer distribution after the buyer picks an offer
- The five action-card effects and their follow-up selections
- Winner determination

Interactive effects do not pause execution. They store an effect
state on the GameState (pending_effect) and return; the matching
follow-up action resumes them. Every method here works on the
reducer's private working copy and raises a GameRuleError before
touching anything when the request is invalid.
"""

from __future__ import annotations
from dataclasses import dataclass, replace

from .state import (
    GameState, Player, Card, OfferCard, CardType, GotchaKind, ActionKind,
    GotchaEffect, FlipOneEffect, AddOneEffect, RemoveOneEffect, RemoveTwoEffect,
    StealAPointEffect, CardSelection, EffectState, WINNING_POINTS,
)
from .action import GotchaChoice
from .sets import find_complete_sets, find_complete_sets_by_priority, GOTCHA_PRIORITY
from .errors import BusinessRuleError, IdentifierError


EFFECT_LABELS: dict[type, str] = {
    GotchaEffect: "Gotcha",
    FlipOneEffect: "Flip One",
    AddOneEffect: "Add One",
    RemoveOneEffect: "Remove One",
    RemoveTwoEffect: "Remove Two",
    StealAPointEffect: "Steal A Point",
}


def effect_label(effect: EffectState) -> str:
    return EFFECT_LABELS[type(effect)]


def determine_winner(players: list[Player]) -> int | None:
    """
    The unique leader with at least WINNING_POINTS points, if any.

    A tie at the top means nobody wins yet, even above the threshold.
    """
    if not players:
        return None
    top = max(p.points for p in players)
    if top < WINNING_POINTS:
        return None
    leaders = [p for p in players if p.points == top]
    if len(leaders) > 1:
        return None
    return leaders[0].id


@dataclass
class EffectResolver:
    """
    Applies trade-ins and action-card effects to a working state.

    Stateless - all state is in GameState. Each public method returns
    human-readable change descriptions.
    """

    # ============================================================
    # Gotcha trade-ins
    # ============================================================

    def process_gotcha_tradeins(self, state: GameState) -> list[str]:
        """
        Trade in Gotcha sets until none remain or the buyer must choose.

        Runs as a work-list: find the highest-priority set anywhere at
        the table, resolve it, then scan again from the top. Moving a
        card can complete a new set, so the scan always restarts at
        bad.
        """
        changes: list[str] = []
        while state.pending_effect is None:
            found = self._next_gotcha_set(state)
            if found is None:
                break
            owner_index, kind, cards = found
            owner = state.players[owner_index]
            self._discard_from_collection(state, owner, cards)
            changes.append(f"{owner.name} traded in a Gotcha {kind.value.capitalize()} set")

            if kind == GotchaKind.BAD:
                changes.extend(self._resolve_gotcha_bad(state, owner))
            elif kind == GotchaKind.TWICE:
                changes.extend(self._start_gotcha_cycle(state, kind, owner_index, 1))
            else:
                changes.extend(self._start_gotcha_cycle(state, kind, owner_index, None))
        return changes

    def _next_gotcha_set(self, state: GameState) -> tuple[int, GotchaKind, list[Card]] | None:
        buckets = [find_complete_sets_by_priority(p.collection) for p in state.players]
        for kind in GOTCHA_PRIORITY:
            for index, player_buckets in enumerate(buckets):
                if player_buckets[kind]:
                    return index, kind, player_buckets[kind][0]
        return None

    def _resolve_gotcha_bad(self, state: GameState, owner: Player) -> list[str]:
        if owner.points <= 0:
            return [f"{owner.name} has no points to lose"]
        owner.points -= 1
        if owner.id == state.current_buyer_index:
            return [f"{owner.name} loses 1 point"]
        state.buyer.points += 1
        return [f"{owner.name} loses 1 point to {state.buyer.name}"]

    def _start_gotcha_cycle(
        self,
        state: GameState,
        kind: GotchaKind,
        affected_index: int,
        iteration: int | None,
    ) -> list[str]:
        """Open the buyer's choice for one Gotcha card, if there is one to take."""
        affected = state.players[affected_index]
        # An empty collection ends both Twice iterations at once
        if not affected.collection:
            return [f"{affected.name} has no cards left to lose"]

        if len(affected.collection) == 1:
            state.pending_effect = GotchaEffect(
                kind=kind,
                affected_player_index=affected_index,
                cards_to_select=1,
                selected_cards=(affected.collection[0],),
                awaiting_buyer_choice=True,
                twice_iteration=iteration,
            )
        else:
            state.pending_effect = GotchaEffect(
                kind=kind,
                affected_player_index=affected_index,
                cards_to_select=1,
                twice_iteration=iteration,
            )
        return [f"Buyer must resolve Gotcha {kind.value.capitalize()} against {affected.name}"]

    def select_gotcha_card(self, state: GameState, card_id: str | None) -> list[str]:
        effect = state.gotcha_effect
        if effect is None:
            raise BusinessRuleError("No Gotcha effect is currently active")
        if effect.awaiting_buyer_choice:
            raise BusinessRuleError("Buyer must choose action for already selected cards")

        affected = state.players[effect.affected_player_index]
        card = affected.find_in_collection(card_id) if card_id else None
        if card is None:
            raise IdentifierError(f"Card {card_id} is not in {affected.name}'s collection")
        if card in effect.selected_cards:
            raise BusinessRuleError(f"Card {card.name} is already selected")

        selected = effect.selected_cards + (card,)
        state.pending_effect = replace(
            effect,
            selected_cards=selected,
            awaiting_buyer_choice=len(selected) >= effect.cards_to_select,
        )
        return [f"Buyer selected {card.name} from {affected.name}"]

    def choose_gotcha_action(self, state: GameState, choice: GotchaChoice | None) -> list[str]:
        """Steal or discard the selected card, then continue the trade-ins."""
        effect = state.gotcha_effect
        if effect is None:
            raise BusinessRuleError("No Gotcha effect is currently active")
        if not effect.awaiting_buyer_choice:
            raise BusinessRuleError("Buyer must select cards before choosing action")
        if choice is None:
            raise BusinessRuleError("Choose either steal or discard")

        affected = state.players[effect.affected_player_index]
        buyer = state.buyer
        changes: list[str] = []
        for card in effect.selected_cards:
            affected.collection.remove(card)
            if choice == GotchaChoice.STEAL and affected.id != buyer.id:
                buyer.collection.append(card)
                changes.append(f"{buyer.name} stole {card.name} from {affected.name}")
            else:
                state.discard_pile.append(card)
                changes.append(f"{card.name} from {affected.name} was discarded")

        state.pending_effect = None
        if effect.kind == GotchaKind.TWICE and effect.twice_iteration == 1:
            changes.extend(self._start_gotcha_cycle(state, effect.kind, affected.id, 2))
            if state.pending_effect is not None:
                return changes

        changes.extend(self.process_gotcha_tradeins(state))
        return changes

    # ============================================================
    # Thing trade-ins and offer distribution
    # ============================================================

    def process_thing_tradeins(self, state: GameState) -> list[str]:
        changes: list[str] = []
        for player in state.players:
            for group in find_complete_sets(player.collection, CardType.THING):
                self._discard_from_collection(state, player, group)
                player.points += 1
                changes.append(f"{player.name} traded in a {group[0].name} set for 1 point")
        return changes

    def distribute_offers(self, state: GameState, seller_id: int) -> list[str]:
        """Buyer takes the chosen offer; the money bag goes to that seller."""
        buyer = state.buyer
        seller = state.players[seller_id]

        bought = [oc.card for oc in seller.offer]
        buyer.collection.extend(bought)
        seller.offer = []
        buyer.has_money = False
        seller.has_money = True
        state.next_buyer_index = seller.id

        returned = self.return_unselected_offers(state)
        summary = f"{buyer.name} bought {seller.name}'s offer ({', '.join(c.name for c in bought)})"
        if returned:
            summary += f"; {', '.join(returned)} kept their offers"
        state.previous_round_summary = summary
        return [summary, f"{seller.name} now holds the money bag"]

    def return_unselected_offers(self, state: GameState) -> list[str]:
        """Move every remaining offer into its owner's collection."""
        names = []
        for player in state.players:
            if player.offer:
                player.collection.extend(oc.card for oc in player.offer)
                player.offer = []
                names.append(player.name)
        return names

    # ============================================================
    # Offer targeting shared by the buyer flip and action effects
    # ============================================================

    def _offer_card(
        self,
        state: GameState,
        offer_id: int | None,
        card_index: int | None,
        verb: str,
    ) -> tuple[Player, OfferCard]:
        owner = state.get_player(offer_id)
        if owner is None:
            raise IdentifierError("Invalid offer ID")
        if owner.id == state.current_buyer_index:
            raise BusinessRuleError(f"Cannot {verb} cards from buyer's offer (buyer has no offer)")
        if not owner.offer:
            raise IdentifierError(f"Player has no offer to {verb} cards from")
        if card_index is None or card_index < 0 or card_index >= len(owner.offer):
            raise IdentifierError("Invalid card index")
        return owner, owner.offer[card_index]

    def flip_offer_card(self, state: GameState, offer_id: int | None, card_index: int | None) -> list[str]:
        owner, offer_card = self._offer_card(state, offer_id, card_index, "flip")
        if offer_card.face_up:
            raise BusinessRuleError("Cannot flip a card that is already face up")
        owner.offer[card_index] = replace(offer_card, face_up=True)
        return [f"Flipped {offer_card.card.name} in {owner.name}'s offer"]

    def _take_offer_cards(self, state: GameState, selections: list[CardSelection]) -> list[Card]:
        """Remove the selected offer cards, highest index first, and re-number positions."""
        taken: list[Card] = []
        touched: set[int] = set()
        for sel in sorted(selections, key=lambda s: (s.offer_id, s.card_index), reverse=True):
            owner = state.players[sel.offer_id]
            taken.append(owner.offer.pop(sel.card_index).card)
            touched.add(owner.id)
        for owner_id in touched:
            owner = state.players[owner_id]
            owner.offer = [replace(oc, position=i) for i, oc in enumerate(owner.offer)]
        state.discard_pile.extend(taken)
        return taken

    # ============================================================
    # Action cards
    # ============================================================

    def play_action_card(self, state: GameState, player_id: int | None, card_id: str | None) -> list[str]:
        """Discard an action card and open its effect."""
        player = state.get_player(player_id)
        if player is None:
            raise IdentifierError(f"Invalid player ID: {player_id}")
        if player.id != state.current_player_index:
            raise BusinessRuleError("Only the current player can play action cards")
        card = player.find_in_collection(card_id) if card_id else None
        if card is None:
            raise IdentifierError(f"Card {card_id} is not in player's collection")
        if not card.is_action:
            raise BusinessRuleError(f"Card {card.name} is not an action card")

        kind = card.subtype
        self._require_target(state, player, kind)

        player.collection.remove(card)
        state.discard_pile.append(card)
        state.pending_effect = self._open_effect(kind, player.id)
        self.reset_done_states(state)
        return [f"{player.name} played {card.name}"]

    def _open_effect(self, kind: ActionKind, player_id: int) -> EffectState:
        if kind == ActionKind.FLIP_ONE:
            return FlipOneEffect(player_id=player_id)
        if kind == ActionKind.ADD_ONE:
            return AddOneEffect(player_id=player_id)
        if kind == ActionKind.REMOVE_ONE:
            return RemoveOneEffect(player_id=player_id)
        if kind == ActionKind.REMOVE_TWO:
            return RemoveTwoEffect(player_id=player_id)
        if kind == ActionKind.STEAL_POINT:
            return StealAPointEffect(player_id=player_id)
        raise ValueError(f"Unhandled action card: {kind!r}")

    def _require_target(self, state: GameState, player: Player, kind: ActionKind) -> None:
        """Reject a card that could never be resolved."""
        offer_cards = [oc for seller in state.sellers() for oc in seller.offer]
        if kind == ActionKind.FLIP_ONE:
            if not any(not oc.face_up for oc in offer_cards):
                raise BusinessRuleError("There are no face-down offer cards to flip")
        elif kind == ActionKind.ADD_ONE:
            if not player.hand:
                raise BusinessRuleError("You have no hand cards to add to an offer")
            if not any(seller.offer for seller in state.sellers()):
                raise BusinessRuleError("There are no offers to add cards to")
        elif kind == ActionKind.REMOVE_ONE:
            if not offer_cards:
                raise BusinessRuleError("There are no offer cards to remove")
        elif kind == ActionKind.REMOVE_TWO:
            if len(offer_cards) < 2:
                raise BusinessRuleError("Remove Two needs at least two offer cards")
        elif kind == ActionKind.STEAL_POINT:
            if not any(p.points > player.points for p in state.players):
                raise BusinessRuleError("No player has more points than you")

    def reset_done_states(self, state: GameState) -> None:
        """Anyone still holding an action card may respond again."""
        state.action_phase_done = [not p.action_cards for p in state.players]

    def select_flip_one_card(self, state: GameState, offer_id: int | None, card_index: int | None) -> list[str]:
        if state.flip_one_effect is None:
            raise BusinessRuleError("No Flip One effect is currently active")
        changes = self.flip_offer_card(state, offer_id, card_index)
        state.pending_effect = None
        return changes

    def select_add_one_hand_card(self, state: GameState, card_id: str | None) -> list[str]:
        effect = state.add_one_effect
        if effect is None:
            raise BusinessRuleError("No Add One effect is currently active")
        if not effect.awaiting_hand_card_selection:
            raise BusinessRuleError("Hand card already selected, choose an offer")
        player = state.players[effect.player_id]
        card = player.find_in_hand(card_id) if card_id else None
        if card is None:
            raise IdentifierError(f"Card {card_id} is not in player's hand")

        state.pending_effect = replace(
            effect,
            awaiting_hand_card_selection=False,
            selected_hand_card=card,
            awaiting_offer_selection=True,
        )
        return [f"{player.name} chose a card to add"]

    def select_add_one_offer(self, state: GameState, offer_id: int | None) -> list[str]:
        effect = state.add_one_effect
        if effect is None:
            raise BusinessRuleError("No Add One effect is currently active")
        if not effect.awaiting_offer_selection or effect.selected_hand_card is None:
            raise BusinessRuleError("Select a hand card before choosing an offer")
        owner = state.get_player(offer_id)
        if owner is None:
            raise IdentifierError("Invalid offer ID")
        if owner.id == state.current_buyer_index:
            raise BusinessRuleError("Cannot add cards to buyer's offer (buyer has no offer)")
        if not owner.offer:
            raise IdentifierError("Player has no offer to add cards to")

        player = state.players[effect.player_id]
        card = effect.selected_hand_card
        player.hand.remove(card)
        owner.offer.append(OfferCard(card=card, face_up=False, position=len(owner.offer)))
        state.pending_effect = None
        return [f"{player.name} added a face-down card to {owner.name}'s offer"]

    def select_remove_one_card(self, state: GameState, offer_id: int | None, card_index: int | None) -> list[str]:
        if state.remove_one_effect is None:
            raise BusinessRuleError("No Remove One effect is currently active")
        owner, _ = self._offer_card(state, offer_id, card_index, "remove")
        taken = self._take_offer_cards(state, [CardSelection(owner.id, card_index)])
        state.pending_effect = None
        return [f"Removed {taken[0].name} from {owner.name}'s offer"]

    def select_remove_two_card(self, state: GameState, offer_id: int | None, card_index: int | None) -> list[str]:
        """Record one selection; the second selection removes both cards."""
        effect = state.remove_two_effect
        if effect is None:
            raise BusinessRuleError("No Remove Two effect is currently active")
        owner, offer_card = self._offer_card(state, offer_id, card_index, "remove")
        selection = CardSelection(owner.id, card_index)
        if selection in effect.selected_cards:
            raise BusinessRuleError("Card is already selected for removal")

        selected = effect.selected_cards + (selection,)
        remaining = effect.cards_to_select - 1
        if remaining > 0:
            state.pending_effect = replace(effect, selected_cards=selected, cards_to_select=remaining)
            return [f"Selected {offer_card.card.name} in {owner.name}'s offer for removal"]

        taken = self._take_offer_cards(state, list(selected))
        state.pending_effect = None
        return [f"Removed {', '.join(c.name for c in taken)} from offers"]

    def select_steal_a_point_target(self, state: GameState, target_player_id: int | None) -> list[str]:
        effect = state.steal_a_point_effect
        if effect is None:
            raise BusinessRuleError("No Steal A Point effect is currently active")
        target = state.get_player(target_player_id)
        if target is None:
            raise IdentifierError(f"Invalid player ID: {target_player_id}")
        thief = state.players[effect.player_id]
        if target.id == thief.id:
            raise BusinessRuleError("Cannot steal points from yourself")
        if target.points <= thief.points:
            raise BusinessRuleError("Target player must have more points than you")
        if target.points <= 0:
            raise BusinessRuleError("Target player has no points to steal")

        target.points -= 1
        thief.points += 1
        state.pending_effect = None
        return [f"{thief.name} stole a point from {target.name}"]

    # ============================================================
    # Helpers
    # ============================================================

    def _discard_from_collection(self, state: GameState, player: Player, cards: list[Card]) -> None:
        for card in cards:
            player.collection.remove(card)
        state.discard_pile.extend(cards)
