"""
Card catalog and deck factory.

The deck is fixed at 120 cards. build_deck() always returns them in
the same order; shuffle() is the only source of disorder and takes an
injectable generator so tests can pin it.
"""

from __future__ import annotations
import random
from typing import Sequence, TypeVar

from .state import (
    GameState, Card, CardType, CardKind, ThingKind, GotchaKind, ActionKind, HAND_SIZE,
)


T = TypeVar("T")


# subtype -> (name, count in deck, set size, effect text)
CATALOG: dict[CardKind, tuple[str, int, int, str | None]] = {
    ThingKind.GIANT: ("Giant Thing", 4, 1, None),
    ThingKind.BIG: ("Big Thing", 16, 2, None),
    ThingKind.MEDIUM: ("Medium Thing", 25, 3, None),
    ThingKind.TINY: ("Tiny Thing", 20, 4, None),
    GotchaKind.ONCE: ("Gotcha Once", 10, 1, None),
    GotchaKind.TWICE: ("Gotcha Twice", 10, 2, None),
    GotchaKind.BAD: ("Gotcha Bad", 12, 3, None),
    ActionKind.FLIP_ONE: ("Flip One", 5, 1, "Flip one face-down card in any offer"),
    ActionKind.ADD_ONE: ("Add One", 6, 1, "Add one card from your hand to any offer"),
    ActionKind.REMOVE_ONE: ("Remove One", 6, 1, "Remove one card from any offer"),
    ActionKind.REMOVE_TWO: ("Remove Two", 3, 1, "Remove two cards from any offers"),
    ActionKind.STEAL_POINT: (
        "Steal A Point", 3, 1, "Steal one point from a player with more points than you"
    ),
}

DECK_SIZE = sum(entry[1] for entry in CATALOG.values())


def card_type_of(subtype: CardKind) -> CardType:
    if isinstance(subtype, ThingKind):
        return CardType.THING
    if isinstance(subtype, GotchaKind):
        return CardType.GOTCHA
    if isinstance(subtype, ActionKind):
        return CardType.ACTION
    raise ValueError(f"Unknown card subtype: {subtype!r}")


def make_card(card_type: CardType, subtype: CardKind, index: int) -> Card:
    """Create the card with the given subtype and per-subtype index."""
    if card_type_of(subtype) != card_type:
        raise ValueError(f"Subtype {subtype.value} does not belong to {card_type.value} cards")

    name, _, set_size, effect = CATALOG[subtype]
    if card_type == CardType.GOTCHA:
        card_id = f"gotcha-{subtype.value}-{index}"
    else:
        card_id = f"{subtype.value}-{index}"

    return Card(
        id=card_id,
        type=card_type,
        subtype=subtype,
        name=name,
        set_size=set_size,
        effect=effect,
    )


def build_deck() -> list[Card]:
    """All 120 cards in catalog order: Things, Gotchas, then Actions."""
    deck: list[Card] = []
    for subtype, (_, count, _, _) in CATALOG.items():
        card_type = card_type_of(subtype)
        for i in range(count):
            deck.append(make_card(card_type, subtype, i))
    return deck


def shuffle(sequence: Sequence[T], rng: random.Random | None = None) -> list[T]:
    """Return a shuffled copy; the input is left untouched."""
    rng = rng or random.Random()
    result = list(sequence)
    rng.shuffle(result)
    return result


def deal_cards(state: GameState) -> list[str]:
    """
    Fill every hand up to HAND_SIZE, one card per player per pass.

    Cards come off the front of the draw pile. An empty draw pile is
    refilled by shuffling the discard pile; when both are empty dealing
    stops and the remaining hands stay short.
    """
    dealt = [0] * state.num_players
    while True:
        needy = [p for p in state.players if len(p.hand) < HAND_SIZE]
        if not needy:
            break
        for player in needy:
            if not state.draw_pile:
                if not state.discard_pile:
                    return _deal_summary(state, dealt, exhausted=True)
                state.draw_pile = shuffle(state.discard_pile, state.next_rng())
                state.discard_pile = []
            player.hand.append(state.draw_pile.pop(0))
            dealt[player.id] += 1
    return _deal_summary(state, dealt, exhausted=False)


def _deal_summary(state: GameState, dealt: list[int], exhausted: bool) -> list[str]:
    changes = [
        f"Dealt {count} card{'s' if count != 1 else ''} to {state.players[i].name}"
        for i, count in enumerate(dealt) if count
    ]
    if exhausted:
        changes.append("The deck ran out; some hands are short")
    return changes
