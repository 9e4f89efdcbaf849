"""
Set identification.

A complete set is set_size cards of the same subtype. Cards are
grouped by subtype in the order they are encountered and each group is
greedily cut into chunks of set_size; the remainder stays loose.
"""

from __future__ import annotations
from typing import Iterable

from .state import Card, CardType, CardKind, GotchaKind


GOTCHA_PRIORITY = (GotchaKind.BAD, GotchaKind.TWICE, GotchaKind.ONCE)


def _group_by_subtype(cards: Iterable[Card]) -> dict[CardKind, list[Card]]:
    groups: dict[CardKind, list[Card]] = {}
    for card in cards:
        groups.setdefault(card.subtype, []).append(card)
    return groups


def find_complete_sets(
    cards: Iterable[Card],
    type_filter: CardType | None = None,
) -> list[list[Card]]:
    """Every complete set in cards, in subtype encounter order."""
    if type_filter is not None:
        cards = [c for c in cards if c.type == type_filter]

    sets: list[list[Card]] = []
    for group in _group_by_subtype(cards).values():
        size = group[0].set_size
        full = len(group) - len(group) % size
        for start in range(0, full, size):
            sets.append(group[start:start + size])
    return sets


def leftover_cards(cards: Iterable[Card], sets: list[list[Card]]) -> list[Card]:
    """Cards not consumed by sets, in their original order."""
    used = {c.id for group in sets for c in group}
    return [c for c in cards if c.id not in used]


def find_complete_sets_by_priority(cards: Iterable[Card]) -> dict[GotchaKind, list[list[Card]]]:
    """Gotcha sets bucketed bad, twice, once (dict order is processing order)."""
    buckets: dict[GotchaKind, list[list[Card]]] = {kind: [] for kind in GOTCHA_PRIORITY}
    for group in find_complete_sets(cards, CardType.GOTCHA):
        buckets[group[0].subtype].append(group)
    return buckets
