"""
Game State - The complete table state for one game of Offer Up.

Design principles:
- One GameState value per game, passed explicitly (no module globals)
- The reducer never mutates the state it is given; it works on clone()
- At most one interactive effect is pending at a time (pending_effect)
- Serializable: plain dataclasses, enums and lists
"""

from __future__ import annotations
from dataclasses import dataclass, field
from copy import deepcopy
from enum import Enum
import random
from typing import Union


HAND_SIZE = 5
OFFER_SIZE = 3
WINNING_POINTS = 5
MIN_PLAYERS = 3
MAX_PLAYERS = 6
MAX_NAME_LENGTH = 50


class GamePhase(Enum):
    """The ten phases of a round, in play order."""
    BUYER_ASSIGNMENT = "buyer_assignment"
    DEAL = "deal"
    OFFER_PHASE = "offer_phase"
    BUYER_FLIP = "buyer_flip"
    ACTION_PHASE = "action_phase"
    OFFER_SELECTION = "offer_selection"
    OFFER_DISTRIBUTION = "offer_distribution"
    GOTCHA_TRADEINS = "gotcha_tradeins"
    THING_TRADEINS = "thing_tradeins"
    WINNER_DETERMINATION = "winner_determination"


class CardType(Enum):
    THING = "thing"
    GOTCHA = "gotcha"
    ACTION = "action"


class ThingKind(Enum):
    GIANT = "giant"
    BIG = "big"
    MEDIUM = "medium"
    TINY = "tiny"


class GotchaKind(Enum):
    ONCE = "once"
    TWICE = "twice"
    BAD = "bad"


class ActionKind(Enum):
    FLIP_ONE = "flip-one"
    ADD_ONE = "add-one"
    REMOVE_ONE = "remove-one"
    REMOVE_TWO = "remove-two"
    STEAL_POINT = "steal-point"


CardKind = Union[ThingKind, GotchaKind, ActionKind]


@dataclass(frozen=True)
class Card:
    """
    A physical card.

    Cards are created once by the deck factory and then only move
    between zones. The id is unique across the 120-card deck.
    """
    id: str
    type: CardType
    subtype: CardKind
    name: str
    set_size: int
    effect: str | None = None

    @property
    def is_action(self) -> bool:
        return self.type == CardType.ACTION


@dataclass(frozen=True)
class OfferCard:
    """A card committed to a seller's offer."""
    card: Card
    face_up: bool
    position: int


@dataclass
class Player:
    """One seat at the table."""
    id: int
    name: str
    hand: list[Card] = field(default_factory=list)
    offer: list[OfferCard] = field(default_factory=list)
    collection: list[Card] = field(default_factory=list)
    points: int = 0
    has_money: bool = False

    @property
    def action_cards(self) -> list[Card]:
        return [c for c in self.collection if c.is_action]

    def find_in_hand(self, card_id: str) -> Card | None:
        for card in self.hand:
            if card.id == card_id:
                return card
        return None

    def find_in_collection(self, card_id: str) -> Card | None:
        for card in self.collection:
            if card.id == card_id:
                return card
        return None

    def all_cards(self) -> list[Card]:
        return self.hand + [oc.card for oc in self.offer] + self.collection


# ============================================================
# Effect states
#
# Each variant is an explicit continuation: the awaiting_* flags
# say which follow-up action the engine will accept next.
# ============================================================

@dataclass(frozen=True)
class GotchaEffect:
    """Buyer interaction required for a Gotcha Once/Twice set."""
    kind: GotchaKind
    affected_player_index: int
    cards_to_select: int
    selected_cards: tuple[Card, ...] = ()
    awaiting_buyer_choice: bool = False
    twice_iteration: int | None = None


@dataclass(frozen=True)
class FlipOneEffect:
    player_id: int
    awaiting_card_selection: bool = True


@dataclass(frozen=True)
class AddOneEffect:
    player_id: int
    awaiting_hand_card_selection: bool = True
    selected_hand_card: Card | None = None
    awaiting_offer_selection: bool = False


@dataclass(frozen=True)
class RemoveOneEffect:
    player_id: int
    awaiting_card_selection: bool = True


@dataclass(frozen=True)
class CardSelection:
    """A (seller, card index) pair picked from an offer."""
    offer_id: int
    card_index: int


@dataclass(frozen=True)
class RemoveTwoEffect:
    player_id: int
    awaiting_card_selection: bool = True
    selected_cards: tuple[CardSelection, ...] = ()
    cards_to_select: int = 2


@dataclass(frozen=True)
class StealAPointEffect:
    player_id: int
    awaiting_target_selection: bool = True


EffectState = Union[
    GotchaEffect,
    FlipOneEffect,
    AddOneEffect,
    RemoveOneEffect,
    RemoveTwoEffect,
    StealAPointEffect,
]


@dataclass
class GameState:
    """
    Complete game state at a point in time.

    This is the canonical state that the engine operates on.
    All state changes go through the reducer.
    """
    players: list[Player] = field(default_factory=list)
    current_buyer_index: int = 0
    next_buyer_index: int = 0
    current_phase: GamePhase = GamePhase.BUYER_ASSIGNMENT
    current_player_index: int = 0
    round: int = 1

    draw_pile: list[Card] = field(default_factory=list)
    discard_pile: list[Card] = field(default_factory=list)

    winner: int | None = None

    # Suspension point for interactive effects
    pending_effect: EffectState | None = None

    # Action phase bookkeeping, indexed by player
    action_phase_done: list[bool] = field(default_factory=list)

    # Presentation helpers
    selected_perspective: int = 0
    auto_follow_perspective: bool = True
    phase_instructions: str = ""
    previous_round_summary: str | None = None
    game_started: bool = False

    # Randomness: every shuffle derives its own generator from these
    random_seed: int | None = None
    shuffle_count: int = 0

    @property
    def num_players(self) -> int:
        return len(self.players)

    @property
    def buyer(self) -> Player:
        return self.players[self.current_buyer_index]

    @property
    def current_player(self) -> Player:
        return self.players[self.current_player_index]

    def get_player(self, index: int | None) -> Player | None:
        """Get player by index, None when out of range."""
        if index is None or index < 0 or index >= len(self.players):
            return None
        return self.players[index]

    def sellers(self) -> list[Player]:
        return [p for p in self.players if p.id != self.current_buyer_index]

    # Named views over the single effect slot

    @property
    def gotcha_effect(self) -> GotchaEffect | None:
        return self.pending_effect if isinstance(self.pending_effect, GotchaEffect) else None

    @property
    def flip_one_effect(self) -> FlipOneEffect | None:
        return self.pending_effect if isinstance(self.pending_effect, FlipOneEffect) else None

    @property
    def add_one_effect(self) -> AddOneEffect | None:
        return self.pending_effect if isinstance(self.pending_effect, AddOneEffect) else None

    @property
    def remove_one_effect(self) -> RemoveOneEffect | None:
        return self.pending_effect if isinstance(self.pending_effect, RemoveOneEffect) else None

    @property
    def remove_two_effect(self) -> RemoveTwoEffect | None:
        return self.pending_effect if isinstance(self.pending_effect, RemoveTwoEffect) else None

    @property
    def steal_a_point_effect(self) -> StealAPointEffect | None:
        return self.pending_effect if isinstance(self.pending_effect, StealAPointEffect) else None

    def card_ids(self) -> list[str]:
        """Ids of every card on the table, across all zones."""
        ids = [c.id for c in self.draw_pile] + [c.id for c in self.discard_pile]
        for player in self.players:
            ids.extend(c.id for c in player.all_cards())
        return ids

    def card_count(self) -> int:
        return len(self.card_ids())

    def next_rng(self) -> random.Random:
        """
        Generator for the next shuffle.

        Seeded from (random_seed, shuffle_count) so that replaying the
        same actions from the same seed reproduces every shuffle.
        """
        self.shuffle_count += 1
        return random.Random(f"{self.random_seed}-{self.shuffle_count}")

    def clone(self) -> GameState:
        """Deep copy the state."""
        return deepcopy(self)
