"""
Turn rotation and eligibility.

Play goes clockwise from the buyer. During the offer phase the buyer
sits out, so rotation starts with the player to the buyer's left.
A player is eligible when they have something legal to do in the
current phase; during the action phase a player who declared done is
skipped until someone plays another card.
"""

from __future__ import annotations

from .state import GameState, GamePhase, Player, OFFER_SIZE
from .phases import ADMINISTRATIVE_PHASES


def is_buyer_included(phase: GamePhase) -> bool:
    return phase != GamePhase.OFFER_PHASE


def rotation_order(buyer_index: int, player_count: int, include_buyer: bool) -> list[int]:
    """Clockwise seat order starting at the buyer (or just after them)."""
    if player_count <= 0:
        return []
    start = buyer_index if include_buyer else buyer_index + 1
    order = [(start + i) % player_count for i in range(player_count)]
    if not include_buyer:
        order.remove(buyer_index % player_count)
    return order


def has_valid_action(player: Player, phase: GamePhase, is_buyer: bool) -> bool:
    if phase == GamePhase.OFFER_PHASE:
        return not is_buyer and not player.offer and len(player.hand) >= OFFER_SIZE
    if phase == GamePhase.ACTION_PHASE:
        return bool(player.action_cards)
    if phase in (GamePhase.BUYER_FLIP, GamePhase.OFFER_SELECTION):
        return is_buyer
    return False


def is_eligible(state: GameState, index: int) -> bool:
    player = state.players[index]
    if not has_valid_action(player, state.current_phase, index == state.current_buyer_index):
        return False
    if state.current_phase == GamePhase.ACTION_PHASE:
        done = state.action_phase_done
        if index < len(done) and done[index]:
            return False
    return True


def next_eligible_player(
    from_index: int,
    state: GameState,
    visited: set[int] | None = None,
) -> int | None:
    """
    Next eligible seat after from_index in rotation order.

    from_index=-1 (or any seat outside the rotation) starts at the head
    of the rotation. The walk wraps around, so from_index itself is the
    last seat considered. Returns None when nobody is left.
    """
    visited = visited or set()
    order = rotation_order(
        state.current_buyer_index,
        state.num_players,
        is_buyer_included(state.current_phase),
    )
    start = order.index(from_index) + 1 if from_index in order else 0
    for offset in range(len(order)):
        index = order[(start + offset) % len(order)]
        if index in visited:
            continue
        if is_eligible(state, index):
            return index
    return None


def all_eligible_players_processed(state: GameState, visited: set[int]) -> bool:
    return next_eligible_player(-1, state, visited) is None


def follow_active_player(state: GameState) -> None:
    """Point the table perspective at the active player when auto-follow is on."""
    if state.auto_follow_perspective:
        state.selected_perspective = state.current_player_index


def advance_to_next_eligible_player(state: GameState) -> int | None:
    """
    Move the turn to the next eligible player within the phase.

    The current player is considered last, so a lone eligible player
    keeps the turn. Returns the new current player, or None when nobody
    can act; the reducer then advances the phase.
    """
    index = next_eligible_player(state.current_player_index, state)
    if index is None:
        return None
    state.current_player_index = index
    follow_active_player(state)
    return index


def phase_awaits_player(state: GameState) -> bool:
    """True while the current phase cannot finish without a player's input."""
    if state.pending_effect is not None:
        return True
    phase = state.current_phase
    if phase in ADMINISTRATIVE_PHASES:
        return False
    if phase == GamePhase.BUYER_FLIP:
        return any(not oc.face_up for seller in state.sellers() for oc in seller.offer)
    if phase == GamePhase.OFFER_SELECTION:
        return any(seller.offer for seller in state.sellers())
    return next_eligible_player(-1, state) is not None
