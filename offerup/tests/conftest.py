"""
Pytest fixtures for Offer Up tests.
"""

import random

import pytest

from ..engine_core.action import Action
from ..engine_core.reducer import Reducer, apply_action, create_initial_state
from ..engine_core.state import GameState, GamePhase, ThingKind
from ..session import GameRegistry
from ..api.service import APIService
from .factories import card, offer, build_table


class FakeClock:
    """Manually advanced stand-in for time.time."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def reducer() -> Reducer:
    return Reducer(rng=random.Random(42))


@pytest.fixture
def seeded_game() -> GameState:
    """A three-player game just after START_GAME, waiting for offers."""
    result = apply_action(create_initial_state(), Action.start_game(["Ana", "Ben", "Cy"], seed=7))
    assert result.success, result.error
    return result.new_state


@pytest.fixture
def selection_table() -> GameState:
    """
    Ana buys this round; Ben and Cy have Thing-only offers on the table.

    No Gotcha or action cards anywhere, so buying an offer runs the
    whole end of the round without stopping.
    """
    return build_table(
        phase=GamePhase.OFFER_SELECTION,
        hands={
            0: [card(ThingKind.GIANT, 0), card(ThingKind.GIANT, 1)],
            1: [card(ThingKind.TINY, 10), card(ThingKind.TINY, 11)],
            2: [card(ThingKind.TINY, 12), card(ThingKind.TINY, 13)],
        },
        offers={
            1: offer([card(ThingKind.MEDIUM, 0), card(ThingKind.MEDIUM, 1), card(ThingKind.BIG, 0)]),
            2: offer([card(ThingKind.TINY, 0), card(ThingKind.TINY, 1), card(ThingKind.BIG, 1)]),
        },
        draw_pile=[card(ThingKind.MEDIUM, i) for i in range(10, 22)],
    )


@pytest.fixture
def action_table() -> GameState:
    """
    Action phase with Ben to play; Ana is the buyer.

    Ben offers medium/medium/big with the first card up, Cy offers
    three tiny cards with the first card up. Tests give Ben (and
    sometimes Cy) the action cards they need.
    """
    return build_table(
        phase=GamePhase.ACTION_PHASE,
        current=1,
        hands={
            1: [card(ThingKind.GIANT, 0), card(ThingKind.BIG, 3)],
            2: [card(ThingKind.GIANT, 1)],
        },
        offers={
            1: offer([card(ThingKind.MEDIUM, 0), card(ThingKind.MEDIUM, 1), card(ThingKind.BIG, 0)]),
            2: offer([card(ThingKind.TINY, 0), card(ThingKind.TINY, 1), card(ThingKind.TINY, 2)]),
        },
        action_phase_done=[True, False, True],
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry(clock) -> GameRegistry:
    return GameRegistry(max_games=3, stale_after_seconds=60, rng=random.Random(5), clock=clock)


@pytest.fixture
def service(registry) -> APIService:
    return APIService(registry=registry)


@pytest.fixture
def client(service):
    """TestClient over an app backed by the test registry."""
    from fastapi.testclient import TestClient
    from ..api.app import create_app

    return TestClient(create_app(service))
