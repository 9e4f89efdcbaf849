"""
Tests for API layer.

Tests:
- Lobby endpoints
- Playing through the action endpoint
- Seat-scoped state views
- Error handling and status codes
"""

import pytest

from ..api.schemas import ActionRequest
from ..engine_core.action import ActionType


def create_lobby(client, names=("Ana", "Ben", "Cy")):
    """Open a game over HTTP; returns (game_id, game_code, player ids by name)."""
    created = client.post("/api/v1/games", json={"host_name": names[0]}).json()
    ids = {names[0]: created["player_id"]}
    for name in names[1:]:
        joined = client.post(f"/api/v1/games/{created['game_code']}/join", json={"player_name": name})
        assert joined.status_code == 200
        ids[name] = joined.json()["player_id"]
    return created["game_id"], created["game_code"], ids


def own_hand(client, game_id, seat_ids, seat):
    """The hand of seat, read from that seat's own view."""
    view = client.get(f"/api/v1/games/{game_id}/state", params={"player_id": seat_ids[seat]}).json()
    return view["players"][seat]["hand"]


@pytest.fixture
def started(client):
    """A started game; the returned state is the public view."""
    game_id, code, ids = create_lobby(client)
    response = client.post(f"/api/v1/games/{code}/start", json={"player_id": ids["Ana"], "seed": 7})
    assert response.status_code == 200
    seat_ids = [ids["Ana"], ids["Ben"], ids["Cy"]]
    return game_id, seat_ids, client.get(f"/api/v1/games/{game_id}/state").json()


class TestLobbyEndpoints:

    def test_create_game(self, client):
        response = client.post("/api/v1/games", json={"host_name": "Ana"})

        assert response.status_code == 200
        data = response.json()
        assert len(data["game_code"]) == 6
        assert data["lobby"]["status"] == "lobby"
        assert data["lobby"]["players"][0]["is_host"]
        assert not data["lobby"]["can_start"]

    def test_empty_host_name(self, client):
        response = client.post("/api/v1/games", json={"host_name": ""})

        assert response.status_code == 422

    def test_get_lobby(self, client):
        _, code, _ = create_lobby(client)

        response = client.get(f"/api/v1/games/{code}")

        assert response.status_code == 200
        data = response.json()
        assert [p["name"] for p in data["players"]] == ["Ana", "Ben", "Cy"]
        assert data["can_start"]
        assert data["min_players"] == 3
        assert data["max_players"] == 6

    def test_unknown_code(self, client):
        response = client.get("/api/v1/games/ZZZZZZ")

        assert response.status_code == 404
        assert response.json()["error_code"] == "GAME_NOT_FOUND"

    def test_duplicate_name(self, client):
        _, code, _ = create_lobby(client)

        response = client.post(f"/api/v1/games/{code}/join", json={"player_name": "Ben"})

        assert response.status_code == 409
        assert response.json()["error_code"] == "LOBBY_ERROR"
        assert response.json()["error"] == "Player name already taken"

    def test_start_by_non_host(self, client):
        _, code, ids = create_lobby(client)

        response = client.post(f"/api/v1/games/{code}/start", json={"player_id": ids["Ben"]})

        assert response.status_code == 409

    def test_capacity(self, client):
        for name in ("Ana", "Ben", "Cy"):
            client.post("/api/v1/games", json={"host_name": name})

        response = client.post("/api/v1/games", json={"host_name": "Dee"})

        assert response.status_code == 503
        assert response.json()["error_code"] == "CAPACITY_EXCEEDED"

    def test_leave_lobby(self, client):
        game_id, code, ids = create_lobby(client)

        response = client.delete(f"/api/v1/games/{game_id}/players/{ids['Cy']}")

        assert response.status_code == 200
        assert response.json() == {"success": True, "game_ended": False}
        assert len(client.get(f"/api/v1/games/{code}").json()["players"]) == 2

    def test_reconnect_after_drop(self, client):
        game_id, code, ids = create_lobby(client, ("Ana", "Ben", "Cy", "Dee"))
        client.post(f"/api/v1/games/{code}/start", json={"player_id": ids["Ana"]})
        client.delete(f"/api/v1/games/{game_id}/players/{ids['Dee']}")

        response = client.post(f"/api/v1/games/{game_id}/players/{ids['Dee']}/reconnect")

        assert response.status_code == 200
        seats = {p["name"]: p for p in response.json()["lobby"]["players"]}
        assert seats["Dee"]["connected"]
        assert seats["Dee"]["seat"] == 3

    def test_reconnect_unknown_player(self, client):
        game_id, _, _ = create_lobby(client)

        response = client.post(f"/api/v1/games/{game_id}/players/stranger/reconnect")

        assert response.status_code == 409
        assert response.json()["error"] == "Player not found in game"


class TestGameEndpoints:

    def test_start_returns_hosts_view(self, client):
        _, code, ids = create_lobby(client)

        response = client.post(f"/api/v1/games/{code}/start", json={"player_id": ids["Ana"], "seed": 7})

        players = response.json()["players"]
        assert players[0]["hand"] is not None
        assert players[1]["hand"] is None

    def test_started_state(self, started):
        _, _, state = started

        assert state["status"] == "playing"
        assert state["phase"] == "offer_phase"
        assert state["round"] == 1
        assert len(state["players"]) == 3
        assert "place_offer" in state["allowed_actions"]

    def test_state_hides_other_hands(self, client, started):
        game_id, seat_ids, _ = started

        response = client.get(f"/api/v1/games/{game_id}/state", params={"player_id": seat_ids[1]})

        players = response.json()["players"]
        assert players[1]["hand"] is not None
        assert len(players[1]["hand"]) == 5
        assert players[0]["hand"] is None
        assert players[0]["hand_count"] == 5

    def test_public_view_hides_every_hand(self, started):
        _, _, state = started

        for player in state["players"]:
            assert player["hand"] is None
            assert player["hand_count"] == 5

    def test_public_view_hides_face_down_offer_cards(self, client, started):
        game_id, seat_ids, state = started
        seat = state["current_player_index"]
        hand = own_hand(client, game_id, seat_ids, seat)
        client.post(f"/api/v1/games/{game_id}/actions", json={
            "player_id": seat_ids[seat],
            "action_type": "place_offer",
            "card_ids": [c["id"] for c in hand[:3]],
            "face_up_index": 1,
        })

        offer = client.get(f"/api/v1/games/{game_id}/state").json()["players"][seat]["offer"]

        assert [oc["card"] is not None for oc in offer] == [False, True, False]

    def test_place_offer(self, client, started):
        game_id, seat_ids, state = started
        seat = state["current_player_index"]
        hand = own_hand(client, game_id, seat_ids, seat)

        response = client.post(f"/api/v1/games/{game_id}/actions", json={
            "player_id": seat_ids[seat],
            "action_type": "place_offer",
            "card_ids": [c["id"] for c in hand[:3]],
            "face_up_index": 0,
        })

        assert response.status_code == 200
        data = response.json()
        assert data["success"]
        assert data["state_changes"]
        offer = data["state"]["players"][seat]["offer"]
        assert [oc["face_up"] for oc in offer] == [True, False, False]
        assert all(oc["card"] is not None for oc in offer)

    def test_face_down_cards_hidden_from_others(self, client, started):
        game_id, seat_ids, state = started
        seat = state["current_player_index"]
        hand = own_hand(client, game_id, seat_ids, seat)
        client.post(f"/api/v1/games/{game_id}/actions", json={
            "player_id": seat_ids[seat],
            "action_type": "place_offer",
            "card_ids": [c["id"] for c in hand[:3]],
            "face_up_index": 0,
        })
        buyer = state["current_buyer_index"]

        view = client.get(f"/api/v1/games/{game_id}/state", params={"player_id": seat_ids[buyer]}).json()

        offer = view["players"][seat]["offer"]
        assert offer[0]["card"] is not None
        assert offer[1]["card"] is None
        assert offer[2]["card"] is None

    def test_rule_violation(self, client, started):
        game_id, seat_ids, state = started
        seat = state["current_player_index"]
        hand = own_hand(client, game_id, seat_ids, seat)

        response = client.post(f"/api/v1/games/{game_id}/actions", json={
            "player_id": seat_ids[seat],
            "action_type": "place_offer",
            "card_ids": [hand[0]["id"], hand[1]["id"]],
            "face_up_index": 0,
        })

        assert response.status_code == 400
        assert response.json()["error_code"] == "CARDINALITY_VIOLATION"
        assert response.json()["error"] == "Offer must contain exactly 3 cards, got 2"

    def test_wrong_seat(self, client, started):
        game_id, seat_ids, state = started
        buyer = state["current_buyer_index"]

        response = client.post(f"/api/v1/games/{game_id}/actions", json={
            "player_id": seat_ids[(buyer + 1) % 3],
            "action_type": "flip_card",
            "offer_id": (buyer + 2) % 3,
            "card_index": 1,
        })

        assert response.status_code == 403
        assert response.json()["error_code"] == "NOT_PERMITTED"

    def test_phase_violation(self, client, started):
        game_id, seat_ids, state = started
        buyer = state["current_buyer_index"]

        response = client.post(f"/api/v1/games/{game_id}/actions", json={
            "player_id": seat_ids[buyer],
            "action_type": "flip_card",
            "offer_id": (buyer + 1) % 3,
            "card_index": 1,
        })

        assert response.status_code == 400
        assert response.json()["error_code"] == "PHASE_VIOLATION"

    def test_change_perspective(self, client, started):
        game_id, seat_ids, _ = started

        response = client.post(f"/api/v1/games/{game_id}/actions", json={
            "player_id": seat_ids[0],
            "action_type": "change_perspective",
            "target_player_id": 2,
        })

        assert response.status_code == 200
        assert response.json()["state"]["selected_perspective"] == 2
        assert not response.json()["state"]["auto_follow_perspective"]

    def test_unknown_action_type(self, client, started):
        game_id, seat_ids, _ = started

        response = client.post(f"/api/v1/games/{game_id}/actions", json={
            "player_id": seat_ids[0],
            "action_type": "shuffle_everything",
        })

        assert response.status_code == 422

    def test_unknown_game(self, client):
        response = client.get("/api/v1/games/missing/state")

        assert response.status_code == 404
        assert response.json()["error_code"] == "GAME_NOT_FOUND"

    def test_unknown_viewer(self, client, started):
        game_id, _, _ = started

        response = client.get(f"/api/v1/games/{game_id}/state", params={"player_id": "stranger"})

        assert response.status_code == 409


class TestBuildAction:
    """Tests for turning requests into engine actions."""

    def test_seat_fills_player_id(self, service):
        request = ActionRequest(player_id="p", action_type=ActionType.DECLARE_DONE)

        action = service.build_action(request, seat=2)

        assert action.payload.player_id == 2

    def test_seat_is_the_buyer_for_select_offer(self, service):
        request = ActionRequest(player_id="p", action_type=ActionType.SELECT_OFFER, seller_id=1)

        action = service.build_action(request, seat=0)

        assert action.payload.buyer_id == 0
        assert action.payload.seller_id == 1

    def test_perspective_targets_requested_seat(self, service):
        request = ActionRequest(player_id="p", action_type=ActionType.CHANGE_PERSPECTIVE, target_player_id=1)

        action = service.build_action(request, seat=2)

        assert action.payload.player_id == 1


class TestSystemEndpoints:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "offerup-engine"
        assert data["active_games"] == 0

    def test_stats(self, client):
        create_lobby(client)
        client.post("/api/v1/games", json={"host_name": "Solo"})

        data = client.get("/api/v1/stats").json()

        assert data["total_games"] == 2
        assert data["total_players"] == 4
        assert data["lobby"] == 2
        assert data["playing"] == 0

    def test_phases(self, client):
        phases = client.get("/api/v1/phases").json()["phases"]

        assert [p["phase"] for p in phases][:3] == ["buyer_assignment", "deal", "offer_phase"]
        assert len(phases) == 10
        offer_phase = phases[2]
        assert offer_phase["instructions"] == "Offer phase: Sellers place their 3-card offers..."
        assert "place_offer" in offer_phase["allowed_actions"]

    def test_root(self, client):
        data = client.get("/").json()

        assert data["name"] == "Offer Up Engine API"
        assert data["docs"] == "/api/docs"
