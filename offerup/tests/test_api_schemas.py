"""
Tests for API Pydantic schemas.

Validates that:
- Request/response models serialize correctly
- Error codes are properly structured
- The OpenAPI schema lists every endpoint with its response model
"""

import pytest
from pydantic import ValidationError


class TestPydanticSchemas:
    """Tests for Pydantic schema validation."""

    def test_action_request_parses_action_type(self):
        """Action types are sent as their lowercase values."""
        from offerup.api.schemas import ActionRequest
        from offerup.engine_core.action import ActionType, GotchaChoice

        request = ActionRequest.model_validate({
            "player_id": "p1",
            "action_type": "choose_gotcha_action",
            "gotcha_choice": "steal",
        })

        assert request.action_type == ActionType.CHOOSE_GOTCHA_ACTION
        assert request.gotcha_choice == GotchaChoice.STEAL

    def test_action_request_rejects_unknown_type(self):
        from offerup.api.schemas import ActionRequest

        with pytest.raises(ValidationError):
            ActionRequest(player_id="p1", action_type="shuffle_everything")

    def test_host_name_length(self):
        from offerup.api.schemas import CreateGameRequest

        with pytest.raises(ValidationError):
            CreateGameRequest(host_name="x" * 21)

    def test_player_info_hidden_hand(self):
        """A hidden hand serializes as null with its count kept."""
        from offerup.api.schemas import PlayerInfo

        info = PlayerInfo(id=1, name="Ben", hand_count=5)
        data = info.model_dump()

        assert data["hand"] is None
        assert data["hand_count"] == 5
        assert data["offer"] == []

    def test_game_state_response_schema(self):
        from offerup.api.schemas import (
            GameStateResponse, GameStatusValue, PlayerInfo, EffectInfo,
        )

        response = GameStateResponse(
            game_id="game-1",
            status=GameStatusValue.PLAYING,
            round=2,
            phase="action_phase",
            phase_instructions="Action phase: Players may play action cards...",
            current_player_index=1,
            current_buyer_index=0,
            next_buyer_index=0,
            players=[PlayerInfo(id=0, name="Ana", is_buyer=True), PlayerInfo(id=1, name="Ben", is_current=True)],
            draw_pile_count=80,
            discard_pile_count=12,
            pending_effect=EffectInfo(kind="flip_one", player_id=1),
        )

        data = response.model_dump(mode="json")
        assert data["status"] == "playing"
        assert data["pending_effect"]["kind"] == "flip_one"
        assert data["winner"] is None
        assert data["auto_follow_perspective"] is True

    def test_error_response_schema(self):
        from offerup.api.schemas import ErrorResponse, ErrorCode

        response = ErrorResponse(error="Game is over - no actions allowed", error_code=ErrorCode.GAME_OVER)

        data = response.model_dump(mode="json")
        assert data["error_code"] == "GAME_OVER"
        assert data["details"] is None


class TestErrorCodes:
    """Tests for error code coverage."""

    def test_engine_codes_are_defined(self):
        """Every code the engine and registry produce has an API code."""
        from offerup.api.schemas import ErrorCode
        from offerup.engine_core.errors import ViolationKind
        from offerup.engine_core.reducer import GAME_OVER
        from offerup.session.manager import NOT_PERMITTED

        for kind in ViolationKind:
            assert ErrorCode(kind.value).value == kind.value
        assert ErrorCode(GAME_OVER) == ErrorCode.GAME_OVER
        assert ErrorCode(NOT_PERMITTED) == ErrorCode.NOT_PERMITTED

    def test_error_code_values_are_strings(self):
        """Error codes are string enums for JSON serialization."""
        from offerup.api.schemas import ErrorCode

        for code in ErrorCode:
            assert isinstance(code.value, str)
            assert code.value == code.value.upper()


class TestOpenAPISchema:
    """Tests for OpenAPI schema generation."""

    @pytest.fixture
    def schema(self):
        from offerup.api.app import app
        from fastapi.openapi.utils import get_openapi

        return get_openapi(
            title=app.title,
            version=app.version,
            routes=app.routes,
        )

    def test_openapi_schema_generates(self, schema):
        assert "paths" in schema
        assert "schemas" in schema["components"]

    def test_response_models_in_schema(self, schema):
        schemas = schema["components"]["schemas"]

        for name in ("JoinResponse", "LobbyResponse", "GameStateResponse", "ActionResponse", "StatsResponse", "ErrorResponse"):
            assert name in schemas, f"Missing schema: {name}"

    def test_endpoints_present(self, schema):
        paths = schema["paths"]

        assert "post" in paths["/api/v1/games"]
        assert "post" in paths["/api/v1/games/{game_code}/join"]
        assert "post" in paths["/api/v1/games/{game_code}/start"]
        assert "get" in paths["/api/v1/games/{game_id}/state"]
        assert "delete" in paths["/api/v1/games/{game_id}/players/{player_id}"]
        assert "get" in paths["/api/v1/phases"]
        assert "get" in paths["/api/v1/stats"]
        assert "post" in paths["/api/v1/games/{game_id}/players/{player_id}/reconnect"]

        submit = paths["/api/v1/games/{game_id}/actions"]["post"]
        for status in ("200", "400", "403", "404"):
            assert status in submit["responses"]
