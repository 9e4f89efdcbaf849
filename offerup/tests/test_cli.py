"""
Tests for the command-line interface.
"""

import pytest

from ..cli import main


class TestCLI:

    def test_deck(self, capsys):
        main(["deck"])

        out = capsys.readouterr().out
        assert "Gotcha Twice" in out
        assert "Total: 120 cards" in out

    def test_new_game(self, capsys):
        main(["new", "Ana", "Ben", "Cy", "--seed", "7"])

        out = capsys.readouterr().out
        assert "Seed: 7" in out
        assert "Round 1 - Offer phase" in out
        assert "(buyer)" in out
        assert "Draw pile: 105 cards" in out

    def test_new_game_rejects_two_players(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["new", "Ana", "Ben"])

        assert exc_info.value.code == 1
        assert "Invalid player count: 2" in capsys.readouterr().out

    def test_no_command(self):
        with pytest.raises(SystemExit):
            main([])
