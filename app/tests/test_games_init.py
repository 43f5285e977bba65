# app/tests/test_games_init.py

import services.games as games
from services.games import LudoEngine
from services.game_engine_interface import GameEngineInterface
from test_helpers import make_state


class TestGamesInit:
    """Test suite for games/__init__.py module"""

    def test_exports_resolve(self):
        """Test that every exported name is importable from the package"""
        for name in games.__all__:
            assert getattr(games, name) is not None

    def test_engine_is_interface_subclass(self):
        """Test that the exported engine implements the interface"""
        assert issubclass(LudoEngine, GameEngineInterface)
        assert LudoEngine is not GameEngineInterface
        assert LudoEngine.get_game_name() == "ludo"

    def test_rules_functions_exported(self):
        """Test that the pure rules are reachable from the package"""
        state = make_state(2, positions={"p1-0": 10})

        moves = games.legal_moves(state.tokens, 3, state.mode, "p1")

        assert games.is_valid_move(state, moves[0], 3, state.mode)
        assert games.choose_bot_move(state, 3, state.mode) == moves[0]

    def test_bot_player_helpers_exported(self):
        """Test that hosts can seat bots from the package"""
        players = games.fill_with_bots(make_state(2).players)

        assert len(players) == 4
        assert players[3] == games.create_bot_player("bot-green", players[3].color, name=players[3].name)
        assert isinstance(games.random_bot_name(), str)
        assert games.bot_thinking_delay(None) == 1.0
