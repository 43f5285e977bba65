# app/services/games/__init__.py

from services.games.ludo_engine import LudoEngine
from services.games.ludo_rules import (
    roll_dice,
    legal_moves,
    is_valid_move,
    resolve_captures,
    apply_move,
    check_game_over,
    get_next_player,
    calculate_player_stats,
    create_initial_state,
)
from services.games.ludo_bot import (
    choose_bot_move,
    choose_auto_move,
    random_bot_name,
    bot_thinking_delay,
    create_bot_player,
    fill_with_bots,
)

__all__ = [
    "LudoEngine",
    "roll_dice",
    "legal_moves",
    "is_valid_move",
    "resolve_captures",
    "apply_move",
    "check_game_over",
    "get_next_player",
    "calculate_player_stats",
    "create_initial_state",
    "choose_bot_move",
    "choose_auto_move",
    "random_bot_name",
    "bot_thinking_delay",
    "create_bot_player",
    "fill_with_bots",
]
