# app/services/games/ludo_bot.py
"""
Computer opponent for Ludo.

Strategies score the legal moves of the current player. Scored strategies
break ties by evaluation order (first highest wins), so a given snapshot and
random source always yield the same choice. Randomness only comes in where a
strategy asks for it (easy fallback, hard top-three pick, auto-move ties),
and always from the injected random source.
"""

import logging
import random
from typing import List, Optional

from schemas.ludo_schema import (
    BotConfig,
    BotDifficulty,
    BotPersonality,
    GameMode,
    GameState,
    Move,
    Player,
    Token,
    TokenColor,
)
from services.games.ludo_constants import (
    PATH_LENGTH,
    FINISH_POSITION,
    HOME_POSITION,
    DICE_MAX,
    START_POSITIONS,
    PLAYER_COLORS,
)
from services.games.ludo_rules import (
    apply_move,
    is_on_ring,
    is_safe_cell,
    legal_moves,
    resolve_captures,
)

logger = logging.getLogger(__name__)

# Medium scoring weights
CAPTURE_WEIGHT = 100
ENTER_STRETCH_BONUS = 50
LEAVE_HOME_BONUS = 30
PROGRESS_WEIGHT = 2
SAFE_CELL_BONUS = 10
CLUSTER_PENALTY = 20

# Hard scoring weights
THREAT_WEIGHT = 12
TARGET_WEIGHT = 6
BLOCK_BONUS = 8
ENDGAME_FINISH_BONUS = 40
ENDGAME_STRETCH_BONUS = 20
ENDGAME_TOKEN_THRESHOLD = 3

EASY_OPTIMAL_CHANCE = 0.3
HARD_RANDOM_CHANCE = 0.1
HARD_RANDOM_POOL = 3

BOT_NAMES = [
    'RoboLudo', 'DiceBot', 'TokenMaster', 'BoardKing', 'LudoAI',
    'CyberPlayer', 'GameBot', 'SmartDice', 'AutoLudo', 'BotChampion',
    'DigitalDice', 'TechPlayer', 'RoboChamp', 'AILudo', 'BotMaster',
]

# (minimum, spread) in seconds
THINKING_DELAYS = {
    BotDifficulty.EASY: (1.0, 2.0),
    BotDifficulty.MEDIUM: (1.5, 2.5),
    BotDifficulty.HARD: (2.0, 3.0),
}
DEFAULT_THINKING_DELAY = 1.0


# ========== Position analysis ==========

def is_position_safe(position: int) -> bool:
    """Safe from capture: home base, safe cells, the home stretch and the finish"""
    return position == HOME_POSITION or position >= PATH_LENGTH or is_safe_cell(position)


def attackers_behind(tokens: List[Token], cell: int, owner_id: str) -> int:
    """
    Count opposing tokens that could land on cell with their next roll.

    Movement never wraps past the stretch entry, so only ring tokens 1..6
    cells behind count. A start cell is also reachable by the home tokens
    of its color, which count as a single attacker.
    """
    if not is_on_ring(cell):
        return 0
    on_ring = sum(
        1 for t in tokens
        if t.owner_id != owner_id and is_on_ring(t.position) and 1 <= cell - t.position <= DICE_MAX
    )
    entering = {
        t.owner_id for t in tokens
        if t.owner_id != owner_id and t.position == HOME_POSITION and START_POSITIONS[t.color] == cell
    }
    return on_ring + len(entering)


def targets_ahead(tokens: List[Token], cell: int, owner_id: str) -> int:
    """Count capturable opposing tokens within one roll ahead of cell"""
    if not is_on_ring(cell):
        return 0
    return sum(
        1 for t in tokens
        if t.owner_id != owner_id
        and is_on_ring(t.position)
        and not is_safe_cell(t.position)
        and 1 <= t.position - cell <= DICE_MAX
    )


def is_endgame(state: GameState) -> bool:
    """Any player with three or more tokens past the ring"""
    for player in state.players:
        in_finish = sum(1 for t in state.tokens if t.owner_id == player.id and t.position >= PATH_LENGTH)
        if in_finish >= ENDGAME_TOKEN_THRESHOLD:
            return True
    return False


def calculate_risk_score(state: GameState, move: Move) -> int:
    """How many opponents could capture the moved token next turn"""
    if is_position_safe(move.to):
        return 0
    after = apply_move(state, move)
    return attackers_behind(after.tokens, move.to, state.current_player_id)


def can_threaten_opponents(state: GameState, move: Move) -> bool:
    """Whether the moved token ends within one roll behind a capturable opponent"""
    after = apply_move(state, move)
    return targets_ahead(after.tokens, move.to, state.current_player_id) > 0


# ========== Scoring ==========

def score_move_medium(state: GameState, move: Move) -> int:
    owner_id = state.current_player_id
    score = 0

    captured = resolve_captures(state.tokens, move)
    score += CAPTURE_WEIGHT * len(captured)

    if move.to >= PATH_LENGTH:
        score += ENTER_STRETCH_BONUS
    elif move.from_ == HOME_POSITION:
        score += LEAVE_HOME_BONUS

    score += PROGRESS_WEIGHT * move.to

    if is_safe_cell(move.to):
        score += SAFE_CELL_BONUS

    # Landing would make a third-or-later stack; finished tokens are off the board
    if move.to != FINISH_POSITION:
        own_at_destination = sum(
            1 for t in state.tokens
            if t.owner_id == owner_id and t.position == move.to and t.id != move.token_id
        )
        if own_at_destination > 1:
            score -= CLUSTER_PENALTY

    return score


def assess_threats(state: GameState, move: Move, after_tokens: List[Token]) -> int:
    """Penalty for ending exposed, reward for leaving an exposed cell"""
    owner_id = state.current_player_id
    score = 0
    if not is_position_safe(move.to):
        score -= THREAT_WEIGHT * attackers_behind(after_tokens, move.to, owner_id)
    if not is_position_safe(move.from_):
        score += THREAT_WEIGHT * attackers_behind(state.tokens, move.from_, owner_id)
    return score


def calculate_positional_advantage(state: GameState, move: Move, after_tokens: List[Token]) -> int:
    return TARGET_WEIGHT * targets_ahead(after_tokens, move.to, state.current_player_id)


def calculate_blocking_score(state: GameState, move: Move, after_tokens: List[Token]) -> int:
    """Bonus for pairing up on an exposed ring cell that an opponent can reach"""
    owner_id = state.current_player_id
    if not is_on_ring(move.to) or is_safe_cell(move.to):
        return 0
    own_at_destination = sum(1 for t in after_tokens if t.owner_id == owner_id and t.position == move.to)
    if own_at_destination == 2 and attackers_behind(after_tokens, move.to, owner_id) > 0:
        return BLOCK_BONUS
    return 0


def calculate_endgame_score(move: Move) -> int:
    if move.to == FINISH_POSITION:
        return ENDGAME_FINISH_BONUS
    if move.to >= PATH_LENGTH:
        return ENDGAME_STRETCH_BONUS
    return 0


def score_move_hard(state: GameState, move: Move, endgame: bool) -> int:
    after = apply_move(state, move)
    score = score_move_medium(state, move)
    score += assess_threats(state, move, after.tokens)
    score += calculate_positional_advantage(state, move, after.tokens)
    score += calculate_blocking_score(state, move, after.tokens)
    if endgame:
        score += calculate_endgame_score(move)
    return score


# ========== Strategies ==========

def make_random_move(moves: List[Move], rng) -> Move:
    return rng.choice(moves)


def make_medium_move(state: GameState, moves: List[Move]) -> Move:
    # max() keeps the first of equal scores
    return max(moves, key=lambda move: score_move_medium(state, move))


def make_easy_move(state: GameState, moves: List[Move], rng) -> Move:
    if rng.random() < EASY_OPTIMAL_CHANCE:
        return make_medium_move(state, moves)
    return make_random_move(moves, rng)


def make_hard_move(state: GameState, moves: List[Move], rng) -> Move:
    endgame = is_endgame(state)
    ranked = sorted(
        moves,
        key=lambda move: score_move_hard(state, move, endgame),
        reverse=True,
    )
    # Occasionally pick among the best few so play is not fully predictable
    if rng.random() < HARD_RANDOM_CHANCE:
        return rng.choice(ranked[:HARD_RANDOM_POOL])
    return ranked[0]


def make_aggressive_move(state: GameState, moves: List[Move]) -> Move:
    for move in moves:
        if resolve_captures(state.tokens, move):
            return move

    for move in moves:
        if can_threaten_opponents(state, move):
            return move

    return make_medium_move(state, moves)


def make_defensive_move(state: GameState, moves: List[Move]) -> Move:
    safe_moves = [move for move in moves if is_position_safe(move.to)]
    if safe_moves:
        return max(safe_moves, key=lambda move: move.to)

    return min(moves, key=lambda move: (calculate_risk_score(state, move), -move.to))


def make_speedster_move(moves: List[Move]) -> Move:
    return max(moves, key=lambda move: (move.to >= PATH_LENGTH, move.to))


def choose_bot_move(
    state: GameState,
    dice_value: int,
    mode: GameMode,
    config: Optional[BotConfig] = None,
    rng: Optional[random.Random] = None,
) -> Optional[Move]:
    """
    Select a move for the current player.

    Args:
        state: Current snapshot; the current player is the one moving
        dice_value: The pending roll
        mode: Rule configuration used to compute legal moves
        config: Difficulty tier or personality (medium when omitted)
        rng: Random source for the randomized strategies

    Returns:
        The chosen move, or None when there is nothing to move (pass)
    """
    rng = rng or random
    config = config or BotConfig()
    moves = legal_moves(state.tokens, dice_value, mode, state.current_player_id)

    if not moves:
        return None
    if len(moves) == 1:
        return moves[0]

    personality = config.personality
    if personality is not None and personality != BotPersonality.BALANCED:
        if personality == BotPersonality.AGGRESSIVE:
            move = make_aggressive_move(state, moves)
        elif personality == BotPersonality.DEFENSIVE:
            move = make_defensive_move(state, moves)
        else:
            move = make_speedster_move(moves)
    else:
        difficulty = config.difficulty or BotDifficulty.MEDIUM
        if difficulty == BotDifficulty.EASY:
            move = make_easy_move(state, moves, rng)
        elif difficulty == BotDifficulty.HARD:
            move = make_hard_move(state, moves, rng)
        else:
            move = make_medium_move(state, moves)

    logger.debug(f"Bot {state.current_player_id} ({config.difficulty}/{config.personality}) chose {move.token_id} {move.from_}->{move.to}")
    return move


def choose_auto_move(
    state: GameState,
    dice_value: int,
    mode: GameMode,
    rng: Optional[random.Random] = None,
) -> Optional[Move]:
    """
    Pick a move for a human whose turn timed out.

    A single legal move is taken as is. Otherwise a capture wins, then the
    most advanced destination, with ties settled uniformly at random.
    """
    rng = rng or random
    moves = legal_moves(state.tokens, dice_value, mode, state.current_player_id)

    if not moves:
        return None
    if len(moves) == 1:
        return moves[0]

    for move in moves:
        if resolve_captures(state.tokens, move):
            return move

    top = max(move.to for move in moves)
    return rng.choice([move for move in moves if move.to == top])


# ========== Bot players ==========

def random_bot_name(rng: Optional[random.Random] = None) -> str:
    return (rng or random).choice(BOT_NAMES)


def bot_thinking_delay(difficulty: Optional[BotDifficulty], rng: Optional[random.Random] = None) -> float:
    """Seconds a host should wait before showing a bot turn"""
    if difficulty not in THINKING_DELAYS:
        return DEFAULT_THINKING_DELAY
    minimum, spread = THINKING_DELAYS[difficulty]
    return minimum + (rng or random).random() * spread


def max_thinking_delay(difficulty: Optional[BotDifficulty]) -> float:
    """Upper bound of bot_thinking_delay, used as a bot's turn limit"""
    if difficulty not in THINKING_DELAYS:
        return DEFAULT_THINKING_DELAY
    minimum, spread = THINKING_DELAYS[difficulty]
    return minimum + spread


def create_bot_player(
    player_id: str,
    color: TokenColor,
    difficulty: BotDifficulty = BotDifficulty.MEDIUM,
    personality: BotPersonality = BotPersonality.BALANCED,
    name: Optional[str] = None,
) -> Player:
    return Player(
        id=player_id,
        color=color,
        name=name,
        is_bot=True,
        bot_difficulty=difficulty,
        bot_personality=personality,
    )


def fill_with_bots(
    players: List[Player],
    difficulty: BotDifficulty = BotDifficulty.MEDIUM,
    rng: Optional[random.Random] = None,
) -> List[Player]:
    """Seat a named bot on every color nobody took, filling the table to four"""
    taken = {p.color for p in players}
    bots = [
        create_bot_player(f"bot-{color.value}", color, difficulty, name=random_bot_name(rng))
        for color in PLAYER_COLORS
        if color not in taken
    ]
    if bots:
        logger.info(f"Filled {len(bots)} empty seats with {difficulty.value} bots")
    return list(players) + bots
