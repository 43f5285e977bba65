# app/services/games/ludo_rules.py
"""
Pure Ludo rules: dice, legal moves, captures and move application.

Every function takes immutable snapshots and returns new values; nothing in
here touches storage or the clock unless the caller passes it in.
"""

import random
from datetime import datetime, UTC
from typing import List, Optional

from schemas.ludo_schema import (
    ApplyMoveResult,
    GameMode,
    GameState,
    GameStatus,
    Move,
    Player,
    PlayerSeat,
    PlayerStats,
    Token,
    TurnPhase,
)
from services.games.ludo_constants import (
    PATH_LENGTH,
    FINISH_POSITION,
    HOME_POSITION,
    TOKENS_PER_PLAYER,
    MIN_PLAYERS,
    MAX_PLAYERS,
    DICE_MIN,
    DICE_MAX,
    EXIT_HOME_ROLL,
    CAPTURE_BONUS_STEPS,
    PLAYER_COLORS,
    START_POSITIONS,
    SAFE_CELLS,
)
from exceptions.domain_exceptions import InvalidMoveException


def roll_dice(rng: Optional[random.Random] = None) -> int:
    """Roll a six-sided die using the given random source"""
    return (rng or random).randint(DICE_MIN, DICE_MAX)


def is_on_ring(position: int) -> bool:
    return 0 <= position < PATH_LENGTH


def is_in_home_stretch(position: int) -> bool:
    return PATH_LENGTH <= position < FINISH_POSITION


def is_finished(position: int) -> bool:
    return position == FINISH_POSITION


def is_safe_cell(position: int) -> bool:
    """Check if a ring cell is a designated safe (star) cell"""
    return position in SAFE_CELLS


def can_leave_home(dice_value: int, mode: GameMode) -> bool:
    """Quick mode lets home tokens re-enter on any roll; other modes need a six"""
    if mode == GameMode.QUICK:
        return True
    return dice_value == EXIT_HOME_ROLL


def can_enter_finish(position: int, dice_value: int, mode: GameMode) -> bool:
    """
    Check if a ring token may cross into its home stretch.

    Classic and speed need the exact distance to the stretch entry, quick
    allows overshoot.
    """
    distance = PATH_LENGTH - position
    if mode == GameMode.QUICK:
        return dice_value >= distance
    return dice_value == distance


def calculate_destination(token: Token, dice_value: int, mode: GameMode) -> Optional[int]:
    """
    Calculate where a token ends up after moving dice_value cells.

    Returns:
        New position, or None if the token cannot move with this roll
    """
    position = token.position

    if position == HOME_POSITION:
        if can_leave_home(dice_value, mode):
            return START_POSITIONS[token.color]
        return None

    if is_on_ring(position):
        destination = position + dice_value
        if destination < PATH_LENGTH:
            return destination
        if can_enter_finish(position, dice_value, mode):
            return min(destination, FINISH_POSITION)
        return None

    if is_in_home_stretch(position):
        destination = position + dice_value
        if destination <= FINISH_POSITION:
            return destination
        return None

    # Finished tokens never move
    return None


def legal_moves(tokens: List[Token], dice_value: int, mode: GameMode, active_player_id: str) -> List[Move]:
    """
    Get all legal moves of the active player for a dice value.

    Moves are listed in token order. An empty list means the turn passes.
    """
    moves = []
    for token in tokens:
        if token.owner_id != active_player_id:
            continue
        destination = calculate_destination(token, dice_value, mode)
        if destination is not None:
            moves.append(Move(token_id=token.id, from_=token.position, to=destination))
    return moves


def is_valid_move(state: GameState, move: Move, dice_value: int, mode: GameMode) -> bool:
    """Re-validate a supplied move against the independently recomputed legal set"""
    return move in legal_moves(state.tokens, dice_value, mode, state.current_player_id)


def resolve_captures(tokens: List[Token], move: Move) -> List[str]:
    """
    Get ids of opposing tokens captured by a move.

    Nothing is captured on safe cells or off the ring (home stretches are
    private to each color). Tokens of the mover's own player stack freely.
    """
    if not is_on_ring(move.to) or is_safe_cell(move.to):
        return []

    moving_token = next((t for t in tokens if t.id == move.token_id), None)
    if moving_token is None:
        return []

    return [
        t.id for t in tokens
        if t.position == move.to and t.owner_id != moving_token.owner_id
    ]


def apply_move(state: GameState, move: Move) -> ApplyMoveResult:
    """
    Apply a validated move and resolve its captures.

    Returns:
        New token list, captured token ids (now at -1) and the capture bonus
    """
    if state.get_token(move.token_id) is None:
        raise InvalidMoveException(
            message=f"Token {move.token_id} not found",
            details={"token_id": move.token_id}
        )

    moved = [
        t.model_copy(update={"position": move.to}) if t.id == move.token_id else t
        for t in state.tokens
    ]
    captured = resolve_captures(moved, move)
    tokens = [
        t.model_copy(update={"position": HOME_POSITION}) if t.id in captured else t
        for t in moved
    ]

    return ApplyMoveResult(
        tokens=tokens,
        captured_token_ids=captured,
        bonus_steps=CAPTURE_BONUS_STEPS if captured else 0,
    )


def check_game_over(tokens: List[Token], player_id: str) -> bool:
    """A player wins once all four of their tokens are finished"""
    finished = [t for t in tokens if t.owner_id == player_id and is_finished(t.position)]
    return len(finished) == TOKENS_PER_PLAYER


def get_next_player(players: List[Player], current_player_id: str) -> str:
    """Get the next player in the fixed seat order, wrapping around"""
    ids = [p.id for p in players]
    next_index = (ids.index(current_player_id) + 1) % len(ids)
    return ids[next_index]


def calculate_player_stats(tokens: List[Token], player_id: str) -> PlayerStats:
    player_tokens = [t for t in tokens if t.owner_id == player_id]
    return PlayerStats(
        player_id=player_id,
        tokens_in_home=sum(1 for t in player_tokens if t.position == HOME_POSITION),
        tokens_on_board=sum(1 for t in player_tokens if is_on_ring(t.position)),
        tokens_in_finish=sum(1 for t in player_tokens if t.position >= PATH_LENGTH),
        tokens_finished=sum(1 for t in player_tokens if is_finished(t.position)),
        total_progress=sum(max(0, t.position) for t in player_tokens),
    )


def seat_players(seats: List[PlayerSeat], min_players: int = MIN_PLAYERS) -> List[Player]:
    """Assign colors to joining players by seat order"""
    if len(seats) < min_players or len(seats) > MAX_PLAYERS:
        raise ValueError(f"Ludo requires {MIN_PLAYERS}-{MAX_PLAYERS} players")
    if len({seat.id for seat in seats}) != len(seats):
        raise ValueError("Player ids must be unique")

    return [
        Player(
            id=seat.id,
            color=PLAYER_COLORS[index],
            is_bot=seat.is_bot,
            bot_difficulty=seat.bot_difficulty,
            bot_personality=seat.bot_personality,
        )
        for index, seat in enumerate(seats)
    ]


def create_initial_state(players: List[Player], mode: GameMode, now: Optional[datetime] = None) -> GameState:
    """
    Create the opening snapshot of a match.

    Tokens start in home base, or on their color's start cell in quick mode.
    The first seated player rolls first.
    """
    if len(players) < MIN_PLAYERS or len(players) > MAX_PLAYERS:
        raise ValueError(f"Ludo requires {MIN_PLAYERS}-{MAX_PLAYERS} players")
    if len({p.color for p in players}) != len(players):
        raise ValueError("Player colors must be unique")
    if len({p.id for p in players}) != len(players):
        raise ValueError("Player ids must be unique")

    tokens = []
    for player in players:
        start = START_POSITIONS[player.color] if mode == GameMode.QUICK else HOME_POSITION
        for index in range(TOKENS_PER_PLAYER):
            tokens.append(Token(
                id=f"{player.id}-{index}",
                owner_id=player.id,
                color=player.color,
                position=start,
            ))

    return GameState(
        tokens=tokens,
        players=players,
        current_player_id=players[0].id,
        mode=mode,
        status=GameStatus.PLAYING,
        phase=TurnPhase.AWAITING_ROLL,
        turn_start_time=now or datetime.now(UTC),
    )
