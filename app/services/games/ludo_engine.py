# app/services/games/ludo_engine.py

from datetime import datetime, UTC
from typing import Dict, Any, Optional, List
import logging
import random

from services.game_engine_interface import (
    GameEngineInterface,
    GameResult,
)
from services.games.ludo_constants import (
    MAX_BOT_TURNS_PER_TRANSITION,
    MAX_CONSECUTIVE_SIXES,
    MIN_PLAYERS,
    MAX_PLAYERS,
    TURN_DURATIONS,
)
from services.games.ludo_rules import (
    apply_move,
    check_game_over,
    create_initial_state,
    get_next_player,
    is_valid_move,
    legal_moves,
    roll_dice,
    seat_players,
)
from services.games.ludo_bot import (
    bot_thinking_delay,
    choose_auto_move,
    choose_bot_move,
    fill_with_bots,
    max_thinking_delay,
)
from schemas.game_schema import GameInfo, GameRuleOption
from schemas.ludo_schema import (
    BotConfig,
    BotDifficulty,
    GameMode,
    GameState,
    GameStatus,
    Move,
    MoveIntent,
    PlayerSeat,
    RollIntent,
    TimeoutIntent,
    TurnIntent,
    TurnOutcome,
    TurnPhase,
)
from exceptions.domain_exceptions import (
    InvalidMoveException,
    NotCurrentPlayerException,
    GameAlreadyFinishedException,
)

logger = logging.getLogger(__name__)


class LudoEngine(GameEngineInterface):
    """
    Ludo turn state machine.

    Turn flow per player:
    - awaiting_roll: the current player rolls (1-6)
    - a third consecutive 6 forfeits the turn, nothing moves
    - no legal move: the turn passes
    - bots pick their move in the same transition, so do humans with a
      single option when auto_move is on
    - awaiting_move: the current player moves one token with the roll
    - all 4 tokens finished wins the match
    - a 6 keeps the turn with the same player, otherwise the next seat plays
    - whenever a bot is left to roll, its turns are played in the same
      transition until a human is up or the match ends

    Capturing resets the captured tokens to home base and reports
    CAPTURE_BONUS_STEPS. The bonus never lengthens a move; with
    capture_grants_extra_roll the capturing player rolls again instead.
    """

    def __init__(self, rules: Optional[Dict[str, Any]] = None):
        super().__init__(rules)

        self.auto_move = self._parse_bool_rule("auto_move", False)
        self.capture_grants_extra_roll = self._parse_bool_rule("capture_grants_extra_roll", False)

    def initialize_game_state(
        self,
        seats: List[PlayerSeat],
        mode: GameMode,
        now: Optional[datetime] = None,
        bot_fill: Optional[BotDifficulty] = None,
        rng: Optional[random.Random] = None,
    ) -> GameState:
        """
        Seat the players, assign colors and place the tokens.

        With bot_fill, bots of that difficulty take every empty seat, so a
        single human can start a match.
        """
        if bot_fill is None:
            players = seat_players(seats)
        else:
            players = fill_with_bots(seat_players(seats, min_players=1), bot_fill, rng)
        state = create_initial_state(players, mode, now)
        logger.info(f"Ludo match initialized in {mode.value} mode for players {[p.id for p in players]}")
        return state

    def get_turn_duration(self, state: GameState) -> float:
        """Mode time limit for humans, the longest thinking delay for bots"""
        player = state.current_player
        if player is not None and player.is_bot:
            return max_thinking_delay(player.bot_difficulty)
        return TURN_DURATIONS[state.mode]

    # ========== Validation ==========

    def check_intent(self, state: GameState, intent: TurnIntent, now: datetime) -> None:
        if state.status == GameStatus.FINISHED:
            raise GameAlreadyFinishedException(
                message="Game has already ended",
                details={"winner_id": state.winner_id}
            )
        if state.status != GameStatus.PLAYING:
            raise InvalidMoveException(message="Game has not started")

        if intent.player_id is not None and intent.player_id != state.current_player_id:
            raise NotCurrentPlayerException(
                message="It's not your turn",
                details={"player_id": intent.player_id, "current_player_id": state.current_player_id}
            )

        if isinstance(intent, RollIntent):
            if state.phase != TurnPhase.AWAITING_ROLL:
                raise InvalidMoveException(message="Dice already rolled this turn")

        elif isinstance(intent, MoveIntent):
            if state.phase != TurnPhase.AWAITING_MOVE:
                raise InvalidMoveException(message="Must roll dice before moving")
            if not is_valid_move(state, intent.move, state.last_dice_roll, state.mode):
                raise InvalidMoveException(
                    message=f"Token {intent.move.token_id} cannot move from {intent.move.from_} to {intent.move.to} with dice roll {state.last_dice_roll}",
                    details={
                        "move": intent.move.model_dump(by_alias=True),
                        "dice_value": state.last_dice_roll,
                    }
                )

        elif isinstance(intent, TimeoutIntent):
            if not self.check_timeout(state, now):
                raise InvalidMoveException(
                    message="Turn has not timed out",
                    details={"remaining_time": self.get_remaining_time(state, now)}
                )

        else:
            raise InvalidMoveException(message=f"Invalid intent: {type(intent).__name__}")

    # ========== Transitions ==========

    def apply_intent(
        self,
        state: GameState,
        intent: TurnIntent,
        rng: Optional[random.Random] = None,
        now: Optional[datetime] = None,
    ) -> TurnOutcome:
        now = now or datetime.now(UTC)
        self.check_intent(state, intent, now)

        if isinstance(intent, RollIntent):
            outcome = self._roll(state, rng, now)
        elif isinstance(intent, MoveIntent):
            outcome = self._move(state, intent.move, now)
        else:
            outcome = self._timeout(state, rng, now)
        outcome = self._play_bot_turns(outcome, rng, now)

        next_state = outcome.state.model_copy(update={"version": state.version + 1})
        return outcome.model_copy(update={"state": next_state})

    def _roll(self, state: GameState, rng: Optional[random.Random], now: datetime) -> TurnOutcome:
        player_id = state.current_player_id
        dice_value = roll_dice(rng)
        six_count = state.consecutive_six_count + 1 if dice_value == 6 else 0
        logger.debug(f"Player {player_id} rolled {dice_value} (consecutive sixes: {six_count})")

        if six_count >= MAX_CONSECUTIVE_SIXES:
            logger.info(f"Player {player_id} rolled {MAX_CONSECUTIVE_SIXES} sixes in a row - turn forfeited")
            rolled = state.model_copy(update={"last_dice_roll": dice_value, "consecutive_six_count": 0})
            return TurnOutcome(
                state=self._end_turn(rolled, same_player=False, now=now),
                dice_value=dice_value,
                forfeited=True,
            )

        rolled = state.model_copy(update={
            "last_dice_roll": dice_value,
            "consecutive_six_count": six_count,
            "phase": TurnPhase.AWAITING_MOVE,
            "turn_start_time": now,
        })

        moves = legal_moves(rolled.tokens, dice_value, rolled.mode, player_id)
        if not moves:
            extra_turn = dice_value == 6
            return TurnOutcome(
                state=self._end_turn(rolled, same_player=extra_turn, now=now),
                dice_value=dice_value,
                passed=True,
                extra_turn=extra_turn,
            )

        if rolled.current_player.is_bot:
            move = choose_bot_move(rolled, dice_value, rolled.mode, BotConfig.for_player(rolled.current_player), rng)
            return self._move(rolled, move, now)

        if self.auto_move and len(moves) == 1:
            return self._move(rolled, moves[0], now)

        return TurnOutcome(state=rolled, dice_value=dice_value, legal_moves=moves)

    def _move(self, state: GameState, move: Move, now: datetime) -> TurnOutcome:
        player_id = state.current_player_id
        dice_value = state.last_dice_roll
        result = apply_move(state, move)
        logger.debug(f"Player {player_id} moved {move.token_id} {move.from_}->{move.to}, captured {result.captured_token_ids}")

        moved = state.model_copy(update={"tokens": result.tokens, "last_move": move})

        if check_game_over(result.tokens, player_id):
            logger.info(f"Player {player_id} finished all tokens and wins")
            finished = moved.model_copy(update={
                "status": GameStatus.FINISHED,
                "phase": TurnPhase.FINISHED,
                "winner_id": player_id,
                "consecutive_six_count": 0,
            })
            return TurnOutcome(
                state=finished,
                dice_value=dice_value,
                move=move,
                captured_token_ids=result.captured_token_ids,
                bonus_steps=result.bonus_steps,
                winner_id=player_id,
            )

        extra_turn = dice_value == 6 or (self.capture_grants_extra_roll and bool(result.captured_token_ids))
        return TurnOutcome(
            state=self._end_turn(moved, same_player=extra_turn, now=now),
            dice_value=dice_value,
            move=move,
            captured_token_ids=result.captured_token_ids,
            bonus_steps=result.bonus_steps,
            extra_turn=extra_turn,
        )

    def _timeout(self, state: GameState, rng: Optional[random.Random], now: datetime) -> TurnOutcome:
        """Play the current turn on the player's behalf, rolling first if needed"""
        logger.info(f"Player {state.current_player_id} timed out in phase {state.phase.value}")

        if state.phase == TurnPhase.AWAITING_ROLL:
            outcome = self._roll(state, rng, now)
            if outcome.state.phase != TurnPhase.AWAITING_MOVE:
                return outcome
            state = outcome.state

        player = state.current_player
        if player.is_bot:
            move = choose_bot_move(state, state.last_dice_roll, state.mode, BotConfig.for_player(player), rng)
        else:
            move = choose_auto_move(state, state.last_dice_roll, state.mode, rng)

        if move is None:
            extra_turn = state.last_dice_roll == 6
            return TurnOutcome(
                state=self._end_turn(state, same_player=extra_turn, now=now),
                dice_value=state.last_dice_roll,
                passed=True,
                extra_turn=extra_turn,
            )

        return self._move(state, move, now)

    def _play_bot_turns(self, outcome: TurnOutcome, rng: Optional[random.Random], now: datetime) -> TurnOutcome:
        """Resolve every bot turn that follows a transition"""
        state = outcome.state
        bot_turns = []
        while (
            state.status == GameStatus.PLAYING
            and state.phase == TurnPhase.AWAITING_ROLL
            and state.current_player.is_bot
            and len(bot_turns) < MAX_BOT_TURNS_PER_TRANSITION
        ):
            bot = state.current_player
            bot_turn = self._roll(state, rng, now)
            bot_turns.append(bot_turn.model_copy(update={
                "thinking_delay": bot_thinking_delay(bot.bot_difficulty, rng),
            }))
            state = bot_turn.state

        if not bot_turns:
            return outcome

        logger.debug(f"Resolved {len(bot_turns)} bot turns, {state.current_player_id} is up next")
        return outcome.model_copy(update={
            "state": state,
            "bot_turns": bot_turns,
            "winner_id": outcome.winner_id or state.winner_id,
        })

    def _end_turn(self, state: GameState, same_player: bool, now: datetime) -> GameState:
        """Hand control to the next roller"""
        if same_player:
            next_player_id = state.current_player_id
            six_count = state.consecutive_six_count
        else:
            next_player_id = get_next_player(state.players, state.current_player_id)
            six_count = 0

        return state.model_copy(update={
            "current_player_id": next_player_id,
            "consecutive_six_count": six_count,
            "phase": TurnPhase.AWAITING_ROLL,
            "turn_start_time": now,
        })

    # ========== Queries ==========

    def check_game_result(self, state: GameState) -> tuple[GameResult, Optional[str]]:
        """Check if any player has won (all tokens finished)"""
        for player in state.players:
            if check_game_over(state.tokens, player.id):
                return GameResult.PLAYER_WIN, player.id
        return GameResult.IN_PROGRESS, None

    def get_pending_moves(self, state: GameState) -> List[Move]:
        """Legal moves for the roll waiting to be used, empty otherwise"""
        if state.phase != TurnPhase.AWAITING_MOVE or state.last_dice_roll is None:
            return []
        return legal_moves(state.tokens, state.last_dice_roll, state.mode, state.current_player_id)

    @classmethod
    def get_game_name(cls) -> str:
        """Get the game name"""
        return "ludo"

    @classmethod
    def get_game_info(cls) -> GameInfo:
        """Get static Ludo game information"""
        return GameInfo(
            game_name=cls.get_game_name(),
            display_name="Ludo",
            description="Race your four tokens around the board and into your home stretch. Roll a 6 to enter, capture opponents by landing on them, and mind the three-sixes rule!",
            min_players=MIN_PLAYERS,
            max_players=MAX_PLAYERS,
            supported_rules={
                "auto_move": GameRuleOption(
                    type="string",
                    allowed_values=["yes", "no"],
                    default="no",
                    description="Whether a roll with a single legal move is played automatically"
                ),
                "capture_grants_extra_roll": GameRuleOption(
                    type="string",
                    allowed_values=["yes", "no"],
                    default="no",
                    description="Whether capturing an opponent token lets the capturing player roll again"
                ),
            },
            supported_modes=[mode.value for mode in GameMode],
            turn_based=True,
            category="board_game",
        )
