# app/schemas/ludo_schema.py

from datetime import datetime
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class LudoModel(BaseModel):
    """
    Base for every Ludo snapshot type.

    Snapshots are immutable: transitions build new instances with
    ``model_copy(update=...)``. Attributes are snake_case in Python and
    camelCase on the wire (``ownerId``, ``currentPlayerId``...).
    """
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class GameMode(str, Enum):
    """Named rule configurations"""
    CLASSIC = "classic"
    SPEED = "speed"
    QUICK = "quick"  # Tokens start on the board, overshoot into the home stretch allowed


class GameStatus(str, Enum):
    WAITING = "waiting"
    PLAYING = "playing"
    FINISHED = "finished"


class TurnPhase(str, Enum):
    """Where the current turn stands"""
    AWAITING_ROLL = "awaiting_roll"
    AWAITING_MOVE = "awaiting_move"
    FINISHED = "finished"


class TokenColor(str, Enum):
    RED = "red"
    BLUE = "blue"
    YELLOW = "yellow"
    GREEN = "green"


class BotDifficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class BotPersonality(str, Enum):
    AGGRESSIVE = "aggressive"  # Prioritizes captures
    DEFENSIVE = "defensive"  # Plays safe, avoids risks
    BALANCED = "balanced"  # Same as medium difficulty
    SPEEDSTER = "speedster"  # Rushes to finish


class Token(LudoModel):
    """
    A single playing piece.

    position: -1 in home base, 0..51 on the ring, 52..57 in the home stretch,
    58 finished.
    """
    id: str
    owner_id: str
    color: TokenColor
    position: int


class Player(LudoModel):
    id: str
    color: TokenColor
    name: Optional[str] = None
    is_bot: bool = False
    bot_difficulty: Optional[BotDifficulty] = None
    bot_personality: Optional[BotPersonality] = None


class PlayerSeat(LudoModel):
    """A player joining a match before a color has been assigned"""
    id: str
    is_bot: bool = False
    bot_difficulty: Optional[BotDifficulty] = None
    bot_personality: Optional[BotPersonality] = None


class Move(LudoModel):
    token_id: str
    from_: int = Field(alias="from")
    to: int


class GameState(LudoModel):
    tokens: List[Token]
    players: List[Player]
    current_player_id: str
    mode: GameMode = GameMode.CLASSIC
    last_dice_roll: Optional[int] = None
    consecutive_six_count: int = 0
    status: GameStatus = GameStatus.PLAYING
    phase: TurnPhase = TurnPhase.AWAITING_ROLL
    turn_start_time: datetime
    winner_id: Optional[str] = None
    last_move: Optional[Move] = None
    version: int = 0

    def get_player(self, player_id: str) -> Optional[Player]:
        return next((p for p in self.players if p.id == player_id), None)

    def get_token(self, token_id: str) -> Optional[Token]:
        return next((t for t in self.tokens if t.id == token_id), None)

    @property
    def current_player(self) -> Player:
        return self.get_player(self.current_player_id)


class BotConfig(LudoModel):
    """
    Strategy selection for a computer player.

    A personality other than ``balanced`` takes precedence; otherwise the
    difficulty tier is used (medium when neither is given).
    """
    difficulty: Optional[BotDifficulty] = None
    personality: Optional[BotPersonality] = None

    @classmethod
    def for_player(cls, player: Player) -> "BotConfig":
        return cls(difficulty=player.bot_difficulty, personality=player.bot_personality)


class ApplyMoveResult(LudoModel):
    tokens: List[Token]
    captured_token_ids: List[str] = Field(default_factory=list)
    bonus_steps: int = 0


class PlayerStats(LudoModel):
    player_id: str
    tokens_in_home: int
    tokens_on_board: int
    tokens_in_finish: int
    tokens_finished: int
    total_progress: int


# Transition inputs

class RollIntent(LudoModel):
    type: Literal["roll"] = "roll"
    player_id: str


class MoveIntent(LudoModel):
    type: Literal["move"] = "move"
    player_id: str
    move: Move


class TimeoutIntent(LudoModel):
    """Sent by the external turn clock; player_id is optional because the clock acts for whoever is current"""
    type: Literal["timeout"] = "timeout"
    player_id: Optional[str] = None


TurnIntent = Annotated[
    Union[RollIntent, MoveIntent, TimeoutIntent],
    Field(discriminator="type"),
]


class TurnOutcome(LudoModel):
    """What a single transition did, together with the resulting snapshot"""
    state: GameState
    dice_value: Optional[int] = None
    move: Optional[Move] = None
    legal_moves: List[Move] = Field(default_factory=list)
    captured_token_ids: List[str] = Field(default_factory=list)
    bonus_steps: int = 0
    forfeited: bool = False
    passed: bool = False
    extra_turn: bool = False
    winner_id: Optional[str] = None
    # Seconds the host may wait before showing a bot turn
    thinking_delay: Optional[float] = None
    # Bot turns resolved after this one, in order; state is the snapshot after the last
    bot_turns: List["TurnOutcome"] = Field(default_factory=list)

