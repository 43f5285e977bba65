# app/schemas/game_schema.py

from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List, Union

from schemas.ludo_schema import (
    LudoModel,
    BotDifficulty,
    GameMode,
    GameState,
    Move,
    PlayerSeat,
    PlayerStats,
)


# Game Info DTOs
class GameRuleOption(BaseModel):
    """Schema for a configurable game rule option"""
    type: str = Field(..., description="Data type of the rule (e.g., 'integer', 'boolean', 'string')")
    min: Optional[Union[int, float]] = Field(None, description="Minimum value for numeric rules")
    max: Optional[Union[int, float]] = Field(None, description="Maximum value for numeric rules")
    allowed_values: Optional[List[Any]] = Field(None, description="Exhaustive list of accepted values, if restricted")
    default: Any = Field(..., description="Default value for the rule")
    description: str = Field(..., description="Human-readable description of the rule")


class GameInfo(BaseModel):
    """Static information about a game type"""
    game_name: str = Field(..., description="Unique identifier for the game type")
    display_name: str = Field(..., description="Human-readable display name")
    description: str = Field(..., description="Description of the game")
    min_players: int = Field(..., description="Minimum number of players required")
    max_players: int = Field(..., description="Maximum number of players allowed")
    supported_rules: Dict[str, GameRuleOption] = Field(default_factory=dict, description="Configurable rules for the game")
    supported_modes: List[str] = Field(default_factory=list, description="Named rule configurations a match can be created with")
    turn_based: bool = Field(..., description="Whether the game is turn-based")
    category: str = Field(..., description="Game category (e.g., 'strategy', 'action', 'puzzle')")


# Request schemas
class CreateMatchRequest(LudoModel):
    """Request to create a new match"""
    match_id: str = Field(..., description="Identifier the match is stored under")
    players: List[PlayerSeat] = Field(..., description="Players in turn order; colors are assigned by seat")
    mode: GameMode = Field(GameMode.CLASSIC, description="Rule configuration for the match")
    rules: Optional[Dict[str, Any]] = Field(default=None, description="Optional custom engine rules")
    bot_fill: Optional[BotDifficulty] = Field(default=None, description="Give every empty seat to a bot of this difficulty")


class RollRequest(LudoModel):
    """Request to roll the dice"""
    player_id: str


class MoveRequest(LudoModel):
    """Request to move a token with the pending roll"""
    player_id: str
    move: Move


class TimeoutRequest(LudoModel):
    """Request sent by the turn clock when the turn time limit expires"""
    player_id: Optional[str] = None


# Response schemas
class MatchStateResponse(LudoModel):
    """Response containing the current match snapshot"""
    match_id: str
    game_state: GameState
    rules: Dict[str, Any] = Field(default_factory=dict)
    remaining_time: Optional[float] = None


class LegalMovesResponse(LudoModel):
    """Legal moves for the pending roll (empty while a roll is awaited)"""
    match_id: str
    current_player_id: str
    dice_value: Optional[int]
    moves: List[Move]


class PlayerStatsResponse(LudoModel):
    match_id: str
    stats: List[PlayerStats]
