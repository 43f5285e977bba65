# app/services/game_engine_interface.py

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional, List
from enum import Enum
from datetime import datetime, UTC
import random
from schemas.game_schema import GameInfo
from schemas.ludo_schema import GameMode, GameState, PlayerSeat, TurnIntent, TurnOutcome
from exceptions.domain_exceptions import DomainException
import logging

logger = logging.getLogger(__name__)


class GameResult(Enum):
    """Possible game results"""
    IN_PROGRESS = "in_progress"
    PLAYER_WIN = "player_win"


class MoveValidationResult:
    """Result of move validation"""
    def __init__(self, valid: bool, error_message: Optional[str] = None):
        self.valid = valid
        self.error_message = error_message


class GameEngineInterface(ABC):
    """
    Abstract interface for turn-based game engines.

    Engines hold only their rule configuration. Game state lives in immutable
    snapshots that are passed in and returned, so one engine instance can
    serve any number of matches and every transition is replayable.

    Each game implementation should:
    - Build the opening snapshot
    - Validate intents before anything is applied
    - Produce the next snapshot for a validated intent
    - Determine win conditions
    - Support custom rule configurations
    """

    def __init__(self, rules: Optional[Dict[str, Any]] = None):
        """
        Initialize the game engine.

        Args:
            rules: Optional dictionary of custom rules for this game instance
        """
        self.rules = rules or {}

        # Validate custom rules against game info
        self._validate_rules()

    def _validate_rules(self):
        """
        Validate custom rules against the game's supported rules.
        This uses the GameRuleOption definitions from get_game_info().
        Only validates rules that are explicitly provided by the user.
        """
        game_info = self.get_game_info()

        for rule_name, rule_value in self.rules.items():
            if rule_name not in game_info.supported_rules:
                raise ValueError(f"Unknown rule: {rule_name}")

            # Skip validation for None values - they'll use defaults
            if rule_value is None:
                continue

            rule_option = game_info.supported_rules[rule_name]

            # Type validation
            if rule_option.type == "integer":
                if not isinstance(rule_value, int) or isinstance(rule_value, bool):
                    raise ValueError(f"{rule_name} must be an integer, got {type(rule_value).__name__}")
            elif rule_option.type == "boolean":
                if not isinstance(rule_value, bool):
                    raise ValueError(f"{rule_name} must be a boolean, got {type(rule_value).__name__}")
            elif rule_option.type == "string":
                # Booleans are accepted for yes/no rules, tests and internal callers send them
                if not isinstance(rule_value, (str, bool)):
                    raise ValueError(f"{rule_name} must be a string, got {type(rule_value).__name__}")

            # Allowed values validation
            if rule_option.allowed_values is not None and not isinstance(rule_value, bool):
                if rule_value not in rule_option.allowed_values:
                    raise ValueError(f"{rule_name} value '{rule_value}' is not in allowed values: {rule_option.allowed_values}")

    def _parse_bool_rule(self, rule_name: str, default: bool) -> bool:
        """
        Parse a boolean rule that may be specified as:
        - A boolean value (True/False)
        - A string value ("yes"/"no") - from the frontend/GameRuleOption

        Returns:
            True if the value is True or "yes", False otherwise
        """
        value = self.rules.get(rule_name)
        if value is None:
            return default
        if isinstance(value, bool):
            return value
        return str(value).lower() == "yes"

    @abstractmethod
    def initialize_game_state(self, seats: List[PlayerSeat], mode: GameMode, now: Optional[datetime] = None) -> GameState:
        """
        Build the opening snapshot.

        Args:
            seats: Players in turn order
            mode: Rule configuration of the match
            now: Clock reading used as the first turn start

        Returns:
            Initial GameState
        """
        pass

    @abstractmethod
    def check_intent(self, state: GameState, intent: TurnIntent, now: datetime) -> None:
        """
        Reject an intent that the rules do not allow for this snapshot.

        Raises:
            DomainException subclass describing the violation
        """
        pass

    @abstractmethod
    def apply_intent(
        self,
        state: GameState,
        intent: TurnIntent,
        rng: Optional[random.Random] = None,
        now: Optional[datetime] = None,
    ) -> TurnOutcome:
        """
        Validate an intent and compute the next snapshot.

        Args:
            state: Current snapshot, never modified
            intent: Transition input
            rng: Random source for dice and bot choices
            now: Clock reading for turn timing

        Returns:
            TurnOutcome carrying the next snapshot
        """
        pass

    @abstractmethod
    def check_game_result(self, state: GameState) -> tuple[GameResult, Optional[str]]:
        """
        Check if the game has ended and determine the result.

        Returns:
            Tuple of (GameResult, winner_id or None)
        """
        pass

    @abstractmethod
    def get_turn_duration(self, state: GameState) -> float:
        """Seconds the current player has for the current turn"""
        pass

    def validate_intent(self, state: GameState, intent: TurnIntent, now: Optional[datetime] = None) -> MoveValidationResult:
        """
        Check an intent without applying it.

        Returns:
            MoveValidationResult indicating if the intent is allowed
        """
        try:
            self.check_intent(state, intent, now or datetime.now(UTC))
        except DomainException as e:
            return MoveValidationResult(False, e.message)
        return MoveValidationResult(True)

    def _elapsed_seconds(self, state: GameState, now: Optional[datetime] = None) -> float:
        current_time = now or datetime.now(UTC)
        return (current_time - state.turn_start_time).total_seconds()

    def check_timeout(self, state: GameState, now: Optional[datetime] = None) -> bool:
        """
        Check if the current player has exceeded the turn time limit.

        Args:
            state: Current snapshot
            now: Clock reading, defaults to the current time

        Returns:
            True if the turn time limit has been exceeded
        """
        return self._elapsed_seconds(state, now) > self.get_turn_duration(state)

    def get_remaining_time(self, state: GameState, now: Optional[datetime] = None) -> float:
        """
        Get remaining turn time in seconds for the current player.

        Returns:
            Remaining time, never negative
        """
        return max(0.0, self.get_turn_duration(state) - self._elapsed_seconds(state, now))

    @classmethod
    @abstractmethod
    def get_game_name(cls) -> str:
        """
        Get the unique name identifier for this game type.

        Returns:
            String name of the game
        """
        pass

    @classmethod
    @abstractmethod
    def get_game_info(cls) -> GameInfo:
        """
        Get static game information without requiring an instance.
        This should return game metadata like rules, player requirements,
        supported options, etc.

        Returns:
            GameInfo DTO with static game information
        """
        pass
