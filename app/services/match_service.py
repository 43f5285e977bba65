# app/services/match_service.py

import json
import random
from datetime import datetime
from typing import Dict, Any, Optional, List
from redis.asyncio import Redis
from redis.exceptions import WatchError
from config.settings import settings
from schemas.ludo_schema import (
    BotDifficulty,
    GameMode,
    GameState,
    Move,
    MoveIntent,
    PlayerSeat,
    PlayerStats,
    RollIntent,
    TimeoutIntent,
    TurnIntent,
    TurnOutcome,
)
from services.games.ludo_engine import LudoEngine
from services.games.ludo_rules import calculate_player_stats
from exceptions.domain_exceptions import (
    NotFoundException,
    BadRequestException,
    ConflictException,
    ConcurrentUpdateException,
)
import logging

logger = logging.getLogger(__name__)


class MatchService:
    """
    Stores Ludo match snapshots in Redis and runs transitions against them.

    Every transition follows read -> compute -> compare-and-swap: the state key
    is WATCHed, the engine computes the next snapshot purely, and the write is
    committed in MULTI/EXEC. If another writer touched the key in between the
    computed transition is discarded and recomputed from a fresh read.
    """

    # Redis key patterns
    MATCH_STATE_KEY_PREFIX = "match_state:"
    MATCH_RULES_KEY_PREFIX = "match_rules:"

    @staticmethod
    def _match_state_key(match_id: str) -> str:
        """Get Redis key for match state"""
        return f"{MatchService.MATCH_STATE_KEY_PREFIX}{match_id}"

    @staticmethod
    def _match_rules_key(match_id: str) -> str:
        """Get Redis key for engine rules of a match"""
        return f"{MatchService.MATCH_RULES_KEY_PREFIX}{match_id}"

    @staticmethod
    def _dump_state(state: GameState) -> str:
        return state.model_dump_json(by_alias=True)

    @staticmethod
    async def create_match(
        redis: Redis,
        match_id: str,
        players: List[PlayerSeat],
        mode: GameMode = GameMode.CLASSIC,
        rules: Optional[Dict[str, Any]] = None,
        now: Optional[datetime] = None,
        bot_fill: Optional[BotDifficulty] = None,
        rng: Optional[random.Random] = None,
    ) -> GameState:
        """
        Create a new match and store its opening snapshot.

        With bot_fill the empty seats go to bots of that difficulty.

        Raises:
            BadRequestException: If the rules or the player list are invalid
            ConflictException: If a match with this id already exists
        """
        try:
            engine = LudoEngine(rules)
            state = engine.initialize_game_state(players, mode, now, bot_fill=bot_fill, rng=rng)
        except ValueError as e:
            raise BadRequestException(
                message=f"Failed to create match: {str(e)}",
                details={"match_id": match_id, "players": [p.id for p in players]}
            )

        created = await redis.set(
            MatchService._match_state_key(match_id),
            MatchService._dump_state(state),
            ex=settings.MATCH_TTL_SECONDS,
            nx=True,
        )
        if not created:
            raise ConflictException(
                message="A match with this id already exists",
                details={"match_id": match_id}
            )

        await redis.set(
            MatchService._match_rules_key(match_id),
            json.dumps(engine.rules),
            ex=settings.MATCH_TTL_SECONDS,
        )

        logger.info(f"Ludo match {match_id} created in {mode.value} mode with players {[p.id for p in state.players]}")
        return state

    @staticmethod
    async def get_match(redis: Redis, match_id: str) -> GameState:
        """
        Get the current match snapshot.

        Raises:
            NotFoundException: If the match does not exist
        """
        state_raw = await redis.get(MatchService._match_state_key(match_id))
        if not state_raw:
            raise NotFoundException(
                message="Match not found",
                details={"match_id": match_id}
            )
        return GameState.model_validate_json(state_raw)

    @staticmethod
    async def get_rules(redis: Redis, match_id: str) -> Dict[str, Any]:
        rules_raw = await redis.get(MatchService._match_rules_key(match_id))
        return json.loads(rules_raw) if rules_raw else {}

    @staticmethod
    async def load_engine(redis: Redis, match_id: str) -> LudoEngine:
        """Rebuild the engine with the rules the match was created with"""
        return LudoEngine(await MatchService.get_rules(redis, match_id))

    @staticmethod
    async def delete_match(redis: Redis, match_id: str):
        await redis.delete(
            MatchService._match_state_key(match_id),
            MatchService._match_rules_key(match_id),
        )
        logger.info(f"Ludo match {match_id} deleted")

    @staticmethod
    async def submit_intent(
        redis: Redis,
        match_id: str,
        intent: TurnIntent,
        rng: Optional[random.Random] = None,
        now: Optional[datetime] = None,
    ) -> TurnOutcome:
        """
        Apply one intent to the stored match with optimistic concurrency.

        Args:
            redis: Redis client
            match_id: The match to act on
            intent: RollIntent, MoveIntent or TimeoutIntent
            rng: Random source for dice and bot choices, including the bot
                turns that follow the intent
            now: Clock reading for turn timing

        Returns:
            TurnOutcome with the committed snapshot

        Raises:
            NotFoundException: If the match does not exist
            DomainException subclasses for rule violations (nothing is written)
            ConcurrentUpdateException: If the snapshot kept changing under us
        """
        engine = await MatchService.load_engine(redis, match_id)
        key = MatchService._match_state_key(match_id)

        async with redis.pipeline(transaction=True) as pipe:
            for attempt in range(1, settings.MATCH_MAX_CAS_RETRIES + 1):
                try:
                    await pipe.watch(key)
                    state_raw = await pipe.get(key)
                    if not state_raw:
                        raise NotFoundException(
                            message="Match not found",
                            details={"match_id": match_id}
                        )

                    state = GameState.model_validate_json(state_raw)
                    outcome = engine.apply_intent(state, intent, rng=rng, now=now)

                    pipe.multi()
                    pipe.set(key, MatchService._dump_state(outcome.state), ex=settings.MATCH_TTL_SECONDS)
                    await pipe.execute()
                    return outcome
                except WatchError:
                    logger.info(f"Match {match_id} changed during {intent.type} (attempt {attempt}), retrying")
                    await pipe.reset()

        logger.warning(f"Giving up on {intent.type} for match {match_id} after {settings.MATCH_MAX_CAS_RETRIES} attempts")
        raise ConcurrentUpdateException(
            message="Match was updated concurrently, please retry",
            details={"match_id": match_id}
        )

    @staticmethod
    async def roll(redis: Redis, match_id: str, player_id: str, rng: Optional[random.Random] = None, now: Optional[datetime] = None) -> TurnOutcome:
        return await MatchService.submit_intent(redis, match_id, RollIntent(player_id=player_id), rng=rng, now=now)

    @staticmethod
    async def make_move(
        redis: Redis,
        match_id: str,
        player_id: str,
        move: Move,
        rng: Optional[random.Random] = None,
        now: Optional[datetime] = None,
    ) -> TurnOutcome:
        return await MatchService.submit_intent(redis, match_id, MoveIntent(player_id=player_id, move=move), rng=rng, now=now)

    @staticmethod
    async def handle_timeout(
        redis: Redis,
        match_id: str,
        player_id: Optional[str] = None,
        rng: Optional[random.Random] = None,
        now: Optional[datetime] = None,
    ) -> TurnOutcome:
        return await MatchService.submit_intent(redis, match_id, TimeoutIntent(player_id=player_id), rng=rng, now=now)

    @staticmethod
    async def get_legal_moves(redis: Redis, match_id: str) -> List[Move]:
        state = await MatchService.get_match(redis, match_id)
        engine = await MatchService.load_engine(redis, match_id)
        return engine.get_pending_moves(state)

    @staticmethod
    async def get_player_stats(redis: Redis, match_id: str) -> List[PlayerStats]:
        state = await MatchService.get_match(redis, match_id)
        return [calculate_player_stats(state.tokens, player.id) for player in state.players]
