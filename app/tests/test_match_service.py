# app/tests/test_match_service.py

import asyncio
import json
from datetime import timedelta

import pytest
from redis.asyncio.client import Pipeline
from redis.exceptions import WatchError
from config.settings import settings
from services.match_service import MatchService
from schemas.ludo_schema import BotDifficulty, GameMode, Move, PlayerSeat, TurnPhase
from exceptions.domain_exceptions import (
    NotFoundException,
    BadRequestException,
    ConflictException,
    InvalidMoveException,
    NotCurrentPlayerException,
    ConcurrentUpdateException,
)
from test_helpers import ScriptedRandom, T0

SEATS = [PlayerSeat(id="p1"), PlayerSeat(id="p2")]


async def create(redis_client, match_id="M1", mode=GameMode.QUICK, rules=None):
    return await MatchService.create_match(
        redis=redis_client,
        match_id=match_id,
        players=SEATS,
        mode=mode,
        rules=rules,
        now=T0,
    )


@pytest.mark.asyncio
class TestMatchService:
    """Comprehensive tests for MatchService"""

    # ============================================================================
    # CREATE MATCH TESTS
    # ============================================================================

    async def test_create_match_success(self, redis_client):
        """Test successful match creation"""
        state = await create(redis_client, mode=GameMode.CLASSIC)

        assert state.current_player_id == "p1"
        assert state.mode == GameMode.CLASSIC
        assert state.version == 0

        # Verify data is stored in Redis with camelCase fields
        stored = json.loads(await redis_client.get(MatchService._match_state_key("M1")))
        assert stored["currentPlayerId"] == "p1"
        assert len(stored["tokens"]) == 8

        ttl = await redis_client.ttl(MatchService._match_state_key("M1"))
        assert 0 < ttl <= settings.MATCH_TTL_SECONDS

    async def test_create_match_with_rules(self, redis_client):
        """Test that custom rules are stored with the match"""
        await create(redis_client, rules={"auto_move": "yes"})

        assert await MatchService.get_rules(redis_client, "M1") == {"auto_move": "yes"}
        engine = await MatchService.load_engine(redis_client, "M1")
        assert engine.auto_move is True

    async def test_create_match_already_exists(self, redis_client):
        """Test that creating a match twice fails"""
        await create(redis_client)

        with pytest.raises(ConflictException, match="already exists"):
            await create(redis_client)

    async def test_create_match_invalid_players(self, redis_client):
        """Test that an invalid player list is rejected"""
        with pytest.raises(BadRequestException, match="2-4 players"):
            await MatchService.create_match(redis_client, "M1", [PlayerSeat(id="p1")])

    async def test_create_match_with_bot_fill(self, redis_client):
        """Test that a single player can start against bots, which play right after them"""
        state = await MatchService.create_match(
            redis_client, "B1", [PlayerSeat(id="p1")], mode=GameMode.QUICK, now=T0,
            bot_fill=BotDifficulty.MEDIUM, rng=ScriptedRandom(seed=3),
        )
        assert [p.id for p in state.players] == ["p1", "bot-blue", "bot-yellow", "bot-green"]

        await MatchService.roll(redis_client, "B1", "p1", rng=ScriptedRandom(rolls=[3]), now=T0)
        moved = await MatchService.make_move(
            redis_client, "B1", "p1", Move(token_id="p1-0", from_=0, to=3),
            rng=ScriptedRandom(rolls=[2, 2, 2]), now=T0,
        )

        assert [turn.move for turn in moved.bot_turns] == [
            Move(token_id="bot-blue-0", from_=13, to=15),
            Move(token_id="bot-yellow-0", from_=26, to=28),
            Move(token_id="bot-green-0", from_=39, to=41),
        ]
        assert moved.state.current_player_id == "p1"
        stored = await MatchService.get_match(redis_client, "B1")
        assert stored == moved.state
        assert stored.version == 2

        assert await redis_client.get(MatchService._match_state_key("M1")) is None

    async def test_create_match_invalid_rules(self, redis_client):
        """Test that unknown rules are rejected"""
        with pytest.raises(BadRequestException, match="Unknown rule"):
            await create(redis_client, rules={"board_size": 3})

    # ============================================================================
    # READ TESTS
    # ============================================================================

    async def test_get_match(self, redis_client):
        """Test that the stored snapshot reads back equal"""
        created = await create(redis_client)
        assert await MatchService.get_match(redis_client, "M1") == created

    async def test_get_match_not_found(self, redis_client):
        """Test reading a match that does not exist"""
        with pytest.raises(NotFoundException, match="Match not found"):
            await MatchService.get_match(redis_client, "MISSING")

    async def test_intent_on_missing_match(self, redis_client):
        """Test that transitions on a missing match fail"""
        with pytest.raises(NotFoundException):
            await MatchService.roll(redis_client, "MISSING", "p1")

    async def test_delete_match(self, redis_client):
        """Test deleting a match removes both keys"""
        await create(redis_client, rules={"auto_move": "no"})
        await MatchService.delete_match(redis_client, "M1")

        assert await redis_client.get(MatchService._match_state_key("M1")) is None
        assert await redis_client.get(MatchService._match_rules_key("M1")) is None

    # ============================================================================
    # TRANSITION TESTS
    # ============================================================================

    async def test_roll_and_move(self, redis_client):
        """Test a full turn persisted through the store"""
        await create(redis_client)

        rolled = await MatchService.roll(redis_client, "M1", "p1", rng=ScriptedRandom(rolls=[3]))
        assert rolled.state.phase == TurnPhase.AWAITING_MOVE
        assert len(rolled.legal_moves) == 4

        moves = await MatchService.get_legal_moves(redis_client, "M1")
        assert moves == rolled.legal_moves

        moved = await MatchService.make_move(redis_client, "M1", "p1", Move(token_id="p1-0", from_=0, to=3))
        assert moved.state.current_player_id == "p2"

        stored = await MatchService.get_match(redis_client, "M1")
        assert stored == moved.state
        assert stored.version == 2
        assert stored.get_token("p1-0").position == 3

    async def test_rejected_intent_writes_nothing(self, redis_client):
        """Test that a rule violation leaves the stored snapshot untouched"""
        created = await create(redis_client)

        with pytest.raises(NotCurrentPlayerException):
            await MatchService.roll(redis_client, "M1", "p2")
        with pytest.raises(InvalidMoveException, match="Must roll dice"):
            await MatchService.make_move(redis_client, "M1", "p1", Move(token_id="p1-0", from_=0, to=3))

        assert await MatchService.get_match(redis_client, "M1") == created

    async def test_timeout(self, redis_client):
        """Test that the clock plays an expired turn"""
        await create(redis_client)

        outcome = await MatchService.handle_timeout(
            redis_client, "M1", rng=ScriptedRandom(rolls=[2]), now=T0 + timedelta(seconds=6)
        )

        assert outcome.move is not None
        assert outcome.state.current_player_id == "p2"
        assert (await MatchService.get_match(redis_client, "M1")).version == 1

    async def test_timeout_not_expired(self, redis_client):
        """Test that an early clock signal is rejected"""
        await create(redis_client)

        with pytest.raises(InvalidMoveException, match="not timed out"):
            await MatchService.handle_timeout(redis_client, "M1", "p1", now=T0 + timedelta(seconds=2))

    async def test_player_stats(self, redis_client):
        """Test per-player stats of a stored match"""
        await create(redis_client, mode=GameMode.CLASSIC)

        stats = await MatchService.get_player_stats(redis_client, "M1")

        assert [s.player_id for s in stats] == ["p1", "p2"]
        assert all(s.tokens_in_home == 4 for s in stats)

    # ============================================================================
    # CONCURRENCY TESTS
    # ============================================================================

    async def test_watch_conflict_is_retried(self, redis_client, monkeypatch):
        """Test that a lost compare-and-swap is recomputed and committed"""
        await create(redis_client)
        original_execute = Pipeline.execute
        calls = {"count": 0}

        async def flaky_execute(self, raise_on_error=True):
            calls["count"] += 1
            if calls["count"] == 1:
                raise WatchError("Watched variable changed.")
            return await original_execute(self, raise_on_error)

        monkeypatch.setattr(Pipeline, "execute", flaky_execute)

        outcome = await MatchService.roll(redis_client, "M1", "p1", rng=ScriptedRandom(rolls=[3, 5]))

        assert calls["count"] == 2
        # The retry rolled again on a fresh read
        assert outcome.dice_value == 5
        assert (await MatchService.get_match(redis_client, "M1")).version == 1

    async def test_watch_conflict_gives_up(self, redis_client, monkeypatch):
        """Test that a snapshot that never settles raises and writes nothing"""
        await create(redis_client)

        async def always_conflict(self, raise_on_error=True):
            raise WatchError("Watched variable changed.")

        monkeypatch.setattr(Pipeline, "execute", always_conflict)
        monkeypatch.setattr(settings, "MATCH_MAX_CAS_RETRIES", 2)

        with pytest.raises(ConcurrentUpdateException):
            await MatchService.roll(redis_client, "M1", "p1", rng=ScriptedRandom(rolls=[3, 3]))

        monkeypatch.undo()
        assert (await MatchService.get_match(redis_client, "M1")).version == 0

    async def test_concurrent_rolls(self, redis_client):
        """Test that two simultaneous rolls commit exactly once"""
        await create(redis_client)

        results = await asyncio.gather(
            MatchService.roll(redis_client, "M1", "p1", rng=ScriptedRandom(rolls=[3])),
            MatchService.roll(redis_client, "M1", "p1", rng=ScriptedRandom(rolls=[3])),
            return_exceptions=True,
        )

        successes = [r for r in results if not isinstance(r, Exception)]
        failures = [r for r in results if isinstance(r, Exception)]
        assert len(successes) == 1
        assert len(failures) == 1
        assert isinstance(failures[0], InvalidMoveException)
        assert (await MatchService.get_match(redis_client, "M1")).version == 1
