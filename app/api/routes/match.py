# app/api/routes/match.py

from fastapi import APIRouter, Depends
from redis.asyncio import Redis
from infrastructure.redis_connection import get_redis
from services.match_service import MatchService
from services.games.ludo_engine import LudoEngine
from schemas.game_schema import (
    GameInfo,
    CreateMatchRequest,
    RollRequest,
    MoveRequest,
    TimeoutRequest,
    MatchStateResponse,
    LegalMovesResponse,
    PlayerStatsResponse,
)
from schemas.ludo_schema import TurnOutcome, TurnPhase

router = APIRouter(prefix="/matches", tags=["matches"])


async def _state_response(redis: Redis, match_id: str) -> MatchStateResponse:
    state = await MatchService.get_match(redis, match_id)
    rules = await MatchService.get_rules(redis, match_id)
    engine = LudoEngine(rules)
    return MatchStateResponse(
        match_id=match_id,
        game_state=state,
        rules=rules,
        remaining_time=engine.get_remaining_time(state) if state.phase != TurnPhase.FINISHED else None,
    )


@router.get("/info", response_model=GameInfo)
async def get_game_info():
    """Get static Ludo information: player counts, modes and configurable rules"""
    return LudoEngine.get_game_info()


@router.post("", response_model=MatchStateResponse, status_code=201)
async def create_match(request: CreateMatchRequest, redis: Redis = Depends(get_redis)):
    """
    Create a match and store its opening snapshot.

    Colors are assigned by seat order (red, blue, yellow, green) and the
    first player rolls first. With botFill the empty seats go to bots.
    """
    await MatchService.create_match(
        redis=redis,
        match_id=request.match_id,
        players=request.players,
        mode=request.mode,
        rules=request.rules,
        bot_fill=request.bot_fill,
    )
    return await _state_response(redis, request.match_id)


@router.get("/{match_id}", response_model=MatchStateResponse)
async def get_match(match_id: str, redis: Redis = Depends(get_redis)):
    """Get the current snapshot with the remaining turn time"""
    return await _state_response(redis, match_id)


@router.get("/{match_id}/legal-moves", response_model=LegalMovesResponse)
async def get_legal_moves(match_id: str, redis: Redis = Depends(get_redis)):
    """Get legal moves for the pending roll (empty while a roll is awaited)"""
    state = await MatchService.get_match(redis, match_id)
    moves = await MatchService.get_legal_moves(redis, match_id)
    return LegalMovesResponse(
        match_id=match_id,
        current_player_id=state.current_player_id,
        dice_value=state.last_dice_roll if moves else None,
        moves=moves,
    )


@router.get("/{match_id}/stats", response_model=PlayerStatsResponse)
async def get_player_stats(match_id: str, redis: Redis = Depends(get_redis)):
    """Get per-player token counts and progress"""
    stats = await MatchService.get_player_stats(redis, match_id)
    return PlayerStatsResponse(match_id=match_id, stats=stats)


@router.post("/{match_id}/roll", response_model=TurnOutcome)
async def roll_dice(match_id: str, request: RollRequest, redis: Redis = Depends(get_redis)):
    """Roll the dice for the current player"""
    return await MatchService.roll(redis, match_id, request.player_id)


@router.post("/{match_id}/move", response_model=TurnOutcome)
async def make_move(match_id: str, request: MoveRequest, redis: Redis = Depends(get_redis)):
    """
    Move a token with the pending roll.

    The move is re-validated against the legal set recomputed from the stored
    snapshot; client-supplied destinations are never trusted.
    """
    return await MatchService.make_move(redis, match_id, request.player_id, request.move)


@router.post("/{match_id}/timeout", response_model=TurnOutcome)
async def handle_timeout(match_id: str, request: TimeoutRequest, redis: Redis = Depends(get_redis)):
    """Play the current turn automatically once its time limit has expired"""
    return await MatchService.handle_timeout(redis, match_id, request.player_id)
