"""
Pytest configuration and fixtures for testing
"""
import pytest

from test_helpers import ScriptedRandom, make_state


@pytest.fixture
async def redis_client():
    """Create a test Redis client using fakeredis"""
    import fakeredis.aioredis

    redis = fakeredis.aioredis.FakeRedis(decode_responses=True)

    yield redis

    # Cleanup
    await redis.flushall()
    await redis.aclose()


@pytest.fixture
def two_player_state():
    """Classic two-player match, everyone in home base, p1 to roll"""
    return make_state(2)


@pytest.fixture
def seeded_rng():
    """Deterministic random source with no scripted values"""
    return ScriptedRandom(seed=1234)
