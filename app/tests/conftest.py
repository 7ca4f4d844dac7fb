"""
Pytest configuration and fixtures for testing
"""
import pytest
from unittest.mock import AsyncMock
from services.game_service import GameService


@pytest.fixture
async def redis_client():
    """Create a test Redis client using fakeredis"""
    import fakeredis.aioredis

    redis = fakeredis.aioredis.FakeRedis(decode_responses=True)

    yield redis

    # Cleanup
    await redis.flushall()
    await redis.aclose()


@pytest.fixture(autouse=True)
def reset_session_locks():
    """Session locks are bound to the event loop of the test that created them"""
    GameService._locks.clear()
    yield
    GameService._locks.clear()


@pytest.fixture
def published_events(monkeypatch):
    """Capture events instead of emitting them over Socket.IO"""
    from services.event_publisher import EventPublisher

    publish = AsyncMock()
    monkeypatch.setattr(EventPublisher, "publish", publish)
    return publish


@pytest.fixture
def connected_redis(redis_client, monkeypatch):
    """Point the shared Redis connection at the fake client"""
    from infrastructure.redis_connection import redis_connection

    monkeypatch.setattr(redis_connection, "client", redis_client)
    return redis_client
