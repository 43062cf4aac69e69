"""Redis async client; set in lifespan, wrapped as a KeyValueStore for the routes."""
import redis.asyncio as aioredis

from livetrack.services.kv_store import RedisStore

_redis: aioredis.Redis | None = None


def set_redis(client: aioredis.Redis | None) -> None:
    global _redis
    _redis = client


async def get_redis() -> aioredis.Redis:
    if _redis is None:
        raise RuntimeError("Redis not initialized")
    return _redis


async def get_store() -> RedisStore:
    """FastAPI dependency: the shared Redis connection as a KeyValueStore."""
    return RedisStore(await get_redis())
