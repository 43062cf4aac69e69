"""Ephemeral key-value storage in Redis (TTL on every key, no transactions)."""
import logging
from typing import Protocol

from redis.exceptions import RedisError

from livetrack import clock
from livetrack.errors import StoreUnavailable

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    async def get(self, key: str) -> bytes | str | None: ...

    async def set(self, key: str, value: str, ttl: int) -> None: ...

    async def delete(self, key: str) -> None: ...


def session_key(prefix: str, session_id: str) -> str:
    return f"{prefix}:session:{session_id}"


def share_key(prefix: str, share_id: str) -> str:
    return f"{prefix}:share:{share_id}"


def group_pin_key(prefix: str, pin: int) -> str:
    return f"{prefix}:groupid:{pin}"


class RedisStore:
    """KeyValueStore over a redis.asyncio client. Redis errors surface as StoreUnavailable."""

    def __init__(self, redis) -> None:
        self._redis = redis

    async def get(self, key: str) -> bytes | None:
        try:
            return await self._redis.get(key)
        except RedisError as e:
            logger.warning("Redis GET %s failed: %s", key, e)
            raise StoreUnavailable(str(e)) from e

    async def set(self, key: str, value: str, ttl: int) -> None:
        # A non-positive TTL means the value is already stale; never hand it to SETEX.
        if ttl <= 0:
            await self.delete(key)
            return
        try:
            await self._redis.setex(key, ttl, value)
        except RedisError as e:
            logger.warning("Redis SETEX %s failed: %s", key, e)
            raise StoreUnavailable(str(e)) from e

    async def delete(self, key: str) -> None:
        try:
            await self._redis.delete(key)
        except RedisError as e:
            logger.warning("Redis DEL %s failed: %s", key, e)
            raise StoreUnavailable(str(e)) from e


async def store_until(store: KeyValueStore, key: str, value: str, expire: int) -> bool:
    """Write value so that it lives until the absolute time expire.

    If expire is already in the past the key is deleted instead. Returns True
    when the value was written.
    """
    ttl = expire - clock.now()
    if ttl <= 0:
        logger.debug("%s expired at %s; deleting", key, expire)
        await store.delete(key)
        return False
    await store.set(key, value, ttl)
    logger.debug("Stored %s (ttl=%ss)", key, ttl)
    return True
