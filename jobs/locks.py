"""
Redis job locks.

Keeps two workers from running the same periodic job at once
(e.g. two invoicing runs for the same month).
"""

import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import redis.asyncio as redis
from loguru import logger


# Delete the key only if we still own it
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


class JobAlreadyRunningError(Exception):
    """Another worker holds the lock."""


class JobLock:
    """SET NX EX lock with owner-checked release."""

    def __init__(self, redis_client: redis.Redis, prefix: str = "lock:job:") -> None:
        self.redis = redis_client
        self.prefix = prefix

    @asynccontextmanager
    async def lock(self, name: str, timeout: int = 300) -> AsyncIterator[None]:
        """
        Hold the named lock for the duration of the block.

        Args:
            name: Lock name
            timeout: Expiry in seconds if the holder dies

        Raises:
            JobAlreadyRunningError: If the lock is held elsewhere
        """
        key = f"{self.prefix}{name}"
        token = uuid.uuid4().hex
        acquired = await self.redis.set(key, token, nx=True, ex=timeout)
        if not acquired:
            raise JobAlreadyRunningError(name)

        logger.debug(f"Acquired job lock {key}")
        try:
            yield
        finally:
            try:
                await self.redis.eval(_RELEASE_SCRIPT, 1, key, token)
            except redis.RedisError as e:
                logger.warning(f"Failed to release job lock {key}: {e}")
