"""
Redis helpers.

Client construction for job locks and masked URLs for logging.
"""

import redis.asyncio as redis

from app.config.settings import settings


async def get_redis_client() -> redis.Redis:
    """
    Create a Redis client from settings.

    Returns:
        redis.Redis with decode_responses=True
    """
    return redis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        password=settings.redis_password,
        db=settings.redis_db,
        decode_responses=True,
    )


def get_redis_url_masked() -> str:
    """
    Build the Redis URL with the password masked.

    Example:
        >>> get_redis_url_masked()
        'redis://:****@localhost:6379/0'
    """
    auth = ":****@" if settings.redis_password else ""
    return f"redis://{auth}{settings.redis_host}:{settings.redis_port}/{settings.redis_db}"
