"""
Redis Configuration

Async Redis client, used as the rate limiter backend.
"""

from redis.asyncio import Redis, from_url

from tryout.core.config import settings

# Redis client instance
redis_client: Redis | None = None


async def init_redis() -> Redis:
    """
    Initialize Redis connection.

    Call this on application startup.
    """
    global redis_client
    redis_client = from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    try:
        await redis_client.ping()
    except Exception:
        await redis_client.aclose()
        redis_client = None
        raise
    return redis_client


def get_redis() -> Redis | None:
    """Return the Redis client, or None when Redis is not available."""
    return redis_client


async def close_redis() -> None:
    """Close Redis connection."""
    global redis_client
    if redis_client:
        await redis_client.aclose()
        redis_client = None
