"""
Rate Limiting Module

Sliding-window rate limiting backed by Redis, falling back to in-memory
storage when Redis is unavailable.

Used to throttle abuse of the public endpoints that send email or check
credentials, and of admin decision endpoints. It is a per-client abuse
limit, not a per-email OTP resend cooldown.
"""

import logging
import time

from fastapi import Request

from tryout.core.errors import ServiceError
from tryout.core.redis import get_redis

logger = logging.getLogger(__name__)

# In-memory rate limit storage (fallback when Redis unavailable)
_memory_store: dict[str, list[float]] = {}

# Above this many keys, keys with no hit inside their window are dropped
MEMORY_STORE_SWEEP_THRESHOLD = 10_000
_memory_windows: dict[str, int] = {}


class RateLimitExceeded(ServiceError):
    """Raised when rate limit is exceeded."""

    def __init__(self, limit: int, window_seconds: int):
        self.retry_after_seconds = window_seconds
        super().__init__(
            message=(
                f"Terlalu banyak permintaan. Maksimal {limit} permintaan per "
                f"{window_seconds} detik, silakan coba lagi nanti."
            ),
            error_code="RATE_LIMIT_EXCEEDED",
            status_code=429,
        )


async def _check_rate_limit_redis(client, key: str, limit: int, window_seconds: int) -> bool:
    """
    Check rate limit using Redis sorted sets.

    Returns:
        True if request is allowed, False if rate limit exceeded
    """
    now = time.time()
    window_start = now - window_seconds

    pipe = client.pipeline()
    pipe.zremrangebyscore(key, 0, window_start)
    pipe.zcard(key)
    pipe.zadd(key, {str(now): now})
    pipe.expire(key, window_seconds)

    results = await pipe.execute()
    current_count = results[1]

    return current_count < limit


def _sweep_memory_store(now: float) -> None:
    """Drop keys whose newest hit is older than their window."""
    stale = [
        key
        for key, hits in _memory_store.items()
        if not hits or hits[-1] <= now - _memory_windows.get(key, 0)
    ]
    for key in stale:
        _memory_store.pop(key, None)
        _memory_windows.pop(key, None)
    if stale:
        logger.debug(f"Rate limit memory store: dropped {len(stale)} stale key(s)")


def _check_rate_limit_memory(key: str, limit: int, window_seconds: int) -> bool:
    """
    Check rate limit using in-memory storage.

    Only correct for a single server process.
    """
    now = time.time()
    window_start = now - window_seconds

    if key not in _memory_store and len(_memory_store) >= MEMORY_STORE_SWEEP_THRESHOLD:
        _sweep_memory_store(now)

    _memory_windows[key] = window_seconds
    hits = [ts for ts in _memory_store.get(key, []) if ts > window_start]

    if len(hits) >= limit:
        _memory_store[key] = hits
        return False

    hits.append(now)
    _memory_store[key] = hits
    return True


async def check_rate_limit(key: str, limit: int, window_seconds: int) -> bool:
    """
    Check if a request is within rate limits.

    Tries Redis first, falls back to in-memory storage.

    Args:
        key: Unique key for this rate limit (e.g., "send-otp:10.0.0.1")
        limit: Maximum requests allowed in the window
        window_seconds: Time window in seconds

    Returns:
        True if request is allowed, False if rate limit exceeded
    """
    client = get_redis()

    if client is not None:
        try:
            return await _check_rate_limit_redis(client, key, limit, window_seconds)
        except Exception as e:
            logger.warning(f"Redis rate limit check failed, using memory: {e}")

    return _check_rate_limit_memory(key, limit, window_seconds)


async def enforce_rate_limit(key: str, limit: int, window_seconds: int) -> None:
    """
    Raise RateLimitExceeded when the key is over its limit.

    Raises:
        RateLimitExceeded: When rate limit is exceeded (HTTP 429)
    """
    allowed = await check_rate_limit(f"rate_limit:{key}", limit, window_seconds)
    if not allowed:
        logger.warning(f"Rate limit exceeded for {key}: {limit}/{window_seconds}s")
        raise RateLimitExceeded(limit, window_seconds)


def client_ip(request: Request) -> str:
    """
    Client address for rate limit keys.

    Only the socket peer is used. Behind a reverse proxy, run uvicorn with
    --proxy-headers and --forwarded-allow-ips so the trusted proxy's
    X-Forwarded-For is applied to request.client; the raw header is never read.
    """
    return request.client.host if request.client else "unknown"


__all__ = [
    "RateLimitExceeded",
    "check_rate_limit",
    "enforce_rate_limit",
    "client_ip",
]
