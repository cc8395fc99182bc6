"""
Redis client for cross-process showing locks.
Separated from business logic for clean architecture.

After a failed connect or ping, no new connection is attempted for
REDIS_RETRY_BACKOFF_SECONDS, so an outage costs one connect timeout per
back-off window instead of one per admission.
"""

import time
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from booking_api.core.config import get_settings
from booking_api.core.logging import get_logger
from booking_api.core.metrics import redis_connection_errors

logger = get_logger(__name__)

_redis_client: Optional[redis.Redis] = None
# time.monotonic() before which get_redis() does not try to reconnect
_retry_after: float = 0.0


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is not in use or unreachable."""
    global _redis_client, _retry_after
    settings = get_settings()

    if settings.ADMISSION_STRATEGY != "redis":
        return None

    if _redis_client is None:
        if time.monotonic() < _retry_after:
            return None

        client = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
            health_check_interval=30,
        )
        try:
            await client.ping()
        except RedisError as e:
            redis_connection_errors.inc()
            _retry_after = time.monotonic() + settings.REDIS_RETRY_BACKOFF_SECONDS
            logger.error(
                "redis_connection_failed",
                error=str(e),
                retry_in=settings.REDIS_RETRY_BACKOFF_SECONDS,
            )
            await client.aclose()
            return None
        logger.info("redis_connected", url=settings.REDIS_URL)
        _redis_client = client
        _retry_after = 0.0

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client, _retry_after
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None
    _retry_after = 0.0
