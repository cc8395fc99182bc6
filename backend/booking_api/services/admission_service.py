"""
Redis-backed showing guard for multi-process deployments.
Implements the ShowingGuard interface with one Redis lock per showing.

Circuit Breaker Pattern:
  If Redis cannot be reached the guard "fails open" to an in-process lock.
  Admissions inside one worker stay serialized, and the seat_claims unique
  constraint still rejects cross-worker overlaps at commit time, so an
  outage degrades throughput (retries) rather than correctness.

  Failing to acquire the lock within SHOWING_LOCK_WAIT_SECONDS is not a
  Redis failure: it means the showing is saturated, and is surfaced as a
  storage timeout.
"""

import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from redis.exceptions import LockError, RedisError

from booking_api.core.config import get_settings
from booking_api.core.exceptions import StorageTimeoutError
from booking_api.core.logging import get_logger
from booking_api.core.metrics import redis_connection_errors, redis_circuit_breaker_open, showing_lock_wait
from booking_api.infrastructure.redis_client import get_redis
from booking_api.services.interfaces.admission import ShowingGuard
from booking_api.services.interfaces.local_guard import LocalShowingGuard
from booking_api.services.seats import ShowingKey

logger = get_logger(__name__)

LOCK_PREFIX = "showing-lock:"


class RedisShowingGuard(ShowingGuard):
    """
    Redis lock per showing key.

    Use when:
    - Several API workers or hosts accept bookings
    - A single hot showing must not cause constraint-retry storms
    """

    strategy = "redis"

    def __init__(
        self,
        lock_ttl: Optional[float] = None,
        wait_timeout: Optional[float] = None,
        fallback: Optional[LocalShowingGuard] = None,
    ):
        settings = get_settings()
        self.lock_ttl = lock_ttl if lock_ttl is not None else settings.SHOWING_LOCK_TTL_SECONDS
        self.wait_timeout = wait_timeout if wait_timeout is not None else settings.SHOWING_LOCK_WAIT_SECONDS
        self.fallback = fallback or LocalShowingGuard()

    @asynccontextmanager
    async def hold(self, key: ShowingKey) -> AsyncIterator[None]:
        client = await get_redis()
        if client is None:
            # Unreachable or backing off: the breaker stays open until a lock is taken
            redis_circuit_breaker_open.set(1)
            logger.warning("showing_lock_fail_open", showing=str(key), error="redis unavailable")
            async with self.fallback.hold(key):
                yield
            return

        lock = client.lock(
            f"{LOCK_PREFIX}{key}",
            timeout=self.lock_ttl,
            blocking_timeout=self.wait_timeout,
        )
        start = time.perf_counter()
        try:
            acquired = await lock.acquire()
        except RedisError as e:
            # Circuit breaker: fall back to in-process serialization
            redis_connection_errors.inc()
            redis_circuit_breaker_open.set(1)
            logger.warning("showing_lock_fail_open", showing=str(key), error=str(e))
            async with self.fallback.hold(key):
                yield
            return

        if not acquired:
            raise StorageTimeoutError("showing_lock", self.wait_timeout)

        redis_circuit_breaker_open.set(0)
        showing_lock_wait.labels(strategy=self.strategy).observe(time.perf_counter() - start)
        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError:
                # TTL elapsed before release; the claims constraint covered the overlap window
                logger.warning("showing_lock_expired", showing=str(key), ttl=self.lock_ttl)
            except RedisError as e:
                redis_connection_errors.inc()
                logger.warning("showing_lock_release_failed", showing=str(key), error=str(e))
