"""
In-process showing guard: one asyncio.Lock per showing key.
"""

import asyncio
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

from booking_api.core.metrics import showing_lock_wait
from booking_api.services.interfaces.admission import ShowingGuard
from booking_api.services.seats import ShowingKey


class LocalShowingGuard(ShowingGuard):
    """
    Serializes admissions per showing within a single process.

    Locks are created on first use and dropped when the last holder or
    waiter leaves, so the map only ever contains showings under contention.

    Use when:
    - A single API worker serves all bookings
    - Tests and local development
    """

    strategy = "local"

    def __init__(self):
        self._locks: dict[ShowingKey, asyncio.Lock] = {}
        self._users: dict[ShowingKey, int] = {}

    @property
    def active_keys(self) -> set[ShowingKey]:
        return set(self._locks)

    @asynccontextmanager
    async def hold(self, key: ShowingKey) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            start = time.perf_counter()
            async with lock:
                showing_lock_wait.labels(strategy=self.strategy).observe(time.perf_counter() - start)
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]
