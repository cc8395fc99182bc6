"""
Showing guard interface.
Allows swapping between concurrency control approaches for admission.
"""

from abc import ABC, abstractmethod
from typing import AsyncContextManager

from booking_api.services.seats import ShowingKey


class ShowingGuard(ABC):
    """
    Mutual exclusion scoped to one showing for the duration of an
    admission decision (availability read, conflict check, insert, commit).

    Implementations:
    - LocalShowingGuard: asyncio locks inside one process
    - RedisShowingGuard: Redis locks shared by every process
    """

    strategy: str = "abstract"

    @abstractmethod
    def hold(self, key: ShowingKey) -> AsyncContextManager[None]:
        """
        Hold the showing exclusively while the context is open.

        Args:
            key: Showing whose seat set is being decided
        """
