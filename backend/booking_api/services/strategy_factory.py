"""
Showing guard factory.
Configures which admission concurrency strategy to use.
"""

from typing import Optional

from booking_api.core.config import get_settings
from booking_api.services.interfaces.admission import ShowingGuard
from booking_api.services.interfaces.local_guard import LocalShowingGuard
from booking_api.services.admission_service import RedisShowingGuard


def build_showing_guard(strategy: Optional[str] = None) -> ShowingGuard:
    """
    Build a showing guard for the given strategy name.

    - local: in-process asyncio locks (single worker, development)
    - redis: shared Redis locks (multiple workers)

    Defaults to the ADMISSION_STRATEGY setting.
    """
    strategy = strategy or get_settings().ADMISSION_STRATEGY

    if strategy == "redis":
        return RedisShowingGuard()
    if strategy == "local":
        return LocalShowingGuard()
    raise ValueError(f"Unknown admission strategy: {strategy!r}")


# Singleton instance
_guard: Optional[ShowingGuard] = None


def get_showing_guard() -> ShowingGuard:
    """FastAPI dependency returning the process-wide showing guard."""
    global _guard
    if _guard is None:
        _guard = build_showing_guard()
    return _guard


def reset_showing_guard() -> None:
    global _guard
    _guard = None
