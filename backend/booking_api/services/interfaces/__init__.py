"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .admission import ShowingGuard
from .local_guard import LocalShowingGuard

__all__ = ['ShowingGuard', 'LocalShowingGuard']
