"""
Refresh Coordination

Prevents overlapping library refresh runs (scheduled or manual).
"""
import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any


logger = logging.getLogger(__name__)


class RefreshCoordinator:
    """
    Coordinates library refresh runs so only one executes at a time.

    A request arriving while a run is in progress is skipped rather than queued.
    """

    def __init__(self):
        self._refresh_lock = asyncio.Lock()

    async def execute(self, refresh_func: Callable[[], Awaitable[dict[str, Any]]]) -> dict[str, Any]:
        """
        Execute a refresh run with concurrency protection.

        Args:
            refresh_func: Async function performing the refresh

        Returns:
            Result from refresh_func, or a skip response if a run is in progress
        """
        if self._refresh_lock.locked():
            logger.warning("Playlist refresh already in progress, skipping this request")
            return {
                "status": "skipped",
                "message": "Playlist refresh already in progress"
            }

        async with self._refresh_lock:
            return await refresh_func()

    def is_running(self) -> bool:
        """Check if a refresh run is currently in progress."""
        return self._refresh_lock.locked()


_coordinator: RefreshCoordinator | None = None


def get_refresh_coordinator() -> RefreshCoordinator:
    """Get or create the global refresh coordinator."""
    global _coordinator
    if _coordinator is None:
        _coordinator = RefreshCoordinator()
    return _coordinator


def reset_refresh_coordinator() -> None:
    """
    Reset the refresh coordinator (mainly for testing).

    WARNING: Only use this in test environments!
    """
    global _coordinator
    _coordinator = None
