"""
Background sweep of expired cache entries.

Reads already evict what they find expired; the janitor catches keys that
are written once and never read again.
"""
import asyncio
import logging
from typing import Optional

from config.settings import settings
from .manager import CacheManager

logger = logging.getLogger("cache.janitor")


class CacheJanitor:
    """Runs ``cleanup_expired_cache`` on a fixed interval."""

    def __init__(self, manager: CacheManager, interval: Optional[float] = None):
        self._manager = manager
        self._interval = interval if interval is not None else settings.cache_janitor_interval_seconds
        self._task: Optional[asyncio.Task] = None
        self.sweeps = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def run_once(self) -> int:
        removed = self._manager.cleanup_expired_cache()
        self.sweeps += 1
        return removed

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                removed = self.run_once()
            except Exception as e:
                logger.error(f"Cache sweep failed: {e!r}", exc_info=True)
                continue
            if removed:
                logger.info(f"Janitor evicted {removed} expired entries")

    def start(self) -> None:
        """Start sweeping on the running event loop. No-op if already started."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._loop())
        logger.debug(f"Cache janitor started (interval={self._interval}s)")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.debug("Cache janitor stopped")
