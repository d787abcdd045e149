"""
Request coalescing to prevent duplicate reads against the data store.

When multiple concurrent callers ask for the same key, only one
fetch is made and all callers share its result (or its exception).
"""
import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict

logger = logging.getLogger("cache.coalescer")


@dataclass
class InFlightRequest:
    """Tracks an in-progress fetch."""
    key: str
    task: "asyncio.Task[Any]"
    started_at: float = field(default_factory=time.time)
    waiter_count: int = 0


class RequestCoalescer:
    """
    Ensures concurrent requests for the same cache key share one fetch.

    Pattern:
    - First request for a key starts the fetch as a task
    - Subsequent requests for the same key await that task
    - When the task settles, its record is dropped before any caller resumes
    - Failures are not remembered: the next call starts a new fetch

    Callers await through ``asyncio.shield``, so a caller that is cancelled
    walks away without cancelling the shared fetch.

    Usage:
        coalescer = RequestCoalescer()
        rows = await coalescer.run_exclusive(
            "interactive_assignment:anonymous:...",
            lambda: executor.run(query),
        )
    """

    def __init__(self):
        self._in_flight: Dict[str, InFlightRequest] = {}

    async def run_exclusive(
        self,
        key: str,
        fetch_fn: Callable[[], Awaitable[Any]],
    ) -> Any:
        """
        Either join an existing in-flight fetch or start a new one.

        Args:
            key: Cache key identifying the read
            fetch_fn: Zero-argument coroutine function performing the read

        Returns:
            The fetched value (shared among all concurrent callers)

        Raises:
            Exception: Any error from fetch_fn, raised to every caller
        """
        in_flight = self._in_flight.get(key)
        # A settled task whose done callback has not run yet counts as absent
        if in_flight is not None and not in_flight.task.done():
            in_flight.waiter_count += 1
            logger.debug(f"Coalescing request for {key} (waiters: {in_flight.waiter_count})")
        else:
            task = asyncio.ensure_future(fetch_fn())
            in_flight = InFlightRequest(key=key, task=task)
            self._in_flight[key] = in_flight
            # Registered before any caller awaits, so it runs first on settle
            task.add_done_callback(lambda t, k=key: self._settle(k, t))
            logger.debug(f"Initiating fetch for {key}")

        return await asyncio.shield(in_flight.task)

    def _settle(self, key: str, task: "asyncio.Task[Any]") -> None:
        in_flight = self._in_flight.get(key)
        if in_flight is not None and in_flight.task is task:
            del self._in_flight[key]
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning(f"Fetch failed for {key}: {error!r}")

    def is_pending(self, key: str) -> bool:
        in_flight = self._in_flight.get(key)
        return in_flight is not None and not in_flight.task.done()

    @property
    def active_requests(self) -> int:
        """Number of currently in-flight fetches."""
        return len(self._in_flight)

    def get_stats(self) -> Dict[str, Any]:
        """Get coalescer statistics."""
        return {
            "active_requests": len(self._in_flight),
            "active_keys": list(self._in_flight.keys()),
            "waiters": sum(r.waiter_count for r in self._in_flight.values()),
        }
