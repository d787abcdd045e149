"""
In-memory TTL store.

Each entry carries its own TTL; the store has no default. Lookups of
expired entries evict them, and ``sweep_expired`` removes the ones nobody
reads again.
"""
import logging
import time
from typing import Any, Callable, Dict, Iterator, Tuple

from .core import CacheEntry, MISS

logger = logging.getLogger("cache.store")


class TTLStore:
    """
    Mapping of cache key -> CacheEntry.

    Not thread-safe: all access is expected from one event loop.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._entries: Dict[str, CacheEntry] = {}
        self._clock = clock

    def now(self) -> float:
        return self._clock()

    def get(self, key: str) -> Any:
        """Return the stored value, or MISS if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return MISS
        if entry.is_expired(self._clock()):
            del self._entries[key]
            logger.debug(f"Evicted expired entry on read: {key}")
            return MISS
        return entry.value

    def set(self, key: str, value: Any, ttl: float) -> None:
        """Store a value, replacing whatever was there."""
        self._entries[key] = CacheEntry(value=value, inserted_at=self._clock(), ttl=ttl)

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def delete_matching(self, predicate: Callable[[str], bool]) -> int:
        """Delete every entry whose key satisfies the predicate."""
        to_delete = [k for k in self._entries if predicate(k)]
        for key in to_delete:
            del self._entries[key]
        return len(to_delete)

    def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count

    def sweep_expired(self) -> int:
        """Remove all expired entries. Returns how many were removed."""
        now = self._clock()
        return self.delete_matching(lambda k: self._entries[k].is_expired(now))

    def snapshot(self) -> Tuple[int, int, int]:
        """(total, valid, expired) counts. Does not evict anything."""
        now = self._clock()
        expired = sum(1 for entry in self._entries.values() if entry.is_expired(now))
        total = len(self._entries)
        return total, total - expired, expired

    def keys(self) -> Iterator[str]:
        return iter(list(self._entries))

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
