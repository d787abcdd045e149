"""
Core cache data structures.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any


# Principal used in cache keys when a read is performed without a signed-in user
ANONYMOUS_PRINCIPAL = "anonymous"


class TTLClass(Enum):
    """Named expiry classes. Callers pick one per read; the store only sees seconds."""
    SHORT = "short"        # lists that change often (~5 minutes)
    LONG = "long"          # single records by immutable-ish ID (~15 minutes)
    ACTIVITY = "activity"  # dashboard activity feeds (~2 minutes)


class _Miss:
    """Sentinel returned by the TTL store when a key is absent or expired."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISS"

    def __bool__(self) -> bool:
        return False


MISS = _Miss()


@dataclass
class CacheEntry:
    """
    A cached value with the time it was stored and how long it stays valid.

    Times are seconds from the store's clock (monotonic by default).
    """
    value: Any
    inserted_at: float
    ttl: float

    def age(self, now: float) -> float:
        """Seconds since the value was stored."""
        return now - self.inserted_at

    def is_expired(self, now: float) -> bool:
        """An entry is expired once its age reaches its TTL."""
        return self.age(now) >= self.ttl
