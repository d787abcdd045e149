"""
Main cache orchestration: read-through TTL cache with request coalescing.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from classroom.datastore import DataStoreClient, create_client
from config.settings import settings
from .coalescer import RequestCoalescer
from .core import MISS, TTLClass
from .executor import FetchExecutor, QueryBuilder
from .keys import build_key
from .store import TTLStore
from .ttl_policies import TTLSpec, resolve_ttl

logger = logging.getLogger("cache.manager")


@dataclass
class PreloadConfig:
    """One read to warm during preload."""
    resource: str
    query_builder: QueryBuilder
    principal_id: Optional[str] = None
    ttl: Optional[TTLSpec] = None


class CacheManager:
    """
    Read-through cache in front of the data store with:
    - Per-call TTL (seconds or a TTLClass)
    - Request coalescing for concurrent reads of the same key
    - Keys partitioned by acting principal
    - Substring invalidation

    Cached values are returned by reference. Callers must treat them as
    read-only; mutating a returned list mutates the cached copy.
    """

    def __init__(
        self,
        client_factory: Optional[Callable[[], DataStoreClient]] = None,
        *,
        client: Optional[DataStoreClient] = None,
        store: Optional[TTLStore] = None,
        coalescer: Optional[RequestCoalescer] = None,
        enabled: bool = True,
    ):
        """
        Initialize the cache manager.

        Args:
            client_factory: Builds the data store client on first fetch
            client: Ready-made client (takes precedence over the factory)
            store: TTL store, e.g. one with a test clock
            coalescer: Request coalescer
            enabled: False turns every read into a coalesced pass-through
        """
        self._executor = FetchExecutor(client_factory or create_client, client=client)
        self._store = store if store is not None else TTLStore()
        self._coalescer = coalescer if coalescer is not None else RequestCoalescer()
        self._enabled = enabled

        # Stats tracking
        self._stats = {
            "hits": 0,
            "misses": 0,
            "fetch_errors": 0,
        }

    @property
    def store(self) -> TTLStore:
        return self._store

    @property
    def coalescer(self) -> RequestCoalescer:
        return self._coalescer

    async def optimized_fetch(
        self,
        resource: str,
        query_builder: QueryBuilder,
        *,
        principal_id: Optional[str] = None,
        ttl: Optional[TTLSpec] = None,
        force_refresh: bool = False,
        enable_cache: bool = True,
        default_ttl: TTLClass = TTLClass.SHORT,
    ) -> Any:
        """
        Get data from cache or fetch it from the data store.

        Args:
            resource: Table name
            query_builder: Shapes the base query (select, filters, order, ...)
            principal_id: Acting user; None reads the anonymous partition
            ttl: Seconds or TTLClass for the stored result
            force_refresh: Skip the cache lookup, fetch and overwrite
            enable_cache: False skips both lookup and store
            default_ttl: TTL class used when ttl is None

        Returns:
            Rows (list) or a single record for single-object queries

        Raises:
            Exception: Whatever the data store reported, unchanged
        """
        query = self._executor.build_query(resource, query_builder)
        cache_key = build_key(resource, query.descriptor(), principal_id)
        use_cache = enable_cache and self._enabled

        if use_cache and not force_refresh:
            cached = self._store.get(cache_key)
            if cached is not MISS:
                logger.debug(f"CACHE HIT: {cache_key}")
                self._stats["hits"] += 1
                return cached

        if force_refresh:
            logger.info(f"FORCE REFRESH: {cache_key}")
        else:
            logger.debug(f"CACHE MISS: {cache_key}")
        self._stats["misses"] += 1

        ttl_seconds = resolve_ttl(ttl, default_ttl)

        initiated = False

        # Written inside the shared task, even if every caller is cancelled
        async def fetch_and_store() -> Any:
            nonlocal initiated
            initiated = True
            data = await self._executor.run(query)
            if use_cache:
                self._store.set(cache_key, data, ttl_seconds)
            return data

        try:
            data = await self._coalescer.run_exclusive(cache_key, fetch_and_store)
        except Exception:
            self._stats["fetch_errors"] += 1
            raise

        # Joined someone else's fetch: store with this caller's own settings
        if use_cache and not initiated:
            self._store.set(cache_key, data, ttl_seconds)
        return data

    async def optimized_fetch_by_id(
        self,
        resource: str,
        record_id: Any,
        *,
        principal_id: Optional[str] = None,
        ttl: Optional[TTLSpec] = None,
        force_refresh: bool = False,
        enable_cache: bool = True,
    ) -> Any:
        """Fetch one record by ``id``. Cached with the LONG class by default."""
        return await self.optimized_fetch(
            resource,
            lambda q: q.select("*").eq("id", record_id).single(),
            principal_id=principal_id,
            ttl=ttl,
            force_refresh=force_refresh,
            enable_cache=enable_cache,
            default_ttl=TTLClass.LONG,
        )

    async def batch_fetch_by_ids(
        self,
        resource: str,
        ids: Sequence[Any],
        *,
        principal_id: Optional[str] = None,
        ttl: Optional[TTLSpec] = None,
        force_refresh: bool = False,
        enable_cache: bool = True,
    ) -> List[Any]:
        """
        Fetch many records with one ``in`` query.

        The ID list is part of the key as given, so the same IDs in another
        order are a separate entry. An empty list returns [] without a read.
        """
        if not ids:
            return []
        id_list = list(ids)
        return await self.optimized_fetch(
            resource,
            lambda q: q.select("*").in_("id", id_list),
            principal_id=principal_id,
            ttl=ttl,
            force_refresh=force_refresh,
            enable_cache=enable_cache,
        )

    def clear_cache(self, pattern: Optional[str] = None) -> int:
        """
        Clear all entries, or those whose key contains ``pattern``.

        Returns:
            Number of entries removed
        """
        if not pattern:
            count = self._store.clear()
            logger.info(f"Cleared {count} cache entries")
            return count

        count = self._store.delete_matching(lambda key: pattern in key)
        if count:
            logger.info(f"Invalidated {count} entries matching '{pattern}'")
        return count

    def cleanup_expired_cache(self) -> int:
        """Evict expired entries. Returns how many were removed."""
        removed = self._store.sweep_expired()
        if removed:
            logger.debug(f"Swept {removed} expired cache entries")
        return removed

    async def preload_data(self, configs: Sequence[PreloadConfig]) -> Dict[str, Any]:
        """
        Warm the cache with several reads at once.

        Every read runs concurrently; failures are logged and counted, never
        raised. Results default to the LONG TTL class.

        Returns:
            Summary with planned/loaded counts and error messages
        """
        summary: Dict[str, Any] = {
            "planned": len(configs),
            "loaded": 0,
            "errors": [],
        }
        if not configs:
            return summary

        results = await asyncio.gather(
            *(
                self.optimized_fetch(
                    config.resource,
                    config.query_builder,
                    principal_id=config.principal_id,
                    ttl=config.ttl,
                    default_ttl=TTLClass.LONG,
                )
                for config in configs
            ),
            return_exceptions=True,
        )
        for config, outcome in zip(configs, results):
            if isinstance(outcome, BaseException):
                logger.warning(f"Failed to preload {config.resource}: {outcome!r}")
                summary["errors"].append(f"{config.resource}: {outcome}")
                continue
            summary["loaded"] += 1
        return summary

    def get_cache_stats(self) -> Dict[str, Any]:
        """Get cache statistics. Reading them never evicts anything."""
        total, valid, expired = self._store.snapshot()
        lookups = self._stats["hits"] + self._stats["misses"]
        hit_rate = (self._stats["hits"] / lookups * 100) if lookups > 0 else 0

        return {
            "total_entries": total,
            "valid_entries": valid,
            "expired_entries": expired,
            "pending_requests": self._coalescer.active_requests,
            "hits": self._stats["hits"],
            "misses": self._stats["misses"],
            "fetch_errors": self._stats["fetch_errors"],
            "hit_rate_percent": round(hit_rate, 1),
        }


# Global cache manager instance
_cache_manager: Optional[CacheManager] = None


def get_cache_manager() -> CacheManager:
    """Get or create the process-wide cache manager."""
    global _cache_manager
    if _cache_manager is None:
        _cache_manager = CacheManager(enabled=settings.cache_enabled)
    return _cache_manager


def reset_cache_manager() -> None:
    """Drop the process-wide instance; the next get builds a fresh one."""
    global _cache_manager
    _cache_manager = None
