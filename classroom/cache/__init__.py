"""
Read-through caching with per-call TTL, request coalescing and invalidation.
"""
from .core import ANONYMOUS_PRINCIPAL, CacheEntry, MISS, TTLClass
from .keys import build_key
from .store import TTLStore
from .ttl_policies import (
    TTL_CONFIG,
    get_ttl_for_class,
    get_ttl_class_for_resource,
    resolve_ttl,
)
from .coalescer import RequestCoalescer
from .executor import FetchExecutor
from .manager import CacheManager, PreloadConfig, get_cache_manager, reset_cache_manager
from .janitor import CacheJanitor

__all__ = [
    # Core types
    "ANONYMOUS_PRINCIPAL",
    "CacheEntry",
    "MISS",
    "TTLClass",
    # Keys and storage
    "build_key",
    "TTLStore",
    # TTL policies
    "TTL_CONFIG",
    "get_ttl_for_class",
    "get_ttl_class_for_resource",
    "resolve_ttl",
    # Coalescing and fetching
    "RequestCoalescer",
    "FetchExecutor",
    # Manager
    "CacheManager",
    "PreloadConfig",
    "get_cache_manager",
    "reset_cache_manager",
    "CacheJanitor",
]
