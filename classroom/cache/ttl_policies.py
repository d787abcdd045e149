"""
TTL configuration and resource-to-class mapping.

Dashboards used to pick their own expiry constants; these are the shared
values they now read from.
"""
from typing import Dict, Optional, Union

from config.settings import settings
from .core import TTLClass


# TTL configuration by class (in seconds)
TTL_CONFIG: Dict[TTLClass, int] = {
    TTLClass.SHORT: settings.cache_short_ttl_seconds,        # 5 minutes
    TTLClass.LONG: settings.cache_long_ttl_seconds,          # 15 minutes
    TTLClass.ACTIVITY: settings.cache_activity_ttl_seconds,  # 2 minutes
}

# Tables whose list reads go stale faster than the default
RESOURCE_TTL_CLASSES: Dict[str, TTLClass] = {
    "interactive_submission": TTLClass.ACTIVITY,
    "user_activity_log": TTLClass.ACTIVITY,
    "user_progress": TTLClass.ACTIVITY,
    "organization": TTLClass.SHORT,
    "user_organization": TTLClass.SHORT,
    "anonymous_user": TTLClass.SHORT,
    "interactive_assignment": TTLClass.SHORT,
    "interactive_question": TTLClass.LONG,
}


TTLSpec = Union[int, float, TTLClass]


def get_ttl_for_class(ttl_class: TTLClass) -> int:
    """Seconds for a TTL class; unknown classes fall back to SHORT."""
    return TTL_CONFIG.get(ttl_class, TTL_CONFIG[TTLClass.SHORT])


def get_ttl_class_for_resource(resource: str, single: bool = False) -> TTLClass:
    """
    Pick the TTL class for a read.

    Args:
        resource: Table name
        single: True for a single-record lookup by ID

    Returns:
        LONG for single records, otherwise the table's class (SHORT by default)
    """
    if single:
        return TTLClass.LONG
    return RESOURCE_TTL_CLASSES.get(resource, TTLClass.SHORT)


def resolve_ttl(ttl: Optional[TTLSpec], default: TTLClass = TTLClass.SHORT) -> float:
    """Turn a per-call TTL (seconds, class, or None) into seconds."""
    if ttl is None:
        return get_ttl_for_class(default)
    if isinstance(ttl, TTLClass):
        return get_ttl_for_class(ttl)
    return float(ttl)
