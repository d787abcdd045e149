"""
Cache key derivation.

A key is ``resource:principal:encoded-descriptor``. The descriptor is
serialized as-is: two queries that apply the same filters in a different
order produce different keys. Callers that want to share entries must build
their queries the same way.
"""
import base64
import json
from typing import Any, Optional

from .core import ANONYMOUS_PRINCIPAL

# Prefixed onto real principals that would read as the sentinel
PRINCIPAL_ESCAPE = "~"


def encode_descriptor(query_descriptor: Any) -> str:
    """Stable, printable encoding of a query descriptor."""
    serialized = json.dumps(
        query_descriptor,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )
    encoded = base64.urlsafe_b64encode(serialized.encode("utf-8"))
    return encoded.decode("ascii").rstrip("=")


def encode_principal(principal_id: Optional[str]) -> str:
    """
    Key segment for the acting principal.

    None or empty maps to the anonymous sentinel. A real ID equal to the
    sentinel, or already starting with the escape character, gets one more
    escape character, so no signed-in user shares the anonymous partition.
    """
    if not principal_id:
        return ANONYMOUS_PRINCIPAL
    if principal_id == ANONYMOUS_PRINCIPAL or principal_id.startswith(PRINCIPAL_ESCAPE):
        return PRINCIPAL_ESCAPE + principal_id
    return principal_id


def build_key(
    resource: str,
    query_descriptor: Any,
    principal_id: Optional[str] = None,
) -> str:
    """
    Build the cache key for a read.

    Args:
        resource: Table or view name (e.g. "interactive_assignment")
        query_descriptor: JSON-serializable description of the query shape
        principal_id: Acting user ID; None reads from the anonymous partition

    Returns:
        Deterministic key string
    """
    return f"{resource}:{encode_principal(principal_id)}:{encode_descriptor(query_descriptor)}"
