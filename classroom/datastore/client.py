"""
Data store client contract.

The cache only needs something that can execute a ``Query`` and hand back
``data`` and ``error``. Errors are opaque to the cache and are raised to
callers unchanged.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

from .query import Query


class DataStoreError(Exception):
    """Error reported by the hosted database or the transport in front of it."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        code: Optional[str] = None,
        details: Optional[str] = None,
        hint: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code
        self.details = details
        self.hint = hint

    @property
    def is_not_found(self) -> bool:
        """True for a single-row read that matched no rows."""
        return self.code == "PGRST116" or self.status == 404

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "status": self.status,
            "code": self.code,
            "details": self.details,
            "hint": self.hint,
        }

    def __repr__(self) -> str:
        return f"DataStoreError({self.message!r}, status={self.status}, code={self.code!r})"


class DataStoreNotConfigured(DataStoreError):
    """Raised when no database URL or API key is configured."""


@dataclass
class QueryResult:
    """Outcome of one executed query: exactly one of data/error is meaningful."""
    data: Any = None
    error: Optional[Exception] = None
    status: Optional[int] = None


class DataStoreClient(Protocol):
    """Anything that can execute a recorded query."""

    async def execute(self, query: Query) -> QueryResult:
        ...
