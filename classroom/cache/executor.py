"""
Fetch executor: runs the actual read against the data store.
"""
import logging
from typing import Any, Callable, Optional

from classroom.datastore import DataStoreClient, Query

logger = logging.getLogger("cache.executor")

QueryBuilder = Callable[[Query], Query]


class FetchExecutor:
    """
    Applies a caller's query builder to a base query and executes it.

    The client is created on first use from ``client_factory`` and reused
    afterwards. Errors from the client are raised unchanged.
    """

    def __init__(
        self,
        client_factory: Callable[[], DataStoreClient],
        client: Optional[DataStoreClient] = None,
    ):
        self._client_factory = client_factory
        self._client = client

    def get_client(self) -> DataStoreClient:
        if self._client is None:
            self._client = self._client_factory()
        return self._client

    @staticmethod
    def build_query(resource: str, query_builder: QueryBuilder) -> Query:
        query = query_builder(Query(resource))
        if not isinstance(query, Query):
            raise TypeError(f"Query builder for {resource} must return the Query it was given")
        return query

    async def run(self, query: Query) -> Any:
        """Execute a built query. Empty results come back as []."""
        client = self.get_client()
        result = await client.execute(query)
        if result.error is not None:
            raise result.error
        if result.data is None:
            return []
        return result.data

    async def execute(self, resource: str, query_builder: QueryBuilder) -> Any:
        return await self.run(self.build_query(resource, query_builder))
