"""
Hosted database access: recording queries and the PostgREST client.
"""
from .client import DataStoreClient, DataStoreError, DataStoreNotConfigured, QueryResult
from .postgrest import PostgrestClient, build_params, create_client
from .query import Query

__all__ = [
    "DataStoreClient",
    "DataStoreError",
    "DataStoreNotConfigured",
    "QueryResult",
    "PostgrestClient",
    "build_params",
    "create_client",
    "Query",
]
