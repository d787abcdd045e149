"""
PostgREST client for the hosted database.

Translates a recorded ``Query`` into a ``GET /rest/v1/<table>`` request.
``requests`` is blocking, so each call runs in a worker thread and the
event loop stays free while the read is outstanding.
"""
import asyncio
import logging
from typing import Any, List, Optional, Tuple

import requests
from dotenv import load_dotenv

from config.settings import Settings, settings as default_settings
from .client import DataStoreError, DataStoreNotConfigured, QueryResult
from .query import Query

load_dotenv()

logger = logging.getLogger("datastore.postgrest")

SINGLE_OBJECT_MEDIA_TYPE = "application/vnd.pgrst.object+json"

_FILTER_OPERATORS = ("eq", "neq", "gt", "gte", "lt", "lte", "like", "ilike")


def _format_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _format_list_item(value: Any) -> str:
    text = _format_value(value)
    # Reserved characters inside in.(...) need double quotes
    if any(ch in text for ch in ',()"\\ '):
        text = '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'
    return text


def build_params(query: Query) -> List[Tuple[str, str]]:
    """
    Map recorded query steps to PostgREST query-string parameters.

    Filters keep their recorded order; repeated ``order`` steps are joined
    into one ``order=`` parameter.
    """
    params: List[Tuple[str, str]] = []
    order_parts: List[str] = []
    limit: Optional[int] = None
    offset: Optional[int] = None

    for step in query.steps:
        op = step[0]
        if op == "select":
            params.append(("select", step[1]))
        elif op in _FILTER_OPERATORS:
            params.append((step[1], f"{op}.{_format_value(step[2])}"))
        elif op in ("is", "not.is"):
            params.append((step[1], f"{op}.{_format_value(step[2])}"))
        elif op == "in":
            items = ",".join(_format_list_item(v) for v in step[2])
            params.append((step[1], f"in.({items})"))
        elif op == "order":
            order_parts.append(f"{step[1]}.{'asc' if step[2] else 'desc'}")
        elif op == "limit":
            limit = step[1]
        elif op == "range":
            offset = step[1]
            limit = step[2] - step[1] + 1
        elif op == "single":
            continue
        else:
            raise ValueError(f"Unsupported query step: {op}")

    if order_parts:
        params.append(("order", ",".join(order_parts)))
    if limit is not None:
        params.append(("limit", str(limit)))
    if offset is not None:
        params.append(("offset", str(offset)))
    return params


def _error_from_response(response: requests.Response) -> DataStoreError:
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    return DataStoreError(
        body.get("message") or f"HTTP {response.status_code}",
        status=response.status_code,
        code=body.get("code"),
        details=body.get("details"),
        hint=body.get("hint"),
    )


class PostgrestClient:
    """
    Executes recorded queries against ``{base_url}/rest/v1``.

    Args:
        base_url: Project URL (e.g. https://xyz.supabase.co)
        api_key: Anon or service key, sent as ``apikey``
        access_token: Signed-in user's JWT; defaults to the API key
        timeout: Per-request timeout in seconds

    Each read is a standalone ``requests.get``; no connection state is shared
    between the worker threads.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        access_token: Optional[str] = None,
        timeout: float = 30.0,
    ):
        self.rest_url = base_url.rstrip("/") + "/rest/v1"
        self._api_key = api_key
        self._access_token = access_token or api_key
        self._timeout = timeout

    def _headers(self, query: Query) -> dict:
        headers = {
            "apikey": self._api_key,
            "Authorization": f"Bearer {self._access_token}",
            "Accept": SINGLE_OBJECT_MEDIA_TYPE if query.is_single else "application/json",
        }
        return headers

    def _get(self, query: Query) -> QueryResult:
        url = f"{self.rest_url}/{query.resource}"
        try:
            response = requests.get(
                url,
                headers=self._headers(query),
                params=build_params(query),
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            logger.warning(f"Transport error reading {query.resource}: {e}")
            return QueryResult(error=DataStoreError(str(e)))

        if response.status_code >= 400:
            error = _error_from_response(response)
            logger.info(
                f"Read of {query.resource} failed: status={error.status} code={error.code}"
            )
            return QueryResult(error=error, status=response.status_code)

        if not response.content:
            return QueryResult(data=None, status=response.status_code)
        return QueryResult(data=response.json(), status=response.status_code)

    async def execute(self, query: Query) -> QueryResult:
        return await asyncio.to_thread(self._get, query)


def create_client(config: Optional[Settings] = None) -> PostgrestClient:
    """Build a client from settings; fails if URL or key are missing."""
    config = config or default_settings
    if not config.supabase_url or not config.supabase_anon_key:
        raise DataStoreNotConfigured(
            "SUPABASE_URL and SUPABASE_ANON_KEY must be set to read from the database"
        )
    return PostgrestClient(
        base_url=config.supabase_url,
        api_key=config.supabase_anon_key,
        timeout=config.request_timeout_seconds,
    )
