"""Shared fixtures: a controllable clock and an in-memory data store."""
import asyncio
from typing import Any, Callable, Dict, List, Optional, Union

import pytest

from classroom.cache import CacheManager, TTLStore
from classroom.datastore import DataStoreError, Query, QueryResult


class FakeClock:
    """Manually advanced clock, in seconds."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


Rows = Union[List[Dict[str, Any]], Callable[[Query], Any]]


class FakeDataStore:
    """
    Records every executed query and answers from canned rows.

    Set ``gate`` to an unset asyncio.Event to hold all reads until it is set.
    Queue exceptions in ``errors`` to fail the next reads in order.
    """

    def __init__(self, rows: Optional[Dict[str, Rows]] = None):
        self.rows: Dict[str, Rows] = rows or {}
        self.calls: List[Query] = []
        self.errors: List[Exception] = []
        self.gate: Optional[asyncio.Event] = None

    def calls_for(self, resource: str) -> List[Query]:
        return [q for q in self.calls if q.resource == resource]

    async def execute(self, query: Query) -> QueryResult:
        self.calls.append(query)
        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(0)

        if self.errors:
            return QueryResult(error=self.errors.pop(0), status=500)

        data = self.rows.get(query.resource)
        if callable(data):
            data = data(query)
        if query.is_single:
            if not data:
                return QueryResult(
                    error=DataStoreError(
                        "JSON object requested, multiple (or no) rows returned",
                        status=406,
                        code="PGRST116",
                    ),
                    status=406,
                )
            return QueryResult(data=data[0], status=200)
        return QueryResult(data=data, status=200)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def datastore():
    return FakeDataStore()


@pytest.fixture
def cache(clock, datastore):
    """Isolated cache manager over the fake data store."""
    return CacheManager(client=datastore, store=TTLStore(clock=clock))


@pytest.fixture
def sample_rows():
    return {
        "organization": [
            {"id": "org-1", "name": "Sunrise Primary"},
            {"id": "org-2", "name": "Hillside Academy"},
        ],
        "interactive_assignment": [
            {
                "id": "asg-1",
                "title": "Fractions warm-up",
                "status": "published",
                "organization_id": "org-1",
                "category": "math",
                "difficulty_level": "beginner",
                "estimated_time_minutes": 10,
                "created_at": "2024-03-01T09:00:00Z",
            },
            {
                "id": "asg-2",
                "title": "Reading quiz",
                "status": "draft",
                "organization_id": "org-1",
                "created_at": "2024-02-20T09:00:00Z",
            },
        ],
        "interactive_question": [
            {"id": "q-1", "assignment_id": "asg-1", "question_type": "multiple-choice",
             "question_text": "1/2 + 1/4 = ?", "order": 1},
        ],
        "user_organization": [{"role": "admin"}],
        "interactive_submission": [
            {
                "id": "sub-1",
                "assignment_id": "asg-1",
                "user_id": "anon-1",
                "status": "submitted",
                "score": 80,
                "started_at": "2024-03-02T10:00:00Z",
                "submitted_at": "2024-03-02T10:08:00Z",
                "interactive_assignment": {"title": "Fractions warm-up", "organization_id": "org-1"},
            },
            {
                "id": "sub-2",
                "assignment_id": "asg-1",
                "user_id": "user-9",
                "status": "in_progress",
                "started_at": "2024-03-02T09:00:00Z",
                "interactive_assignment": {"title": "Fractions warm-up", "organization_id": "org-1"},
            },
        ],
        "anonymous_user": [{"id": "anon-1", "name": "Maya"}],
    }
