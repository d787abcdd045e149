"""
Recording query builder.

A ``Query`` only records the steps applied to it. The recorded steps are
both what the data store client executes and the descriptor the cache keys
on, so a query builder closure is applied exactly once per read.
"""
from typing import Any, Iterable, List, Optional, Tuple


Step = Tuple[Any, ...]


class Query:
    """
    Fluent description of a read against one resource.

    Usage:
        query = Query("interactive_assignment").select("*").eq("organization_id", org_id)
    """

    def __init__(self, resource: str):
        self.resource = resource
        self._steps: List[Step] = []

    def _add(self, *step: Any) -> "Query":
        self._steps.append(step)
        return self

    def select(self, columns: str = "*") -> "Query":
        # Multi-line column lists are common in callers; whitespace is not significant
        return self._add("select", "".join(columns.split()))

    def eq(self, column: str, value: Any) -> "Query":
        return self._add("eq", column, value)

    def neq(self, column: str, value: Any) -> "Query":
        return self._add("neq", column, value)

    def gt(self, column: str, value: Any) -> "Query":
        return self._add("gt", column, value)

    def gte(self, column: str, value: Any) -> "Query":
        return self._add("gte", column, value)

    def lt(self, column: str, value: Any) -> "Query":
        return self._add("lt", column, value)

    def lte(self, column: str, value: Any) -> "Query":
        return self._add("lte", column, value)

    def like(self, column: str, pattern: str) -> "Query":
        return self._add("like", column, pattern)

    def ilike(self, column: str, pattern: str) -> "Query":
        return self._add("ilike", column, pattern)

    def is_(self, column: str, value: Optional[bool]) -> "Query":
        return self._add("is", column, value)

    def not_is(self, column: str, value: Optional[bool]) -> "Query":
        return self._add("not.is", column, value)

    def in_(self, column: str, values: Iterable[Any]) -> "Query":
        return self._add("in", column, list(values))

    def order(self, column: str, ascending: bool = True) -> "Query":
        return self._add("order", column, ascending)

    def limit(self, count: int) -> "Query":
        return self._add("limit", count)

    def range(self, start: int, end: int) -> "Query":
        """Rows ``start`` through ``end`` inclusive."""
        return self._add("range", start, end)

    def single(self) -> "Query":
        """Expect exactly one row and return it as an object instead of a list."""
        return self._add("single")

    @property
    def steps(self) -> List[Step]:
        return list(self._steps)

    @property
    def is_single(self) -> bool:
        return any(step[0] == "single" for step in self._steps)

    def descriptor(self) -> List[List[Any]]:
        """JSON-friendly form of the recorded steps, in the order applied."""
        return [list(step) for step in self._steps]

    def __repr__(self) -> str:
        return f"Query({self.resource!r}, steps={self._steps!r})"
