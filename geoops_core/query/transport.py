"""
In-memory query transport.

Answers batched queries from a fixed table of query -> value. Used as the
app default and in tests; a real telemetry client implements the same
``run_batch`` coroutine.
"""

from typing import Dict, List, Optional

from geoops_core.models.query import QueryDescriptor


class InMemoryQueryTransport:
    """Deterministic transport backed by a dict of query results."""

    def __init__(
        self,
        values: Optional[Dict[str, float]] = None,
        error: Optional[Exception] = None,
    ):
        self.values: Dict[str, float] = dict(values or {})
        self.error = error
        self.calls: List[dict] = []

    def set_value(self, query: str, value: float) -> None:
        self.values[query] = value

    async def run_batch(
        self, account_id: int, queries: List[QueryDescriptor]
    ) -> Dict[str, float]:
        self.calls.append({
            "account_id": account_id,
            "queries": [q.model_dump() for q in queries],
        })
        if self.error is not None:
            raise self.error
        return {
            q.key: self.values[q.query]
            for q in queries
            if q.query in self.values
        }
