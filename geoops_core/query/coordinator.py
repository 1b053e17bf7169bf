"""
Batch Query Coordinator — one telemetry request per map refresh.

Collects the query of every location that declares one, sends them as a
single batched request scoped to an account, and maps the aliased results
back onto location guids.

Behavioral Contract:
- Locations without a query are never sent and always resolve to "N/A"
- A query that ran but returned no finite number resolves to "N/A"
- A transport failure raises QueryDispatchError; it is never masked as "N/A"
- A new input collection (by identity) triggers a full rebuild and redispatch
- Overlapping dispatches: with ``discard_stale_query_results`` only the most
  recently started dispatch may update ``results``
"""

import logging
import math
from typing import Dict, Iterable, List, Optional, Protocol, Sequence

from geoops_core.models.config import GeoOpsConfig
from geoops_core.models.location import GeoEntity
from geoops_core.models.query import NOT_AVAILABLE, ComparisonValue, QueryDescriptor
from geoops_core.query.keys import encode_query_key

logger = logging.getLogger(__name__)


class QueryDispatchError(Exception):
    """Raised when the batched query could not be executed at all."""
    pass


class QueryTransport(Protocol):
    """Executes a batch of aliased queries for one account."""

    async def run_batch(
        self, account_id: int, queries: List[QueryDescriptor]
    ) -> Dict[str, float]:
        ...


def build_queries(
    entities: Iterable[GeoEntity], prefix: str = "Q"
) -> List[QueryDescriptor]:
    """One descriptor per location that declares a query."""
    return [
        QueryDescriptor(key=encode_query_key(e.guid, prefix), query=e.query)
        for e in entities
        if e.query
    ]


def _as_number(value) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return value


class BatchQueryCoordinator:
    """Builds, dispatches and correlates batched telemetry queries."""

    def __init__(
        self,
        transport: QueryTransport,
        config: Optional[GeoOpsConfig] = None,
    ):
        self.transport = transport
        self.config = config or GeoOpsConfig()

        self.results: Dict[str, ComparisonValue] = {}
        self.last_error: Optional[QueryDispatchError] = None
        self._generation = 0
        self._last_entities: Optional[Sequence[GeoEntity]] = None
        self._last_account_id: Optional[int] = None

    @property
    def generation(self) -> int:
        return self._generation

    def resolve(
        self, entities: Iterable[GeoEntity], raw_results: Dict[str, float]
    ) -> Dict[str, ComparisonValue]:
        """Map aliased results back to guids, defaulting to "N/A"."""
        resolved: Dict[str, ComparisonValue] = {}
        for entity in entities:
            value = None
            if entity.query:
                key = encode_query_key(entity.guid, self.config.query_prefix)
                value = _as_number(raw_results.get(key))
            resolved[entity.guid] = NOT_AVAILABLE if value is None else value
        return resolved

    async def run(
        self, account_id: int, entities: Sequence[GeoEntity]
    ) -> Dict[str, ComparisonValue]:
        """
        Dispatch one batch for ``entities`` and return guid -> value.

        Raises QueryDispatchError if the transport fails.
        """
        self._generation += 1
        generation = self._generation

        queries = build_queries(entities, self.config.query_prefix)
        raw_results: Dict[str, float] = {}

        if queries:
            logger.info(
                "Dispatching %d queries for account %s (generation %d)",
                len(queries), account_id, generation,
            )
            try:
                raw_results = await self.transport.run_batch(account_id, queries)
            except QueryDispatchError as e:
                self._record_failure(e, generation)
                raise
            except Exception as e:
                error = QueryDispatchError(
                    f"Batched query for account {account_id} failed: {e}"
                )
                self._record_failure(error, generation)
                raise error from e

        resolved = self.resolve(entities, raw_results or {})
        if self._is_current(generation):
            self.results = resolved
            self.last_error = None
        else:
            logger.info(
                "Discarding results of stale generation %d (current %d)",
                generation, self._generation,
            )
        return resolved

    async def refresh(
        self, account_id: int, entities: Sequence[GeoEntity]
    ) -> Dict[str, ComparisonValue]:
        """Re-run only when the entity collection object or account changed."""
        if (
            entities is self._last_entities
            and account_id == self._last_account_id
        ):
            return self.results

        self._last_entities = entities
        self._last_account_id = account_id
        try:
            return await self.run(account_id, entities)
        except QueryDispatchError:
            # A failed dispatch is retried on the next refresh.
            self._last_entities = None
            raise

    def _is_current(self, generation: int) -> bool:
        if not self.config.discard_stale_query_results:
            return True
        return generation == self._generation

    def _record_failure(self, error: QueryDispatchError, generation: int) -> None:
        logger.error("%s", error)
        if self._is_current(generation):
            self.results = {}
            self.last_error = error
