"""Search executor: runs one compiled predicate against many collections.

All layer queries are launched together and joined; a failing layer is
logged and skipped without affecting the others. Results are buffered in
per-layer slots and concatenated in scope-resolution order, so the
aggregate order never depends on which layer answered first.
"""

import asyncio
import logging
import time
from collections.abc import Sequence
from dataclasses import replace

from layer_search.application.interfaces import QueryableCollection
from layer_search.domain.entities import (
    CollectionFailure,
    CompiledExpression,
    QueryOptions,
    Record,
    SearchResult,
)
from layer_search.infrastructure.logging.colored_logger import SearchLogger, SearchStage

logger = logging.getLogger(__name__)
slog = SearchLogger("SearchExecutor")


class SearchExecutor:
    """Concurrent, failure-isolating multi-collection search.

    Every call to :meth:`execute` takes a new generation number. A result
    whose generation is no longer current was overtaken by a later search
    and must not be installed (see :meth:`is_current`).
    """

    def __init__(self, options: QueryOptions | None = None):
        self._options = options or QueryOptions()
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def next_generation(self) -> int:
        """Start a new search generation; every earlier one becomes stale."""
        self._generation += 1
        return self._generation

    async def execute(
        self,
        expression: CompiledExpression,
        collections: Sequence[QueryableCollection],
        generation: int | None = None,
    ) -> SearchResult:
        """Query every collection concurrently and aggregate the results.

        Pass a ``generation`` obtained from :meth:`next_generation` when the
        search started earlier than this call (e.g. after listing fields).
        """
        if generation is None:
            generation = self.next_generation()

        slog.step_start(
            SearchStage.QUERY,
            f"Querying {len(collections)} layers",
            generation=generation,
            where=expression.where,
        )

        # One slot per collection, each written only by its own task.
        slots: list[list[Record] | None] = [None] * len(collections)
        failures: list[CollectionFailure | None] = [None] * len(collections)

        async def run(index: int, collection: QueryableCollection) -> None:
            try:
                records = await collection.query(expression.where, self._options)
            except Exception as exc:
                failures[index] = CollectionFailure(
                    ref=collection.ref,
                    title=collection.title,
                    message=str(exc) or type(exc).__name__,
                )
                slog.step_warning(
                    SearchStage.QUERY,
                    f"Layer {collection.ref} ({collection.title}) failed, skipped",
                    error=f"{type(exc).__name__}: {exc}",
                )
                return
            slots[index] = [replace(r, origin=collection.ref) for r in records]

        started = time.perf_counter()
        await asyncio.gather(*(run(i, c) for i, c in enumerate(collections)))
        slog.stats(layers=len(collections), elapsed=f"{time.perf_counter() - started:.2f}s")

        records: list[Record] = []
        counts: dict[str, int] = {}
        for collection, slot in zip(collections, slots):
            if not slot:
                continue
            records.extend(slot)
            counts[collection.ref] = counts.get(collection.ref, 0) + len(slot)
            slog.detail(f"{collection.ref} ({collection.title}) → {len(slot)} records")

        result = SearchResult(
            records=tuple(records),
            per_collection_counts=counts,
            collection_titles={c.ref: c.title for c in collections},
            failures=tuple(f for f in failures if f is not None),
            generation=generation,
            where=expression.where,
        )

        slog.step_complete(
            SearchStage.AGGREGATE,
            f"{result.total_count} records from {len(counts)} layers",
            failed=len(result.failures),
            generation=generation,
        )
        if not self.is_current(generation):
            logger.info(
                "Search generation %d finished after generation %d started, result is stale",
                generation, self._generation,
            )
        return result
