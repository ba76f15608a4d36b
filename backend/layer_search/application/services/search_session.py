"""Search session: the explicit method-call API over the search pipeline.

One session owns one criteria list and one result view. A search runs:

    validate → list fields → compile → resolve → query all layers → install

Only the newest search of a session may install its aggregate; an older
search that finishes late is discarded.
"""

import logging
import time
import uuid
from collections import OrderedDict
from collections.abc import Callable
from datetime import datetime

from layer_search.application.services.expression_compiler import ExpressionCompiler
from layer_search.application.services.field_catalog import FieldCatalog
from layer_search.application.services.field_value_sampler import FieldValueSampler
from layer_search.application.services.result_viewer import ResultViewer
from layer_search.application.services.scope_resolver import ScopeResolver
from layer_search.application.services.search_executor import SearchExecutor
from layer_search.application.services.search_exporter import SearchExporter
from layer_search.domain.entities import (
    CriteriaModel,
    Criterion,
    FieldDescriptor,
    Page,
    SearchResult,
)
from layer_search.domain.exceptions import EntityNotFoundError, SearchValidationError
from layer_search.infrastructure.logging.colored_logger import SearchLogger, SearchStage

logger = logging.getLogger(__name__)
slog = SearchLogger("SearchSession")


class SearchSession:
    """Criteria, search execution, result paging and export for one user."""

    def __init__(
        self,
        resolver: ScopeResolver,
        *,
        session_id: str | None = None,
        compiler: ExpressionCompiler | None = None,
        field_catalog: FieldCatalog | None = None,
        executor: SearchExecutor | None = None,
        viewer: ResultViewer | None = None,
        sampler: FieldValueSampler | None = None,
        exporter: SearchExporter | None = None,
        id_generator: Callable[[], int] | None = None,
    ):
        self.id = session_id or str(uuid.uuid4())
        self.criteria = CriteriaModel(id_generator=id_generator)
        self._resolver = resolver
        self._compiler = compiler or ExpressionCompiler()
        self._field_catalog = field_catalog or FieldCatalog()
        self._executor = executor or SearchExecutor()
        self._viewer = viewer or ResultViewer()
        self._sampler = sampler or FieldValueSampler()
        self._exporter = exporter or SearchExporter()
        self._scope: str | None = None

    @property
    def scope(self) -> str | None:
        """Scope of the installed aggregate."""
        return self._scope

    @property
    def result(self) -> SearchResult | None:
        return self._viewer.result

    @property
    def viewer(self) -> ResultViewer:
        return self._viewer

    # ── Criteria ─────────────────────────────────────────────────────

    def add_criterion(self) -> Criterion:
        criterion_id = self.criteria.add()
        return self.criteria.get(criterion_id)  # type: ignore[return-value]

    def update_criterion(self, criterion_id: int, field_path: str, value: object) -> Criterion:
        """Update one attribute; raises EntityNotFoundError for an unknown id."""
        if self.criteria.get(criterion_id) is None:
            raise EntityNotFoundError("Criterion", criterion_id)
        if not self.criteria.update(criterion_id, field_path, value):
            logger.debug(
                "Ignored update of criterion %d: %s=%r", criterion_id, field_path, value
            )
        return self.criteria.get(criterion_id)  # type: ignore[return-value]

    def remove_criterion(self, criterion_id: int) -> None:
        if not self.criteria.remove(criterion_id):
            raise EntityNotFoundError("Criterion", criterion_id)

    def clear(self) -> None:
        """Drop all criteria and the installed aggregate."""
        self.criteria.clear()
        self._viewer.set_aggregate(None)
        self._scope = None

    # ── Search ───────────────────────────────────────────────────────

    async def fields(self, scope: str) -> list[FieldDescriptor]:
        return await self._field_catalog.collect(self._resolver.resolve(scope))

    async def search(self, scope: str) -> SearchResult:
        """Run the current criteria against ``scope``.

        Raises SearchValidationError before any layer is queried when the
        criteria are incomplete or name a field none of the scope's layers
        exposes. Layer failures never raise; they are listed on the returned
        result.
        """
        criteria = self.criteria.list()
        try:
            self._compiler.validate(criteria)
        except SearchValidationError as exc:
            slog.step_error(SearchStage.VALIDATE, "Search blocked", error=exc)
            raise
        generation = self._executor.next_generation()

        collections = self._resolver.resolve(scope)
        slog.step_start(
            SearchStage.RESOLVE,
            f"Scope {scope!r} -> {len(collections)} layers",
            generation=generation,
        )
        with slog.timed_step(SearchStage.COMPILE, "Compiling criteria", criteria=len(criteria)):
            fields = await self._field_catalog.collect(collections)
            if fields:
                self._compiler.check_fields(criteria, {f.name for f in fields})
            expression = self._compiler.compile(criteria, FieldCatalog.type_lookup(fields))

        result = await self._executor.execute(expression, collections, generation=generation)

        if not self._executor.is_current(result.generation):
            logger.info(
                "Discarded stale search result: generation=%d current=%d",
                result.generation, self._executor.generation,
            )
            return result

        self._viewer.set_aggregate(result)
        self._scope = scope
        slog.step_complete(
            SearchStage.COMPLETE,
            f"{result.total_count} results",
            failed_layers=len(result.failures),
        )
        return result

    async def sample_values(
        self,
        scope: str,
        field_name: str,
        cap: int | None = None,
    ) -> list[str]:
        return await self._sampler.sample(self._resolver.resolve(scope), field_name, cap)

    # ── Results ──────────────────────────────────────────────────────

    def page(self) -> Page:
        return self._viewer.page()

    def next_page(self) -> Page:
        return self._viewer.next_page()

    def previous_page(self) -> Page:
        return self._viewer.previous_page()

    def go_to_page(self, index: int) -> Page:
        return self._viewer.go_to(index)

    def filter(self, term: str | None) -> Page:
        return self._viewer.filter(term)

    def export(self, *, now: datetime | None = None) -> str:
        return self._exporter.export(self._viewer.result, now=now)


class SearchSessionManager:
    """In-process registry of search sessions, keyed by session id.

    Sessions idle for longer than ``ttl`` seconds expire; once
    ``max_sessions`` are live, creating another evicts the least recently
    used one.
    """

    def __init__(
        self,
        session_factory: Callable[[], SearchSession],
        *,
        ttl: float | None = None,
        max_sessions: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._factory = session_factory
        self._ttl = ttl
        self._max_sessions = max_sessions
        self._clock = clock
        # session id -> (session, last access), least recently used first
        self._sessions: OrderedDict[str, tuple[SearchSession, float]] = OrderedDict()

    def create(self) -> SearchSession:
        self._expire()
        if self._max_sessions is not None:
            while len(self._sessions) >= self._max_sessions:
                evicted, _ = self._sessions.popitem(last=False)
                logger.info("Evicted least recently used search session %s", evicted)
        session = self._factory()
        self._sessions[session.id] = (session, self._clock())
        logger.info("Created search session %s", session.id)
        return session

    def get(self, session_id: str) -> SearchSession:
        self._expire()
        entry = self._sessions.get(session_id)
        if entry is None:
            raise EntityNotFoundError("SearchSession", session_id)
        session, _ = entry
        self._sessions[session_id] = (session, self._clock())
        self._sessions.move_to_end(session_id)
        return session

    def delete(self, session_id: str) -> None:
        if self._sessions.pop(session_id, None) is None:
            raise EntityNotFoundError("SearchSession", session_id)

    def __len__(self) -> int:
        self._expire()
        return len(self._sessions)

    def _expire(self) -> None:
        if self._ttl is None:
            return
        cutoff = self._clock() - self._ttl
        while self._sessions:
            session_id, (_, last_access) = next(iter(self._sessions.items()))
            if last_access > cutoff:
                break
            del self._sessions[session_id]
            logger.info("Expired idle search session %s", session_id)
