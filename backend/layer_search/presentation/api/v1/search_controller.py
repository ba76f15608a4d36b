"""Search API controller: scopes, fields, autocomplete and search sessions."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from layer_search.application.schemas.search import (
    CollectionFailureSchema,
    CriterionSchema,
    ExecuteSearchRequest,
    FieldSchema,
    FieldValuesResponse,
    FilterResultsRequest,
    PageSchema,
    RecordSchema,
    ScopeSchema,
    SearchSummarySchema,
    SessionResponse,
    UpdateCriterionRequest,
)
from layer_search.application.services import (
    FieldCatalog,
    FieldValueSampler,
    ScopeResolver,
    SearchSession,
    SearchSessionManager,
)
from layer_search.domain.entities import Criterion, Page
from layer_search.domain.exceptions import (
    EntityNotFoundError,
    ExportError,
    SearchValidationError,
)
from layer_search.infrastructure.dependencies import (
    get_field_catalog,
    get_scope_resolver,
    get_session_manager,
    get_value_sampler,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/search", tags=["Search"])


# ── Helpers ──────────────────────────────────────────────────────────


def _get_session(manager: SearchSessionManager, session_id: str) -> SearchSession:
    try:
        return manager.get(session_id)
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


def _criterion_to_schema(criterion: Criterion) -> CriterionSchema:
    return CriterionSchema(
        id=criterion.id,
        field=criterion.field,
        operator=criterion.operator.value,
        value=criterion.value,
        logical_operator=criterion.logical_operator.value if criterion.logical_operator else None,
    )


def _session_to_response(session: SearchSession) -> SessionResponse:
    return SessionResponse(
        id=session.id,
        criteria=[_criterion_to_schema(c) for c in session.criteria.list()],
        scope=session.scope,
    )


def _page_to_schema(session: SearchSession, page: Page) -> PageSchema:
    result = session.result
    return PageSchema(
        index=page.index,
        size=page.size,
        total_pages=page.total_pages,
        total_records=page.total_records,
        has_next=page.has_next,
        has_previous=page.has_previous,
        filter=session.viewer.active_filter,
        records=[
            RecordSchema(
                origin=r.origin,
                origin_title=result.title_for(r.origin) if result else r.origin,
                attributes=r.attributes,
                geometry=r.geometry,
            )
            for r in page.records
        ],
    )


# ── Scopes & fields ──────────────────────────────────────────────────


@router.get("/scopes", response_model=list[ScopeSchema])
async def list_scopes(
    resolver: ScopeResolver = Depends(get_scope_resolver),
) -> list[ScopeSchema]:
    """List the selectable search scopes: all, regions, then single layers."""
    return [
        ScopeSchema(value=o.value, title=o.title, kind=o.kind)
        for o in resolver.list_scopes()
    ]


@router.get("/fields", response_model=list[FieldSchema])
async def list_fields(
    scope: str = Query("all"),
    resolver: ScopeResolver = Depends(get_scope_resolver),
    catalog: FieldCatalog = Depends(get_field_catalog),
) -> list[FieldSchema]:
    """Union of the searchable fields of every layer in the scope."""
    fields = await catalog.collect(resolver.resolve(scope))
    return [FieldSchema(name=f.name, alias=f.label, type=f.type.value) for f in fields]


@router.get("/values", response_model=FieldValuesResponse)
async def list_field_values(
    field: str = Query(..., min_length=1),
    scope: str = Query("all"),
    cap: int | None = Query(default=None, ge=1, le=1000),
    resolver: ScopeResolver = Depends(get_scope_resolver),
    sampler: FieldValueSampler = Depends(get_value_sampler),
) -> FieldValuesResponse:
    """Distinct values of a field for autocomplete, sorted."""
    values = await sampler.sample(resolver.resolve(scope), field, cap)
    return FieldValuesResponse(field=field, values=values)


# ── Sessions ─────────────────────────────────────────────────────────


@router.post("/sessions", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def create_session(
    manager: SearchSessionManager = Depends(get_session_manager),
) -> SessionResponse:
    """Start a new search session with an empty criteria list."""
    return _session_to_response(manager.create())


@router.get("/sessions/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: str,
    manager: SearchSessionManager = Depends(get_session_manager),
) -> SessionResponse:
    return _session_to_response(_get_session(manager, session_id))


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(
    session_id: str,
    manager: SearchSessionManager = Depends(get_session_manager),
) -> None:
    try:
        manager.delete(session_id)
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("/sessions/{session_id}/clear", response_model=SessionResponse)
async def clear_session(
    session_id: str,
    manager: SearchSessionManager = Depends(get_session_manager),
) -> SessionResponse:
    """Drop all criteria and results."""
    session = _get_session(manager, session_id)
    session.clear()
    return _session_to_response(session)


# ── Criteria ─────────────────────────────────────────────────────────


@router.get("/sessions/{session_id}/criteria", response_model=list[CriterionSchema])
async def list_criteria(
    session_id: str,
    manager: SearchSessionManager = Depends(get_session_manager),
) -> list[CriterionSchema]:
    session = _get_session(manager, session_id)
    return [_criterion_to_schema(c) for c in session.criteria.list()]


@router.post(
    "/sessions/{session_id}/criteria",
    response_model=CriterionSchema,
    status_code=status.HTTP_201_CREATED,
)
async def add_criterion(
    session_id: str,
    manager: SearchSessionManager = Depends(get_session_manager),
) -> CriterionSchema:
    """Append an empty condition (joined with AND unless it is the first)."""
    session = _get_session(manager, session_id)
    return _criterion_to_schema(session.add_criterion())


@router.patch("/sessions/{session_id}/criteria/{criterion_id}", response_model=CriterionSchema)
async def update_criterion(
    session_id: str,
    criterion_id: int,
    body: UpdateCriterionRequest,
    manager: SearchSessionManager = Depends(get_session_manager),
) -> CriterionSchema:
    session = _get_session(manager, session_id)
    try:
        criterion = session.update_criterion(criterion_id, body.field_path, body.value)
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return _criterion_to_schema(criterion)


@router.delete(
    "/sessions/{session_id}/criteria/{criterion_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def remove_criterion(
    session_id: str,
    criterion_id: int,
    manager: SearchSessionManager = Depends(get_session_manager),
) -> None:
    session = _get_session(manager, session_id)
    try:
        session.remove_criterion(criterion_id)
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


# ── Execution & results ──────────────────────────────────────────────


@router.post("/sessions/{session_id}/execute", response_model=SearchSummarySchema)
async def execute_search(
    session_id: str,
    body: ExecuteSearchRequest,
    manager: SearchSessionManager = Depends(get_session_manager),
) -> SearchSummarySchema:
    """Run the session's criteria against every layer in the scope.

    Layers that fail are listed in ``failures``; the search still succeeds.
    """
    session = _get_session(manager, session_id)
    try:
        result = await session.search(body.scope)
    except SearchValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    return SearchSummarySchema(
        scope=body.scope,
        where=result.where,
        total_count=result.total_count,
        per_collection_counts=result.per_collection_counts,
        failures=[
            CollectionFailureSchema(ref=f.ref, title=f.title, message=f.message)
            for f in result.failures
        ],
        stale=session.result is not result,
        page=_page_to_schema(session, session.page()),
    )


@router.get("/sessions/{session_id}/results", response_model=PageSchema)
async def get_results_page(
    session_id: str,
    page: int | None = Query(default=None, ge=1),
    manager: SearchSessionManager = Depends(get_session_manager),
) -> PageSchema:
    """Current page of results, or jump to ``page`` (clamped to the last page)."""
    session = _get_session(manager, session_id)
    current = session.go_to_page(page) if page is not None else session.page()
    return _page_to_schema(session, current)


@router.post("/sessions/{session_id}/results/next", response_model=PageSchema)
async def next_results_page(
    session_id: str,
    manager: SearchSessionManager = Depends(get_session_manager),
) -> PageSchema:
    session = _get_session(manager, session_id)
    return _page_to_schema(session, session.next_page())


@router.post("/sessions/{session_id}/results/previous", response_model=PageSchema)
async def previous_results_page(
    session_id: str,
    manager: SearchSessionManager = Depends(get_session_manager),
) -> PageSchema:
    session = _get_session(manager, session_id)
    return _page_to_schema(session, session.previous_page())


@router.post("/sessions/{session_id}/results/filter", response_model=PageSchema)
async def filter_results(
    session_id: str,
    body: FilterResultsRequest,
    manager: SearchSessionManager = Depends(get_session_manager),
) -> PageSchema:
    """Narrow the installed results by substring: never re-queries the layers."""
    session = _get_session(manager, session_id)
    return _page_to_schema(session, session.filter(body.term))


@router.get("/sessions/{session_id}/export")
async def export_results(
    session_id: str,
    manager: SearchSessionManager = Depends(get_session_manager),
) -> Response:
    """Download the installed results as CSV, one section per layer."""
    session = _get_session(manager, session_id)
    now = datetime.now(timezone.utc)
    try:
        document = session.export(now=now)
    except ExportError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    filename = f"search_results_{int(now.timestamp() * 1000)}.csv"
    return Response(
        content=document.encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
