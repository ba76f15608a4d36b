"""FastAPI dependency injection: wires infrastructure to application layer."""

from functools import lru_cache

from fastapi import Depends

from layer_search.config import Settings, get_settings
from layer_search.application.services import (
    CollectionRegistry,
    ExpressionCompiler,
    FieldCatalog,
    FieldValueSampler,
    LayerUploadService,
    ResultViewer,
    ScopeResolver,
    SearchExporter,
    SearchSession,
    SearchSessionManager,
)
from layer_search.infrastructure.database import engine


@lru_cache
def get_collection_registry() -> CollectionRegistry:
    """Process-wide registry, populated from the layer catalog at startup."""
    return CollectionRegistry()


def build_search_session(registry: CollectionRegistry, settings: Settings) -> SearchSession:
    """Assemble a SearchSession configured from settings."""
    return SearchSession(
        ScopeResolver(registry),
        compiler=ExpressionCompiler(),
        field_catalog=FieldCatalog(settings.search_reserved_fields),
        viewer=ResultViewer(page_size=settings.search_page_size),
        sampler=FieldValueSampler(cap=settings.search_value_cap),
        exporter=SearchExporter(
            reserved_fields=settings.search_reserved_fields,
            title=settings.search_export_title,
        ),
    )


@lru_cache
def get_session_manager() -> SearchSessionManager:
    """Provides the in-process search session manager."""
    settings = get_settings()
    registry = get_collection_registry()
    return SearchSessionManager(
        lambda: build_search_session(registry, settings),
        ttl=settings.search_session_ttl,
        max_sessions=settings.search_max_sessions,
    )


def get_scope_resolver(
    registry: CollectionRegistry = Depends(get_collection_registry),
) -> ScopeResolver:
    return ScopeResolver(registry)


def get_field_catalog() -> FieldCatalog:
    return FieldCatalog(get_settings().search_reserved_fields)


def get_value_sampler() -> FieldValueSampler:
    return FieldValueSampler(cap=get_settings().search_value_cap)


def get_layer_upload_service(
    registry: CollectionRegistry = Depends(get_collection_registry),
) -> LayerUploadService:
    """Provides a LayerUploadService bound to the local layer store."""
    return LayerUploadService(engine, registry)
