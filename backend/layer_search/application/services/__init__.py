from .collection_registry import CollectionGroup, CollectionRegistry
from .expression_compiler import ExpressionCompiler
from .field_catalog import FieldCatalog
from .field_value_sampler import FieldValueSampler
from .layer_upload_service import LayerUploadService
from .result_viewer import ResultViewer
from .scope_resolver import ScopeOption, ScopeResolver
from .search_executor import SearchExecutor
from .search_exporter import SearchExporter
from .search_session import SearchSession, SearchSessionManager

__all__ = [
    "CollectionGroup",
    "CollectionRegistry",
    "ExpressionCompiler",
    "FieldCatalog",
    "FieldValueSampler",
    "LayerUploadService",
    "ResultViewer",
    "ScopeOption",
    "ScopeResolver",
    "SearchExecutor",
    "SearchExporter",
    "SearchSession",
    "SearchSessionManager",
]
