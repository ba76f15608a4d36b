from .layers import LayerResponse
from .search import (
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

__all__ = [
    "LayerResponse",
    "CollectionFailureSchema",
    "CriterionSchema",
    "ExecuteSearchRequest",
    "FieldSchema",
    "FieldValuesResponse",
    "FilterResultsRequest",
    "PageSchema",
    "RecordSchema",
    "ScopeSchema",
    "SearchSummarySchema",
    "SessionResponse",
    "UpdateCriterionRequest",
]
