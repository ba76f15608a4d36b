from .collection import FieldDescriptor, FieldType, QueryOptions, Record
from .criteria import (
    CriteriaModel,
    Criterion,
    LogicalOperator,
    Operator,
    NUMERIC_OPERATORS,
    STRING_OPERATORS,
)
from .search import (
    MATCH_ALL,
    CollectionFailure,
    CompiledExpression,
    Page,
    SearchResult,
)

__all__ = [
    "FieldDescriptor",
    "FieldType",
    "QueryOptions",
    "Record",
    "CriteriaModel",
    "Criterion",
    "LogicalOperator",
    "Operator",
    "NUMERIC_OPERATORS",
    "STRING_OPERATORS",
    "MATCH_ALL",
    "CollectionFailure",
    "CompiledExpression",
    "Page",
    "SearchResult",
]
