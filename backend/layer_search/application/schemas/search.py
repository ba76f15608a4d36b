"""Pydantic schemas for search API requests and responses."""

from pydantic import BaseModel, Field
from typing import Any, Literal


# ── Request Schemas ──────────────────────────────────────────────────


class UpdateCriterionRequest(BaseModel):
    """Set one attribute of one criterion."""

    field_path: Literal["field", "operator", "value", "logicalOperator", "logical_operator"]
    value: str | None = None


class ExecuteSearchRequest(BaseModel):
    """Run the session's criteria against a scope."""

    scope: str = Field(default="all", min_length=1, description="all | region:<name> | collection:<ref>")


class FilterResultsRequest(BaseModel):
    """Client-side substring filter over the installed results."""

    term: str | None = None


# ── Response Schemas ─────────────────────────────────────────────────


class ScopeSchema(BaseModel):
    value: str
    title: str
    kind: str


class FieldSchema(BaseModel):
    name: str
    alias: str
    type: str


class FieldValuesResponse(BaseModel):
    field: str
    values: list[str] = []


class CriterionSchema(BaseModel):
    id: int
    field: str = ""
    operator: str
    value: str = ""
    logical_operator: str | None = None


class SessionResponse(BaseModel):
    id: str
    criteria: list[CriterionSchema] = []
    scope: str | None = None


class RecordSchema(BaseModel):
    """A single record with its provenance."""

    origin: str
    origin_title: str
    attributes: dict[str, Any] = {}
    geometry: Any = None


class PageSchema(BaseModel):
    index: int
    size: int
    total_pages: int
    total_records: int
    has_next: bool = False
    has_previous: bool = False
    filter: str | None = None
    records: list[RecordSchema] = []


class CollectionFailureSchema(BaseModel):
    ref: str
    title: str
    message: str


class SearchSummarySchema(BaseModel):
    """Outcome of one search plus its first page."""

    scope: str
    where: str
    total_count: int
    per_collection_counts: dict[str, int] = {}
    failures: list[CollectionFailureSchema] = []
    stale: bool = False
    page: PageSchema
