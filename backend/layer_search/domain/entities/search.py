"""Domain entities for search output: compiled predicate, aggregate, pages."""

from dataclasses import dataclass, field

from .collection import Record

MATCH_ALL = "1=1"


@dataclass(frozen=True)
class CompiledExpression:
    """A complete boolean predicate in the collections' where-clause dialect."""

    where: str = MATCH_ALL

    @property
    def matches_everything(self) -> bool:
        return self.where == MATCH_ALL

    def __str__(self) -> str:
        return self.where


@dataclass(frozen=True)
class CollectionFailure:
    """A collection whose query failed during a search or value sampling."""

    ref: str
    title: str
    message: str


@dataclass(frozen=True)
class SearchResult:
    """The aggregate produced by one search: never mutated after creation.

    ``records`` is in scope-resolution order, then each collection's native
    order. Only collections that returned at least one record appear in
    ``per_collection_counts``.
    """

    records: tuple[Record, ...] = ()
    per_collection_counts: dict[str, int] = field(default_factory=dict)
    collection_titles: dict[str, str] = field(default_factory=dict)
    failures: tuple[CollectionFailure, ...] = ()
    generation: int = 0
    where: str = ""

    @property
    def total_count(self) -> int:
        return len(self.records)

    @property
    def is_empty(self) -> bool:
        return not self.records

    def title_for(self, ref: str) -> str:
        return self.collection_titles.get(ref, ref)


@dataclass(frozen=True)
class Page:
    """One page of the (possibly re-filtered) aggregate."""

    index: int
    size: int
    total_pages: int
    total_records: int
    records: tuple[Record, ...] = ()

    @property
    def has_next(self) -> bool:
        return self.index < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.index > 1
