"""Abstract port for a queryable data collection (a map layer)."""

from abc import ABC, abstractmethod

from layer_search.domain.entities import FieldDescriptor, QueryOptions, Record


class QueryableCollection(ABC):
    """Port for one independently queryable collection: implemented in infrastructure.

    Implementations raise ``CollectionQueryError`` when a query cannot be served.
    """

    ref: str = ""
    title: str = ""

    @abstractmethod
    async def list_fields(self) -> list[FieldDescriptor]:
        """Return the attribute fields this collection exposes."""
        ...

    @abstractmethod
    async def query(self, where: str, options: QueryOptions) -> list[Record]:
        """Run a where-clause predicate and return matching records in native order."""
        ...
