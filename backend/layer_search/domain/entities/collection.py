"""Domain entities describing queryable collections (map layers) and their records."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class FieldType(str, Enum):
    """Attribute type as far as expression compilation cares."""

    STRING = "string"
    INTEGER = "integer"
    DOUBLE = "double"
    OTHER = "other"

    @property
    def is_numeric(self) -> bool:
        return self in (FieldType.INTEGER, FieldType.DOUBLE)


@dataclass(frozen=True)
class FieldDescriptor:
    """One attribute field exposed by a collection."""

    name: str
    alias: str = ""
    type: FieldType = FieldType.STRING

    @property
    def label(self) -> str:
        return self.alias or self.name


@dataclass(frozen=True)
class QueryOptions:
    """Options passed along with a predicate to a collection's query facility."""

    out_fields: tuple[str, ...] = ("*",)
    return_geometry: bool = True
    return_distinct_values: bool = False
    max_records: int | None = None


@dataclass
class Record:
    """A single attributed (optionally geometric) feature.

    ``origin`` is the CollectionRef the record came from; collections leave
    it empty and the search executor stamps it.
    """

    attributes: dict[str, Any] = field(default_factory=dict)
    geometry: Any = None
    origin: str = ""
