"""Domain entities for the visual query builder: criteria and their ordered model."""

import itertools
from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import Enum


class LogicalOperator(str, Enum):
    """Token joining a criterion to the one before it."""

    AND = "AND"
    OR = "OR"


class Operator(str, Enum):
    """Comparison operators offered by the query builder.

    ``EQUALS`` belongs to both categories; the value decides which
    semantics apply when the expression is compiled.
    """

    CONTAINS = "contains"
    EQUALS = "equals"
    STARTS = "starts"
    ENDS = "ends"
    NOT_CONTAINS = "notContains"
    NOT_EQUALS = "notEquals"
    GREATER = "greater"
    LESS = "less"
    GREATER_EQUAL = "greaterEqual"
    LESS_EQUAL = "lessEqual"

    @classmethod
    def parse(cls, raw: "str | Operator") -> "Operator":
        """Accept canonical names, case-insensitively, plus kebab-case spellings."""
        if isinstance(raw, Operator):
            return raw
        key = str(raw).strip()
        operator = _OPERATOR_ALIASES.get(key.lower())
        if operator is None:
            raise ValueError(f"Unknown operator: {raw!r}")
        return operator


_OPERATOR_ALIASES: dict[str, Operator] = {
    **{op.value.lower(): op for op in Operator},
    "not-contains": Operator.NOT_CONTAINS,
    "not-equals": Operator.NOT_EQUALS,
    "greater-equal": Operator.GREATER_EQUAL,
    "less-equal": Operator.LESS_EQUAL,
}

STRING_OPERATORS: frozenset[Operator] = frozenset({
    Operator.CONTAINS,
    Operator.EQUALS,
    Operator.STARTS,
    Operator.ENDS,
    Operator.NOT_CONTAINS,
})

NUMERIC_OPERATORS: frozenset[Operator] = frozenset({
    Operator.EQUALS,
    Operator.NOT_EQUALS,
    Operator.GREATER,
    Operator.LESS,
    Operator.GREATER_EQUAL,
    Operator.LESS_EQUAL,
})


@dataclass
class Criterion:
    """One field/operator/value condition of the query builder."""

    id: int
    field: str = ""
    operator: Operator = Operator.CONTAINS
    value: str = ""
    logical_operator: LogicalOperator | None = None


# Attribute paths accepted by CriteriaModel.update(), camelCase for UI payloads.
_UPDATABLE: dict[str, str] = {
    "field": "field",
    "operator": "operator",
    "value": "value",
    "logical_operator": "logical_operator",
    "logicalOperator": "logical_operator",
}


class CriteriaModel:
    """Ordered, mutable list of criteria for one search session.

    Ids come from a counter owned by this instance; pass ``id_generator`` to
    control them (e.g. in tests).
    """

    def __init__(self, id_generator: Callable[[], int] | None = None):
        self._criteria: list[Criterion] = []
        self._next_id = id_generator or itertools.count().__next__

    def add(self) -> int:
        """Append an empty criterion and return its id."""
        criterion_id = self._next_id()
        self._criteria.append(
            Criterion(
                id=criterion_id,
                logical_operator=LogicalOperator.AND if self._criteria else None,
            )
        )
        return criterion_id

    def remove(self, criterion_id: int) -> bool:
        """Remove a criterion. Returns False when the id is unknown."""
        before = len(self._criteria)
        self._criteria = [c for c in self._criteria if c.id != criterion_id]
        if self._criteria:
            self._criteria[0].logical_operator = None
        return len(self._criteria) != before

    def update(self, criterion_id: int, field_path: str, value: object) -> bool:
        """Set one attribute of one criterion.

        Unknown ids, unknown attribute paths and unparseable operator values
        are ignored; the return value tells whether anything changed.
        """
        criterion = self._find(criterion_id)
        attr = _UPDATABLE.get(field_path)
        if criterion is None or attr is None:
            return False

        if attr == "operator":
            try:
                value = Operator.parse(value)  # type: ignore[arg-type]
            except ValueError:
                return False
        elif attr == "logical_operator":
            if value is None or value == "":
                value = None
            else:
                try:
                    value = LogicalOperator(str(value).strip().upper())
                except ValueError:
                    return False
        else:
            value = "" if value is None else str(value)

        setattr(criterion, attr, value)
        return True

    def list(self) -> list[Criterion]:
        """Snapshot of the criteria in insertion order."""
        return [replace(c) for c in self._criteria]

    def get(self, criterion_id: int) -> Criterion | None:
        criterion = self._find(criterion_id)
        return replace(criterion) if criterion else None

    def clear(self) -> None:
        """Drop every criterion. Ids issued afterwards never repeat earlier ones."""
        self._criteria = []

    def __len__(self) -> int:
        return len(self._criteria)

    def _find(self, criterion_id: int) -> Criterion | None:
        for criterion in self._criteria:
            if criterion.id == criterion_id:
                return criterion
        return None
