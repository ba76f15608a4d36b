"""Expression compiler: turns query-builder criteria into a where-clause predicate.

The output dialect is the SQL-like where clause understood by feature
services (and by the local SQLite layer store):

    UPPER(name) LIKE UPPER('%Park%') AND area > 100

Case folding is only applied when the field name is pure ASCII; non-ASCII
field names (Arabic, etc.) are compared raw because UPPER() on those
services does not fold non-Latin scripts reliably.

Field names are spliced into the clause unquoted, so they must be plain
identifiers (dotted names allowed). Only plain decimal values compile as
numbers; hex, Infinity and NaN spellings are compared as text.
"""

import logging
import re
from collections.abc import Collection, Mapping, Sequence

from layer_search.domain.entities import (
    MATCH_ALL,
    CompiledExpression,
    Criterion,
    FieldType,
    LogicalOperator,
    Operator,
)
from layer_search.domain.exceptions import SearchValidationError

logger = logging.getLogger(__name__)

_NUMBER_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")
_FIELD_RE = re.compile(r"[^\W\d]\w*(?:\.[^\W\d]\w*)*")

# operator -> (comparison token, literal pattern)
_STRING_SHAPES: dict[Operator, tuple[str, str]] = {
    Operator.CONTAINS: ("LIKE", "%{v}%"),
    Operator.EQUALS: ("=", "{v}"),
    Operator.STARTS: ("LIKE", "{v}%"),
    Operator.ENDS: ("LIKE", "%{v}"),
    Operator.NOT_CONTAINS: ("NOT LIKE", "%{v}%"),
    Operator.NOT_EQUALS: ("<>", "{v}"),
}

_NUMERIC_TOKENS: dict[Operator, str] = {
    Operator.EQUALS: "=",
    Operator.NOT_EQUALS: "<>",
    Operator.GREATER: ">",
    Operator.LESS: "<",
    Operator.GREATER_EQUAL: ">=",
    Operator.LESS_EQUAL: "<=",
}


class ExpressionCompiler:
    """Compiles an ordered criteria list into one CompiledExpression."""

    def compile(
        self,
        criteria: Sequence[Criterion],
        field_types: Mapping[str, FieldType] | None = None,
    ) -> CompiledExpression:
        """Build the predicate, joining clauses left to right.

        Each criterion after the first is joined with its own logical
        operator (AND when unset); the first one's operator is ignored.
        An empty list compiles to the match-everything predicate.
        """
        field_types = field_types or {}
        parts: list[str] = []
        for index, criterion in enumerate(criteria):
            clause = self.build_clause(criterion, field_types.get(criterion.field))
            if index > 0:
                joiner = criterion.logical_operator or LogicalOperator.AND
                parts.append(LogicalOperator(joiner).value)
            parts.append(clause)

        where = " ".join(parts) or MATCH_ALL
        logger.debug("Compiled %d criteria → %s", len(criteria), where)
        return CompiledExpression(where=where)

    def build_clause(self, criterion: Criterion, field_type: FieldType | None = None) -> str:
        """Build the clause for one criterion."""
        field = criterion.field
        if not _FIELD_RE.fullmatch(field):
            raise SearchValidationError(
                f"Invalid field name {field!r}", criterion_id=criterion.id
            )
        raw_value = str(criterion.value)
        operator = Operator.parse(criterion.operator)
        escaped = escape_literal(raw_value)
        fold = field.isascii()

        number = raw_value.strip()
        if is_numeric_literal(number) and operator in _NUMERIC_TOKENS:
            return f"{field} {_NUMERIC_TOKENS[operator]} {number}"

        if operator in _STRING_SHAPES:
            token, pattern = _STRING_SHAPES[operator]
            literal = pattern.format(v=escaped)
            if fold:
                return f"UPPER({field}) {token} UPPER('{literal}')"
            return f"{field} {token} '{literal}'"

        # Ordering operator with a non-numeric value.
        if field_type is not None and field_type.is_numeric:
            raise SearchValidationError(
                f"'{operator.value}' on numeric field '{field}' needs a numeric value, got {raw_value!r}",
                criterion_id=criterion.id,
            )
        return f"{field} {_NUMERIC_TOKENS[operator]} '{escaped}'"

    @staticmethod
    def check_fields(criteria: Sequence[Criterion], known: Collection[str]) -> None:
        """Reject criteria naming a field that no searched collection exposes."""
        for criterion in criteria:
            if criterion.field not in known:
                raise SearchValidationError(
                    f"Unknown field {criterion.field!r}", criterion_id=criterion.id
                )

    @staticmethod
    def validate(criteria: Sequence[Criterion]) -> None:
        """Reject criteria lists that must not reach any collection.

        Raises SearchValidationError for an empty list or for any criterion
        with an empty field or value.
        """
        if not criteria:
            raise SearchValidationError("Add at least one search condition")
        for criterion in criteria:
            if not criterion.field.strip():
                raise SearchValidationError("Field is required", criterion_id=criterion.id)
            if not str(criterion.value).strip():
                raise SearchValidationError("Value is required", criterion_id=criterion.id)


def escape_literal(value: str) -> str:
    """Escape a value for embedding in a single-quoted literal."""
    return value.replace("'", "''")


def is_numeric_literal(value: str) -> bool:
    """True when the value reads as a plain decimal number."""
    return bool(_NUMBER_RE.match(value))
