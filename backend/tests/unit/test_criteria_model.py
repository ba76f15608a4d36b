"""Unit tests for CriteriaModel: the ordered, mutable criteria list."""

import pytest

from layer_search.domain.entities import (
    NUMERIC_OPERATORS,
    STRING_OPERATORS,
    CriteriaModel,
    LogicalOperator,
    Operator,
)


def test_add_joins_every_criterion_but_the_first_with_and():
    model = CriteriaModel()
    first = model.add()
    second = model.add()

    criteria = model.list()
    assert [c.id for c in criteria] == [first, second]
    assert criteria[0].logical_operator is None
    assert criteria[1].logical_operator == LogicalOperator.AND
    assert criteria[1].field == ""
    assert criteria[1].operator == Operator.CONTAINS


def test_ids_are_unique_and_never_reused_after_clear():
    model = CriteriaModel()
    issued = {model.add() for _ in range(3)}
    model.clear()
    issued_after = model.add()

    assert len(issued) == 3
    assert issued_after not in issued
    assert len(model) == 1


def test_custom_id_generator_is_used():
    ids = iter([100, 200])
    model = CriteriaModel(id_generator=lambda: next(ids))

    assert model.add() == 100
    assert model.add() == 200


def test_remove_first_criterion_promotes_next_one_without_join():
    model = CriteriaModel()
    first = model.add()
    second = model.add()
    model.update(second, "logicalOperator", "OR")

    assert model.remove(first) is True
    remaining = model.list()
    assert [c.id for c in remaining] == [second]
    assert remaining[0].logical_operator is None


def test_remove_unknown_id_returns_false():
    model = CriteriaModel()
    model.add()

    assert model.remove(999) is False
    assert len(model) == 1


def test_update_sets_field_operator_and_value():
    model = CriteriaModel()
    cid = model.add()

    assert model.update(cid, "field", "name")
    assert model.update(cid, "operator", "notContains")
    assert model.update(cid, "value", "Park")

    criterion = model.get(cid)
    assert criterion.field == "name"
    assert criterion.operator == Operator.NOT_CONTAINS
    assert criterion.value == "Park"


@pytest.mark.parametrize("raw, expected", [
    ("GREATER", Operator.GREATER),
    ("greater-equal", Operator.GREATER_EQUAL),
    ("not-equals", Operator.NOT_EQUALS),
    (Operator.ENDS, Operator.ENDS),
])
def test_operator_parse_accepts_aliases(raw, expected):
    assert Operator.parse(raw) == expected


def test_update_ignores_unknown_id_path_and_operator():
    model = CriteriaModel()
    cid = model.add()

    assert model.update(cid + 1, "field", "name") is False
    assert model.update(cid, "colour", "red") is False
    assert model.update(cid, "operator", "between") is False
    assert model.update(cid, "logical_operator", "XOR") is False
    assert model.get(cid).operator == Operator.CONTAINS


def test_update_logical_operator_accepts_lowercase_and_clears_on_empty():
    model = CriteriaModel()
    model.add()
    cid = model.add()

    assert model.update(cid, "logical_operator", "or")
    assert model.get(cid).logical_operator == LogicalOperator.OR
    assert model.update(cid, "logical_operator", "")
    assert model.get(cid).logical_operator is None


def test_list_returns_snapshots():
    model = CriteriaModel()
    cid = model.add()

    snapshot = model.list()[0]
    snapshot.field = "mutated"

    assert model.get(cid).field == ""


def test_operator_categories():
    assert STRING_OPERATORS & NUMERIC_OPERATORS == {Operator.EQUALS}
    assert Operator.GREATER not in STRING_OPERATORS
    assert Operator.CONTAINS not in NUMERIC_OPERATORS
    assert STRING_OPERATORS | NUMERIC_OPERATORS == set(Operator)
