"""Unit tests for the FieldCatalog: field union across collections."""

import pytest

from layer_search.application.interfaces import QueryableCollection
from layer_search.application.services import FieldCatalog
from layer_search.domain.entities import FieldDescriptor, FieldType, QueryOptions, Record
from layer_search.domain.exceptions import CollectionQueryError


class FakeCollection(QueryableCollection):
    def __init__(self, ref: str, fields: list[FieldDescriptor] | None = None, fail: bool = False):
        self.ref = ref
        self.title = ref.upper()
        self._fields = fields or []
        self._fail = fail

    async def list_fields(self) -> list[FieldDescriptor]:
        if self._fail:
            raise CollectionQueryError(self.ref, "unreachable")
        return list(self._fields)

    async def query(self, where: str, options: QueryOptions) -> list[Record]:
        return []


@pytest.mark.asyncio
async def test_first_collection_decides_descriptor_and_reserved_are_dropped():
    a = FakeCollection("a", [
        FieldDescriptor("OBJECTID", type=FieldType.INTEGER),
        FieldDescriptor("name", "Name"),
        FieldDescriptor("area", type=FieldType.DOUBLE),
    ])
    b = FakeCollection("b", [
        FieldDescriptor("FID", type=FieldType.INTEGER),
        FieldDescriptor("name", "Other name", FieldType.OTHER),
        FieldDescriptor("type"),
    ])

    fields = await FieldCatalog().collect([a, b])

    assert [f.name for f in fields] == ["name", "area", "type"]
    assert fields[0].label == "Name"
    assert fields[0].type == FieldType.STRING


@pytest.mark.asyncio
async def test_failing_collection_is_skipped():
    ok = FakeCollection("ok", [FieldDescriptor("name")])
    broken = FakeCollection("broken", fail=True)

    fields = await FieldCatalog().collect([broken, ok])

    assert [f.name for f in fields] == ["name"]


@pytest.mark.asyncio
async def test_custom_reserved_fields():
    a = FakeCollection("a", [FieldDescriptor("OBJECTID"), FieldDescriptor("GlobalID")])

    fields = await FieldCatalog(reserved_fields=["GlobalID"]).collect([a])

    assert [f.name for f in fields] == ["OBJECTID"]


def test_type_lookup_maps_names_to_types():
    lookup = FieldCatalog.type_lookup([
        FieldDescriptor("area", type=FieldType.DOUBLE),
        FieldDescriptor("name"),
    ])

    assert lookup == {"area": FieldType.DOUBLE, "name": FieldType.STRING}
