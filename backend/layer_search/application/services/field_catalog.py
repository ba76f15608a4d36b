"""Field catalog: union of attribute fields across resolved collections."""

import asyncio
import logging
from collections.abc import Iterable, Sequence

from layer_search.application.interfaces import QueryableCollection
from layer_search.domain.entities import FieldDescriptor, FieldType

logger = logging.getLogger(__name__)

DEFAULT_RESERVED_FIELDS = ("OBJECTID", "FID")


class FieldCatalog:
    """Collects the searchable fields of a set of collections.

    The first collection to expose a field name decides its descriptor;
    reserved identifier fields are left out.
    """

    def __init__(self, reserved_fields: Iterable[str] = DEFAULT_RESERVED_FIELDS):
        self._reserved = frozenset(reserved_fields)

    async def collect(
        self,
        collections: Sequence[QueryableCollection],
    ) -> list[FieldDescriptor]:
        results = await asyncio.gather(
            *(c.list_fields() for c in collections),
            return_exceptions=True,
        )

        fields: dict[str, FieldDescriptor] = {}
        for collection, result in zip(collections, results):
            if isinstance(result, BaseException):
                logger.warning(
                    "Could not list fields of %s (%s): %s",
                    collection.ref, collection.title, result,
                )
                continue
            for descriptor in result:
                if descriptor.name in self._reserved or descriptor.name in fields:
                    continue
                fields[descriptor.name] = descriptor
        return list(fields.values())

    @staticmethod
    def type_lookup(fields: Iterable[FieldDescriptor]) -> dict[str, FieldType]:
        return {f.name: f.type for f in fields}
