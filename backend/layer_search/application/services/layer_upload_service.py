"""Layer upload service: turns an uploaded GeoJSON file into a searchable layer."""

import json
import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine

from layer_search.application.services.collection_registry import CollectionRegistry
from layer_search.domain.entities import FieldDescriptor, FieldType, Record
from layer_search.domain.exceptions import CatalogError
from layer_search.infrastructure.collections.sql_table_collection import (
    SQLTableCollection,
    column_names,
)

logger = logging.getLogger(__name__)


class LayerUploadService:
    """Imports GeoJSON FeatureCollections into the local layer store."""

    def __init__(self, engine: AsyncEngine, registry: CollectionRegistry):
        self._engine = engine
        self._registry = registry

    async def import_geojson(self, title: str, payload: bytes | str | dict) -> SQLTableCollection:
        """Create a layer from a FeatureCollection and register it.

        Raises CatalogError when the payload is not a non-empty FeatureCollection.
        """
        data = self._parse(title, payload)
        features = data["features"]

        columns = column_names(
            key for feature in features for key in (feature.get("properties") or {})
        )
        fields = _infer_fields(features, columns)
        records = [
            Record(
                attributes={
                    columns[k]: _storable(v)
                    for k, v in (feature.get("properties") or {}).items()
                },
                geometry=feature.get("geometry"),
            )
            for feature in features
        ]

        collection = await SQLTableCollection.create(self._engine, title, fields)
        inserted = await collection.insert(records)
        self._registry.register(collection)

        logger.info(
            "Imported layer %s (%s): %d features, %d fields",
            collection.ref, title, inserted, len(fields),
        )
        return collection

    @staticmethod
    def _parse(title: str, payload: bytes | str | dict) -> dict[str, Any]:
        if isinstance(payload, (bytes, str)):
            try:
                payload = json.loads(payload)
            except (ValueError, UnicodeDecodeError) as exc:
                raise CatalogError(title, f"Invalid GeoJSON: {exc}") from exc

        if not isinstance(payload, dict) or payload.get("type") != "FeatureCollection":
            raise CatalogError(title, "Expected a GeoJSON FeatureCollection")
        features = payload.get("features")
        if not isinstance(features, list) or not features:
            raise CatalogError(title, "FeatureCollection has no features")
        if not all(isinstance(f, dict) for f in features):
            raise CatalogError(title, "Every feature must be an object")
        return payload


def _infer_fields(
    features: list[dict[str, Any]],
    columns: dict[str, str],
) -> list[FieldDescriptor]:
    """One descriptor per property, typed from its non-null values.

    The descriptor is named after the property's column; the property name
    itself is kept as the alias.
    """
    types: dict[str, FieldType | None] = {}
    for feature in features:
        for key, value in (feature.get("properties") or {}).items():
            current = types.get(key)
            if value is None:
                types.setdefault(key, None)
                continue
            types[key] = _merge(current, _value_type(value))
    return [
        FieldDescriptor(name=columns[name], alias=name, type=field_type or FieldType.STRING)
        for name, field_type in types.items()
    ]


def _value_type(value: Any) -> FieldType:
    if isinstance(value, (bool, int)):
        return FieldType.INTEGER
    if isinstance(value, float):
        return FieldType.DOUBLE
    if isinstance(value, str):
        return FieldType.STRING
    return FieldType.OTHER


def _merge(current: FieldType | None, new: FieldType) -> FieldType:
    if current is None or current == new:
        return new
    if {current, new} == {FieldType.INTEGER, FieldType.DOUBLE}:
        return FieldType.DOUBLE
    if FieldType.OTHER in (current, new):
        return FieldType.OTHER
    return FieldType.STRING


def _storable(value: Any) -> Any:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return value
