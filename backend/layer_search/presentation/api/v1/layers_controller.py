"""Layers API controller: list registered layers and upload local ones."""

import logging
from pathlib import Path

from fastapi import APIRouter, Depends, Form, HTTPException, UploadFile, status

from layer_search.application.schemas.layers import LayerResponse
from layer_search.application.services import CollectionRegistry, LayerUploadService
from layer_search.domain.exceptions import CatalogError
from layer_search.infrastructure.dependencies import (
    get_collection_registry,
    get_layer_upload_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/layers", tags=["Layers"])

_GEOJSON_SUFFIXES = (".geojson", ".json")


@router.get("", response_model=list[LayerResponse])
async def list_layers(
    registry: CollectionRegistry = Depends(get_collection_registry),
):
    """Every searchable layer, regions flattened, in registration order."""
    return [LayerResponse(ref=c.ref, title=c.title) for c in registry.leaves()]


@router.post("/upload", response_model=LayerResponse, status_code=status.HTTP_201_CREATED)
async def upload_layer(
    file: UploadFile,
    title: str | None = Form(default=None),
    service: LayerUploadService = Depends(get_layer_upload_service),
):
    """Upload a GeoJSON FeatureCollection as a new local layer."""
    if not file.filename or not file.filename.lower().endswith(_GEOJSON_SUFFIXES):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Expected a .geojson or .json file",
        )

    content = await file.read()
    try:
        collection = await service.import_geojson(title or Path(file.filename).stem, content)
    except CatalogError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    fields = await collection.list_fields()
    return LayerResponse(ref=collection.ref, title=collection.title, field_count=len(fields))
