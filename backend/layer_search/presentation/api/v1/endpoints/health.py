"""Health check endpoint: reports the service version and registered layer count."""

from fastapi import APIRouter, Depends

from layer_search.application.services import CollectionRegistry
from layer_search.config import get_settings
from layer_search.infrastructure.dependencies import get_collection_registry

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check(
    registry: CollectionRegistry = Depends(get_collection_registry),
) -> dict:
    """Returns the current application health status."""
    settings = get_settings()
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.app_env,
        "layers": len(registry.leaves()),
    }
