"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator
from pathlib import Path

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from layer_search.config import get_settings
from layer_search.domain.exceptions import CatalogError
from layer_search.infrastructure.catalog.layer_catalog_loader import LayerCatalogLoader
from layer_search.infrastructure.database import engine
from layer_search.infrastructure.dependencies import get_collection_registry
from layer_search.infrastructure.logging.log_config import setup_logging
from layer_search.presentation.api.router import router as api_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: load the layer catalog, share one HTTP client."""
    settings = get_settings()
    setup_logging()

    # 1. Ensure the local layer store directory exists
    Path("data").mkdir(parents=True, exist_ok=True)

    # 2. One connection pool for every remote layer
    http_client = httpx.AsyncClient(timeout=settings.arcgis_timeout)

    # 3. Register remote layers from the YAML catalog
    try:
        LayerCatalogLoader(
            settings.layer_catalog_file,
            get_collection_registry(),
            http_client=http_client,
            token=settings.arcgis_token,
            timeout=settings.arcgis_timeout,
        ).load()
    except CatalogError:
        logger.exception("Failed to load layer catalog, continuing without remote layers")

    yield

    # Shutdown
    await http_client.aclose()
    await engine.dispose()


def create_app() -> FastAPI:
    """Factory function that builds and configures the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_title,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Mount API routes
    app.include_router(api_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "layer_search.main:app",
        host="0.0.0.0",
        port=8020,
        reload=True,
    )
