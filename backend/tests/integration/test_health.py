"""Tests for the health check endpoint."""

import pytest
from httpx import ASGITransport, AsyncClient

from layer_search.application.services import CollectionRegistry
from layer_search.infrastructure.dependencies import get_collection_registry
from layer_search.main import app


@pytest.mark.asyncio
async def test_health_check_returns_200():
    """Health endpoint should return 200 with status, version, environment and layer count."""
    app.dependency_overrides[get_collection_registry] = CollectionRegistry
    try:
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/api/v1/health")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "version" in data
    assert "environment" in data
    assert data["layers"] == 0
