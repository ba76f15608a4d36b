"""Layer catalog loader: builds the collection registry from a YAML file.

Expected layout::

    regions:
      - title: Riyadh
        layers:
          - title: Parcels
            url: https://services.arcgis.com/.../FeatureServer/0
    layers:
      - title: Schools
        url: https://services.arcgis.com/.../FeatureServer/1

Executed once at application startup via the FastAPI lifespan.
"""

import logging
from pathlib import Path
from typing import Any

import httpx
import yaml

from layer_search.application.services.collection_registry import CollectionRegistry
from layer_search.domain.exceptions import CatalogError
from layer_search.infrastructure.collections.arcgis_feature_layer import ArcGISFeatureLayer

logger = logging.getLogger(__name__)


class LayerCatalogLoader:
    """Registers the remote layers listed in the catalog file."""

    def __init__(
        self,
        catalog_file: str,
        registry: CollectionRegistry,
        *,
        http_client: httpx.AsyncClient | None = None,
        token: str = "",
        timeout: float = 30.0,
    ):
        self._path = Path(catalog_file)
        self._registry = registry
        self._http_client = http_client
        self._token = token
        self._timeout = timeout

    def load(self) -> int:
        """Parse the catalog and populate the registry.

        Returns the number of layers registered. A missing file registers
        nothing; a malformed one raises CatalogError.
        """
        if not self._path.exists():
            logger.warning("Layer catalog %s not found, starting with no remote layers", self._path)
            return 0

        try:
            data = yaml.safe_load(self._path.read_text("utf-8")) or {}
        except yaml.YAMLError as exc:
            raise CatalogError(str(self._path), f"Invalid YAML: {exc}") from exc
        if not isinstance(data, dict):
            raise CatalogError(str(self._path), "Top level must be a mapping")

        total = 0
        for index, region in enumerate(data.get("regions") or []):
            if not isinstance(region, dict) or not region.get("title"):
                raise CatalogError(str(self._path), f"regions[{index}] needs a title")
            layers = [
                self._build_layer(raw, f"regions[{index}].layers[{i}]")
                for i, raw in enumerate(region.get("layers") or [])
            ]
            self._registry.add_group(str(region["title"]), layers)
            total += len(layers)

        for index, raw in enumerate(data.get("layers") or []):
            self._registry.register(self._build_layer(raw, f"layers[{index}]"))
            total += 1

        logger.info(
            "Layer catalog loaded: %d layers in %d regions from %s",
            total, len(self._registry.groups()), self._path,
        )
        return total

    def _build_layer(self, raw: Any, where: str) -> ArcGISFeatureLayer:
        if not isinstance(raw, dict) or not raw.get("url"):
            raise CatalogError(str(self._path), f"{where} needs a url")
        return ArcGISFeatureLayer(
            url=str(raw["url"]),
            title=str(raw.get("title") or ""),
            token=str(raw.get("token") or self._token),
            timeout=self._timeout,
            http_client=self._http_client,
        )
