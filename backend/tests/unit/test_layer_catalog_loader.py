"""Unit tests for LayerCatalogLoader: YAML catalog to registry."""

import pytest

from layer_search.application.services import CollectionRegistry, ScopeResolver
from layer_search.domain.exceptions import CatalogError
from layer_search.infrastructure.catalog.layer_catalog_loader import LayerCatalogLoader
from layer_search.infrastructure.collections.arcgis_feature_layer import ArcGISFeatureLayer

_CATALOG = """
regions:
  - title: Riyadh
    layers:
      - title: Parcels
        url: https://gis.example.com/rest/services/Riyadh/FeatureServer/0
      - title: Roads
        url: https://gis.example.com/rest/services/Riyadh/FeatureServer/1
        token: layer-token
layers:
  - title: Schools
    url: https://gis.example.com/rest/services/Schools/FeatureServer/0
"""


def test_load_registers_regions_then_layers(tmp_path):
    path = tmp_path / "layers.yaml"
    path.write_text(_CATALOG, encoding="utf-8")
    registry = CollectionRegistry()

    total = LayerCatalogLoader(str(path), registry, token="global").load()

    assert total == 3
    leaves = registry.leaves()
    assert all(isinstance(leaf, ArcGISFeatureLayer) for leaf in leaves)
    assert [(leaf.ref, leaf.title) for leaf in leaves] == [
        ("layer:0", "Parcels"),
        ("layer:1", "Roads"),
        ("layer:2", "Schools"),
    ]
    assert leaves[0]._token == "global"
    assert leaves[1]._token == "layer-token"
    assert ScopeResolver(registry).resolve_refs("region:Riyadh") == ["layer:0", "layer:1"]


def test_missing_catalog_registers_nothing(tmp_path):
    registry = CollectionRegistry()

    assert LayerCatalogLoader(str(tmp_path / "absent.yaml"), registry).load() == 0
    assert registry.entries() == []


@pytest.mark.parametrize("content", [
    "regions: [\n",
    "- just\n- a list\n",
    "layers:\n  - title: No url\n",
    "regions:\n  - layers: []\n",
])
def test_malformed_catalog_raises(tmp_path, content):
    path = tmp_path / "layers.yaml"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(CatalogError):
        LayerCatalogLoader(str(path), CollectionRegistry()).load()
