"""Unit tests for ArcGISFeatureLayer: REST adapter over httpx."""

from urllib.parse import parse_qs

import httpx
import pytest

from layer_search.domain.entities import FieldType, QueryOptions
from layer_search.domain.exceptions import CollectionQueryError
from layer_search.infrastructure.collections.arcgis_feature_layer import ArcGISFeatureLayer

_URL = "https://gis.example.com/arcgis/rest/services/Parks/FeatureServer/0"

_LAYER_INFO = {
    "name": "Parks",
    "fields": [
        {"name": "OBJECTID", "type": "esriFieldTypeOID", "alias": "OBJECTID"},
        {"name": "name", "type": "esriFieldTypeString", "alias": "Park name"},
        {"name": "area", "type": "esriFieldTypeDouble"},
        {"name": "shape", "type": "esriFieldTypeGeometry"},
    ],
}

_FEATURES = {
    "features": [
        {"attributes": {"OBJECTID": 1, "name": "Central"}, "geometry": {"x": 1, "y": 2}},
        {"attributes": {"OBJECTID": 2, "name": "North"}, "geometry": {"x": 3, "y": 4}},
    ],
}


# ── Helpers ──


def _make_layer(handler, **kwargs) -> tuple[ArcGISFeatureLayer, list[httpx.Request]]:
    """Layer wired to a MockTransport; every request is recorded."""
    seen: list[httpx.Request] = []

    def recording(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(recording))
    return ArcGISFeatureLayer(_URL, "Parks", http_client=client, ref="layer:0", **kwargs), seen


def _form(request: httpx.Request) -> dict[str, str]:
    return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


# ── Tests ──


@pytest.mark.asyncio
async def test_list_fields_maps_esri_types_and_is_cached():
    layer, seen = _make_layer(lambda request: httpx.Response(200, json=_LAYER_INFO))

    fields = await layer.list_fields()
    await layer.list_fields()

    assert [(f.name, f.type) for f in fields] == [
        ("OBJECTID", FieldType.INTEGER),
        ("name", FieldType.STRING),
        ("area", FieldType.DOUBLE),
        ("shape", FieldType.OTHER),
    ]
    assert fields[1].label == "Park name"
    assert len(seen) == 1
    assert seen[0].method == "GET"
    assert seen[0].url.params["f"] == "json"


@pytest.mark.asyncio
async def test_query_posts_where_clause_and_parses_features():
    layer, seen = _make_layer(lambda request: httpx.Response(200, json=_FEATURES))

    records = await layer.query("UPPER(name) LIKE UPPER('%C%')", QueryOptions())

    assert [r.attributes["name"] for r in records] == ["Central", "North"]
    assert records[0].geometry == {"x": 1, "y": 2}
    request = seen[0]
    assert request.method == "POST"
    assert request.url.path.endswith("/FeatureServer/0/query")
    form = _form(request)
    assert form["where"] == "UPPER(name) LIKE UPPER('%C%')"
    assert form["outFields"] == "*"
    assert form["returnGeometry"] == "true"
    assert "returnDistinctValues" not in form


@pytest.mark.asyncio
async def test_distinct_query_sends_limit_and_drops_geometry():
    layer, seen = _make_layer(lambda request: httpx.Response(200, json=_FEATURES), token="secret")

    records = await layer.query(
        "1=1",
        QueryOptions(out_fields=("name",), return_geometry=False,
                     return_distinct_values=True, max_records=100),
    )

    form = _form(seen[0])
    assert form["outFields"] == "name"
    assert form["returnGeometry"] == "false"
    assert form["returnDistinctValues"] == "true"
    assert form["resultRecordCount"] == "100"
    assert form["token"] == "secret"
    assert records[0].geometry is None


@pytest.mark.asyncio
async def test_error_payload_raises_collection_query_error():
    error = {"error": {"code": 400, "message": "Unable to complete operation.",
                       "details": ["Invalid field: nope"]}}
    layer, _ = _make_layer(lambda request: httpx.Response(200, json=error))

    with pytest.raises(CollectionQueryError) as exc_info:
        await layer.query("nope = 1", QueryOptions())

    assert exc_info.value.ref == "layer:0"
    assert exc_info.value.status_code == 400
    assert "Invalid field" in exc_info.value.message


@pytest.mark.asyncio
async def test_http_error_status_raises():
    layer, _ = _make_layer(lambda request: httpx.Response(503, text="Service Unavailable"))

    with pytest.raises(CollectionQueryError) as exc_info:
        await layer.list_fields()

    assert exc_info.value.status_code == 503


@pytest.mark.asyncio
async def test_transport_failure_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    layer, _ = _make_layer(handler)

    with pytest.raises(CollectionQueryError) as exc_info:
        await layer.query("1=1", QueryOptions())

    assert "ConnectError" in exc_info.value.message


@pytest.mark.asyncio
async def test_invalid_json_raises():
    layer, _ = _make_layer(lambda request: httpx.Response(200, text="<html>login</html>"))

    with pytest.raises(CollectionQueryError):
        await layer.query("1=1", QueryOptions())


def test_title_defaults_to_url():
    layer = ArcGISFeatureLayer(_URL + "/")

    assert layer.url == _URL
    assert layer.title == _URL
