"""ArcGIS feature layer: implements QueryableCollection over the ArcGIS REST API.

Talks to a single FeatureServer / MapServer layer endpoint, e.g.
``https://services.arcgis.com/.../FeatureServer/0``, using httpx:

    GET  {url}?f=json          → layer description (fields)
    POST {url}/query           → features matching a where clause
"""

import logging
from typing import Any

import httpx

from layer_search.application.interfaces import QueryableCollection
from layer_search.domain.entities import FieldDescriptor, FieldType, QueryOptions, Record
from layer_search.domain.exceptions import CollectionQueryError

logger = logging.getLogger(__name__)

_ESRI_FIELD_TYPES: dict[str, FieldType] = {
    "esriFieldTypeString": FieldType.STRING,
    "esriFieldTypeGUID": FieldType.STRING,
    "esriFieldTypeGlobalID": FieldType.STRING,
    "esriFieldTypeOID": FieldType.INTEGER,
    "esriFieldTypeInteger": FieldType.INTEGER,
    "esriFieldTypeSmallInteger": FieldType.INTEGER,
    "esriFieldTypeBigInteger": FieldType.INTEGER,
    "esriFieldTypeDouble": FieldType.DOUBLE,
    "esriFieldTypeSingle": FieldType.DOUBLE,
}


class ArcGISFeatureLayer(QueryableCollection):
    """Infrastructure adapter: one remote ArcGIS feature layer.

    Field metadata is fetched once and cached. Every failure (transport
    error, non-200 status, ``error`` payload) surfaces as CollectionQueryError.
    """

    def __init__(
        self,
        url: str,
        title: str = "",
        *,
        token: str = "",
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
        ref: str = "",
    ):
        self.url = url.rstrip("/")
        self.title = title or self.url
        self.ref = ref
        self._token = token
        self._timeout = timeout
        self._http_client = http_client
        self._fields: list[FieldDescriptor] | None = None

    async def list_fields(self) -> list[FieldDescriptor]:
        if self._fields is None:
            data = await self._request("GET", self.url, {"f": "json"})
            self._fields = [
                self._parse_field(raw)
                for raw in data.get("fields") or []
                if raw.get("name")
            ]
            logger.debug("Loaded %d fields for %s", len(self._fields), self.ref or self.url)
        return list(self._fields)

    async def query(self, where: str, options: QueryOptions) -> list[Record]:
        params: dict[str, Any] = {
            "where": where,
            "outFields": ",".join(options.out_fields) or "*",
            "returnGeometry": _flag(options.return_geometry),
            "f": "json",
        }
        if options.return_distinct_values:
            params["returnDistinctValues"] = "true"
        if options.max_records is not None:
            params["resultRecordCount"] = options.max_records

        data = await self._request("POST", f"{self.url}/query", params)
        return [
            Record(
                attributes=dict(feature.get("attributes") or {}),
                geometry=feature.get("geometry") if options.return_geometry else None,
            )
            for feature in data.get("features") or []
        ]

    # ── Private helpers ──────────────────────────────────────────────

    async def _get_client(self) -> httpx.AsyncClient:
        """Return the injected client or create a new one."""
        if self._http_client is not None:
            return self._http_client
        return httpx.AsyncClient(timeout=self._timeout)

    async def _request(self, method: str, url: str, params: dict[str, Any]) -> dict[str, Any]:
        if self._token:
            params = {**params, "token": self._token}

        client = await self._get_client()
        should_close = self._http_client is None

        try:
            if method == "GET":
                response = await client.get(url, params=params)
            else:
                response = await client.post(url, data=params)
        except httpx.HTTPError as exc:
            raise CollectionQueryError(self.ref or self.url, f"{type(exc).__name__}: {exc}") from exc
        finally:
            if should_close:
                await client.aclose()

        if response.status_code != 200:
            raise CollectionQueryError(
                self.ref or self.url,
                response.text[:300] or response.reason_phrase,
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise CollectionQueryError(self.ref or self.url, "Response is not valid JSON") from exc

        # ArcGIS reports most failures as HTTP 200 with an error object.
        error = data.get("error") if isinstance(data, dict) else None
        if error:
            details = "; ".join(str(d) for d in error.get("details") or [])
            message = error.get("message", "Unknown error")
            raise CollectionQueryError(
                self.ref or self.url,
                f"{message} ({details})" if details else message,
                status_code=error.get("code"),
            )
        if not isinstance(data, dict):
            raise CollectionQueryError(self.ref or self.url, "Unexpected response payload")
        return data

    @staticmethod
    def _parse_field(raw: dict[str, Any]) -> FieldDescriptor:
        return FieldDescriptor(
            name=raw["name"],
            alias=raw.get("alias") or raw["name"],
            type=_ESRI_FIELD_TYPES.get(raw.get("type", ""), FieldType.OTHER),
        )


def _flag(value: bool) -> str:
    return "true" if value else "false"
