"""Search exporter: serializes an aggregate to a CSV document grouped by layer.

Layout::

    <BOM><title>
    Date: <timestamp>
    Total results: <n>

    Layer: <layer title>
    field_a,field_b
    "value","value"
"""

import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from layer_search.application.services.field_catalog import DEFAULT_RESERVED_FIELDS
from layer_search.domain.entities import Record, SearchResult
from layer_search.domain.exceptions import ExportError
from layer_search.infrastructure.logging.colored_logger import SearchLogger, SearchStage

logger = logging.getLogger(__name__)
slog = SearchLogger("SearchExporter")

BOM = "\ufeff"
DEFAULT_EXPORT_TITLE = "Advanced search results"


class SearchExporter:
    """Builds the CSV export of one SearchResult."""

    def __init__(
        self,
        reserved_fields: Iterable[str] = DEFAULT_RESERVED_FIELDS,
        title: str = DEFAULT_EXPORT_TITLE,
    ):
        self._reserved = frozenset(reserved_fields)
        self._title = title

    def export(self, result: SearchResult | None, *, now: datetime | None = None) -> str:
        """Return the document text, starting with a UTF-8 byte-order mark.

        Raises ExportError when there is nothing to export.
        """
        if result is None or result.is_empty:
            raise ExportError()

        timestamp = (now or datetime.now(timezone.utc)).strftime("%Y-%m-%d %H:%M:%S")
        lines = [
            f"{BOM}{self._title}",
            f"Date: {timestamp}",
            f"Total results: {result.total_count}",
        ]

        groups = _group_by_origin(result.records)
        for ref, records in groups.items():
            header = self._header(records[0])
            lines.append("")
            lines.append(f"Layer: {result.title_for(ref)}")
            lines.append(",".join(_quote_name(name) for name in header))
            for record in records:
                lines.append(",".join(_cell(record.attributes.get(name)) for name in header))

        slog.step_complete(
            SearchStage.EXPORT,
            f"Exported {result.total_count} records in {len(groups)} layer sections",
        )
        return "\n".join(lines) + "\n"

    def export_bytes(self, result: SearchResult | None, *, now: datetime | None = None) -> bytes:
        return self.export(result, now=now).encode("utf-8")

    def _header(self, first: Record) -> list[str]:
        return [key for key in first.attributes if key not in self._reserved]


def _group_by_origin(records: Iterable[Record]) -> dict[str, list[Record]]:
    groups: dict[str, list[Record]] = {}
    for record in records:
        groups.setdefault(record.origin, []).append(record)
    return groups


def _cell(value: Any) -> str:
    if value is None:
        return ""
    return '"' + str(value).replace('"', '""') + '"'


def _quote_name(name: str) -> str:
    if "," in name or '"' in name:
        return _cell(name)
    return name
