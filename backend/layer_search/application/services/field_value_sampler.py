"""Field value sampler: distinct values of one field for autocomplete."""

import logging
from collections.abc import Sequence

from layer_search.application.interfaces import QueryableCollection
from layer_search.domain.entities import MATCH_ALL, QueryOptions
from layer_search.infrastructure.logging.colored_logger import SearchLogger, SearchStage

logger = logging.getLogger(__name__)
slog = SearchLogger("FieldValueSampler")

DEFAULT_VALUE_CAP = 100


class FieldValueSampler:
    """Collects up to ``cap`` distinct values of a field across collections.

    Collections are asked one at a time, in resolver order, and no further
    collection is queried once the cap is reached. Collections without the
    field, or whose query fails, are skipped.
    """

    def __init__(self, cap: int = DEFAULT_VALUE_CAP):
        self._cap = cap

    async def sample(
        self,
        collections: Sequence[QueryableCollection],
        field_name: str,
        cap: int | None = None,
    ) -> list[str]:
        limit = cap if cap is not None else self._cap
        if not field_name or limit <= 0:
            return []

        options = QueryOptions(
            out_fields=(field_name,),
            return_geometry=False,
            return_distinct_values=True,
            max_records=limit,
        )
        values: set[str] = set()
        queried = 0

        for collection in collections:
            if len(values) >= limit:
                break
            try:
                fields = await collection.list_fields()
                if field_name not in {f.name for f in fields}:
                    logger.debug("%s has no field %r, skipped", collection.ref, field_name)
                    continue
                queried += 1
                records = await collection.query(MATCH_ALL, options)
            except Exception as exc:
                slog.step_warning(
                    SearchStage.SAMPLE,
                    f"Layer {collection.ref} ({collection.title}) failed, skipped",
                    error=f"{type(exc).__name__}: {exc}",
                )
                continue

            for record in records:
                value = record.attributes.get(field_name)
                if value is None or value == "":
                    continue
                values.add(str(value))

        slog.step_complete(
            SearchStage.SAMPLE,
            f"{min(len(values), limit)} values for {field_name!r}",
            layers_queried=queried,
        )
        return sorted(values)[:limit]
