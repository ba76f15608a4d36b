"""Result viewer: pagination and in-result filtering over one aggregate.

Purely client-side: nothing here ever queries a collection.
"""

import math

from layer_search.domain.entities import Page, Record, SearchResult

DEFAULT_PAGE_SIZE = 10


class ResultViewer:
    """Pages through the installed aggregate, optionally narrowed by a substring.

    Installing a new aggregate resets to page 1 and clears the filter;
    re-filtering keeps the current page, clamped to the new page count.
    """

    def __init__(self, page_size: int = DEFAULT_PAGE_SIZE):
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self._page_size = page_size
        self._result: SearchResult | None = None
        self._visible: tuple[Record, ...] = ()
        self._filter: str | None = None
        self._page_index = 1

    # ── State ────────────────────────────────────────────────────────

    @property
    def result(self) -> SearchResult | None:
        return self._result

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def page_index(self) -> int:
        return self._page_index

    @property
    def active_filter(self) -> str | None:
        return self._filter

    @property
    def visible_records(self) -> tuple[Record, ...]:
        return self._visible

    @property
    def total_pages(self) -> int:
        return math.ceil(len(self._visible) / self._page_size)

    # ── Operations ───────────────────────────────────────────────────

    def set_aggregate(self, result: SearchResult | None) -> Page:
        """Install a fresh aggregate (or None to clear)."""
        self._result = result
        self._filter = None
        self._visible = result.records if result else ()
        self._page_index = 1
        return self.page()

    def set_page_size(self, page_size: int) -> Page:
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self._page_size = page_size
        self._clamp()
        return self.page()

    def next_page(self) -> Page:
        if self._page_index < self.total_pages:
            self._page_index += 1
        return self.page()

    def previous_page(self) -> Page:
        if self._page_index > 1:
            self._page_index -= 1
        return self.page()

    def go_to(self, index: int) -> Page:
        self._page_index = index
        self._clamp()
        return self.page()

    def filter(self, term: str | None) -> Page:
        """Narrow the visible records to those with any attribute containing ``term``.

        Matching is case-insensitive over every attribute value; an empty
        or None term shows the whole aggregate again.
        """
        records = self._result.records if self._result else ()
        if not term:
            self._filter = None
            self._visible = records
        else:
            self._filter = term
            needle = term.casefold()
            self._visible = tuple(r for r in records if _matches(r, needle))
        self._clamp()
        return self.page()

    def page(self) -> Page:
        """The current page: the half-open slice [(p-1)*size, p*size)."""
        start = (self._page_index - 1) * self._page_size
        end = min(start + self._page_size, len(self._visible))
        return Page(
            index=self._page_index,
            size=self._page_size,
            total_pages=self.total_pages,
            total_records=len(self._visible),
            records=self._visible[start:end],
        )

    def _clamp(self) -> None:
        self._page_index = max(1, min(self._page_index, self.total_pages))


def _matches(record: Record, needle: str) -> bool:
    return any(
        needle in str(value).casefold()
        for value in record.attributes.values()
        if value is not None
    )
