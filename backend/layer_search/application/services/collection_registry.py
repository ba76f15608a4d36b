"""Registry of every known collection: top-level layers and region groups."""

import logging
from dataclasses import dataclass, field

from layer_search.application.interfaces import QueryableCollection

logger = logging.getLogger(__name__)


@dataclass
class CollectionGroup:
    """A named region grouping several collections. Never queried itself."""

    title: str
    children: list[QueryableCollection] = field(default_factory=list)
    ref: str = ""


class CollectionRegistry:
    """Ordered top-level entries: standalone collections and groups.

    Groups get ``region:<top-level index>`` refs, collections get
    ``layer:<n>`` refs in the order they are first registered.
    """

    def __init__(self) -> None:
        self._entries: list[QueryableCollection | CollectionGroup] = []
        self._leaf_count = 0

    def register(self, collection: QueryableCollection) -> QueryableCollection:
        """Append a standalone collection (e.g. an uploaded layer)."""
        self._assign_ref(collection)
        self._entries.append(collection)
        logger.info("Registered collection %s (%s)", collection.ref, collection.title)
        return collection

    def add_group(
        self,
        title: str,
        children: list[QueryableCollection],
    ) -> CollectionGroup:
        """Append a region group and assign refs to its children."""
        group = CollectionGroup(
            title=title,
            children=list(children),
            ref=f"region:{len(self._entries)}",
        )
        for child in group.children:
            self._assign_ref(child)
        self._entries.append(group)
        logger.info(
            "Registered group %s (%s) with %d collections",
            group.ref, title, len(group.children),
        )
        return group

    def entries(self) -> list[QueryableCollection | CollectionGroup]:
        return list(self._entries)

    def groups(self) -> list[CollectionGroup]:
        return [e for e in self._entries if isinstance(e, CollectionGroup)]

    def leaves(self) -> list[QueryableCollection]:
        """Every collection, groups flattened, in registry order (may repeat)."""
        leaves: list[QueryableCollection] = []
        for entry in self._entries:
            if isinstance(entry, CollectionGroup):
                leaves.extend(entry.children)
            else:
                leaves.append(entry)
        return leaves

    def find_group(self, name: str) -> CollectionGroup | None:
        """Find a group by ref, top-level index or title (case-insensitive)."""
        key = name.strip()
        if key.isdigit():
            key = f"region:{key}"
        for group in self.groups():
            if group.ref == key or group.title.casefold() == key.casefold():
                return group
        return None

    def find_leaf(self, name: str) -> QueryableCollection | None:
        """Find a collection by ref, leaf index or title (case-insensitive)."""
        key = name.strip()
        if key.isdigit():
            key = f"layer:{key}"
        for leaf in self.leaves():
            if leaf.ref == key:
                return leaf
        for leaf in self.leaves():
            if leaf.title.casefold() == key.casefold():
                return leaf
        return None

    def _assign_ref(self, collection: QueryableCollection) -> None:
        if not collection.ref:
            collection.ref = f"layer:{self._leaf_count}"
            self._leaf_count += 1
