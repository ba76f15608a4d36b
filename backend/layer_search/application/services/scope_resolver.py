"""Scope resolver: expands a scope selector into concrete collections.

Selector grammar::

    all | region:<name or index> | collection:<ref, index or title>
"""

import logging
from dataclasses import dataclass

from layer_search.application.interfaces import QueryableCollection
from layer_search.application.services.collection_registry import CollectionRegistry

logger = logging.getLogger(__name__)

SCOPE_ALL = "all"


@dataclass(frozen=True)
class ScopeOption:
    """A selectable search scope."""

    value: str
    title: str
    kind: str  # "all" | "region" | "collection"


class ScopeResolver:
    """Resolves scope selectors against a CollectionRegistry."""

    def __init__(self, registry: CollectionRegistry):
        self._registry = registry

    def resolve(self, scope: str) -> list[QueryableCollection]:
        """Return the ordered, deduplicated collections named by ``scope``.

        Unknown names resolve to an empty list rather than an error.
        """
        selector = (scope or "").strip()
        kind, _, name = selector.partition(":")
        kind = kind.lower()

        if selector.lower() == SCOPE_ALL:
            candidates = self._registry.leaves()
        elif kind == "region":
            group = self._registry.find_group(name)
            candidates = list(group.children) if group else []
        elif kind == "collection":
            leaf = self._registry.find_leaf(name)
            candidates = [leaf] if leaf else []
        else:
            candidates = []

        resolved = _dedupe(candidates)
        if not resolved:
            logger.info("Scope %r resolved to no collections", scope)
        else:
            logger.debug(
                "Scope %r resolved to %s", scope, [c.ref for c in resolved]
            )
        return resolved

    def resolve_refs(self, scope: str) -> list[str]:
        return [c.ref for c in self.resolve(scope)]

    def list_scopes(self) -> list[ScopeOption]:
        """``all``, then every region group, then every collection."""
        options = [ScopeOption(value=SCOPE_ALL, title="All layers", kind="all")]
        options.extend(
            ScopeOption(value=group.ref, title=group.title, kind="region")
            for group in self._registry.groups()
        )
        options.extend(
            ScopeOption(value=f"collection:{leaf.ref}", title=leaf.title, kind="collection")
            for leaf in _dedupe(self._registry.leaves())
        )
        return options


def _dedupe(collections: list[QueryableCollection]) -> list[QueryableCollection]:
    """Keep the first occurrence of each collection (by identity and by ref)."""
    seen_ids: set[int] = set()
    seen_refs: set[str] = set()
    result: list[QueryableCollection] = []
    for collection in collections:
        if id(collection) in seen_ids or (collection.ref and collection.ref in seen_refs):
            continue
        seen_ids.add(id(collection))
        if collection.ref:
            seen_refs.add(collection.ref)
        result.append(collection)
    return result
