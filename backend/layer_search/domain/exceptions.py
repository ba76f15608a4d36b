"""Domain-specific exceptions: framework-independent."""


class EntityNotFoundError(Exception):
    """Raised when a requested entity does not exist."""

    def __init__(self, entity_type: str, entity_id: int | str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with id '{entity_id}' not found")


class SearchValidationError(Exception):
    """Raised before any querying when the criteria cannot form a search.

    Blocks the whole search: no collection is queried.
    """

    def __init__(self, reason: str, criterion_id: int | None = None):
        self.reason = reason
        self.criterion_id = criterion_id
        if criterion_id is None:
            super().__init__(reason)
        else:
            super().__init__(f"Criterion {criterion_id}: {reason}")


class CollectionQueryError(Exception):
    """Raised by a single collection when its query (or field listing) fails.

    Always isolated by the caller: the failing collection contributes nothing.
    """

    def __init__(self, ref: str, message: str, status_code: int | None = None):
        self.ref = ref
        self.message = message
        self.status_code = status_code
        if status_code is None:
            super().__init__(f"[{ref}] {message}")
        else:
            super().__init__(f"[{ref}] {status_code}: {message}")


class ExportError(Exception):
    """Raised when an export is requested for an empty aggregate."""

    def __init__(self, message: str = "No search results to export"):
        self.message = message
        super().__init__(message)


class CatalogError(Exception):
    """Raised when a layer catalog or an uploaded layer payload is malformed."""

    def __init__(self, source: str, message: str):
        self.source = source
        self.message = message
        super().__init__(f"{source}: {message}")
