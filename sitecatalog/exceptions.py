"""Error kinds raised by the catalog layer.

Validation and conflict errors are raised before any statement reaches the
database. Storage failures are re-raised as StorageError with the underlying
SQLAlchemy exception chained, so callers can tell "nothing happened" apart
from "the operation failed".
"""
from typing import Any, Optional


class CatalogError(Exception):
    """Base class for catalog errors"""


class ValidationError(CatalogError):
    """Malformed input: negative inventory, unknown shard suffix, missing field"""


class NotFoundError(CatalogError):
    """No live row matches the lookup"""

    def __init__(self, entity: str, identifier: Any):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} not found: {identifier}")


class ConflictError(CatalogError):
    """The write lost against the current state of the row"""


class InsufficientStockError(ConflictError):
    """A decrement asked for more stock than is available"""

    def __init__(self, entity: str, identifier: Any, requested: int, available: Optional[int]):
        self.entity = entity
        self.identifier = identifier
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for {entity} {identifier}: requested {requested}, available {available}"
        )


class StorageError(CatalogError):
    """The database rejected the statement or could not be reached"""
