"""Conditional data store contract shared by the domain services.

Filters map a column to a value: a scalar means equality, a list/tuple/set
means membership, and ``None`` means ``IS NULL``. ``update`` returns the rows it
changed; an empty list means the filter matched nothing, which is how callers
implement compare-and-swap.
"""
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol, Sequence


class StoreError(Exception):
    """Store call failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class StoreConflictError(StoreError):
    """Insert violated a uniqueness constraint."""


class StorePermissionError(StoreError):
    """Write was rejected by row-level security."""


@dataclass(frozen=True)
class Order:
    """Sort key for find()."""
    column: str
    descending: bool = False


Filters = Mapping[str, Any]
Row = dict[str, Any]


class DataStore(Protocol):
    """Filtered read, insert and conditional update over named collections."""

    async def find(
        self,
        collection: str,
        filters: Filters,
        *,
        order: Sequence[Order] = (),
        limit: Optional[int] = None,
    ) -> list[Row]:
        """Return rows matching every filter."""
        ...

    async def insert(self, collection: str, row: Mapping[str, Any]) -> Row:
        """Insert one row and return it as stored."""
        ...

    async def update(self, collection: str, filters: Filters, patch: Mapping[str, Any]) -> list[Row]:
        """Apply patch to matching rows; return the updated rows (empty on no match)."""
        ...
