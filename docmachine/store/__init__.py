"""Store client interface and implementations for docmachine."""

from docmachine.store.base import (
    Collection,
    Database,
    StoreError,
    UnsupportedOperatorError,
)
from docmachine.store.memory import (
    InMemoryCollection,
    InMemoryDatabase,
    DuplicateKeyError,
)

__all__ = [
    "Collection",
    "Database",
    "StoreError",
    "UnsupportedOperatorError",
    "InMemoryCollection",
    "InMemoryDatabase",
    "DuplicateKeyError",
]
