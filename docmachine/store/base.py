"""
Store client interface for docmachine.

Defines the minimum surface a document store client must expose. The
document layer only talks to a store through these methods; wire protocols,
connection handling and retries belong to the concrete client.
"""

from abc import ABC, abstractmethod
from typing import Any, Iterator, Optional


class Collection(ABC):
    """
    Abstract base class for a named collection of documents.

    Documents are plain dicts keyed by field name. Every document has an
    identity stored under ``_id``.
    """

    def __init__(self, name: str):
        """
        Initialize collection.

        Args:
            name: Collection name
        """
        self.name = name

    @abstractmethod
    def find_one(
        self,
        filter: dict[str, Any],
        modifiers: Optional[dict[str, Any]] = None,
    ) -> Optional[dict[str, Any]]:
        """
        Fetch a single document matching the filter.

        Args:
            filter: Store criteria (e.g. {"_id": "abc"})
            modifiers: Query modifiers (sort, skip, fields, ...)

        Returns:
            The first matching document, or None
        """
        pass

    @abstractmethod
    def find(
        self,
        filter: dict[str, Any],
        modifiers: Optional[dict[str, Any]] = None,
    ) -> Iterator[dict[str, Any]]:
        """
        Fetch all documents matching the filter.

        The result is a lazy, finite iterator. It cannot be restarted.

        Args:
            filter: Store criteria
            modifiers: Query modifiers (sort, skip, limit, fields, ...)

        Returns:
            Iterator over matching documents
        """
        pass

    @abstractmethod
    def count(self, filter: dict[str, Any]) -> int:
        """
        Count documents matching the filter.

        Args:
            filter: Store criteria

        Returns:
            Number of matching documents
        """
        pass

    @abstractmethod
    def remove(self, filter: dict[str, Any]) -> int:
        """
        Remove all documents matching the filter.

        Args:
            filter: Store criteria

        Returns:
            Number of removed documents
        """
        pass

    @abstractmethod
    def save(self, document: dict[str, Any]) -> Any:
        """
        Insert or replace a document.

        If the document has no ``_id``, the store assigns one.

        Args:
            document: Document to store

        Returns:
            The identity of the stored document
        """
        pass

    @abstractmethod
    def create_index(self, spec: Any, **options: Any) -> str:
        """
        Create an index on the collection.

        Args:
            spec: Field name, or list of (field, direction) pairs
            **options: Store-specific index options (unique, sparse, ...)

        Returns:
            Index name
        """
        pass


class Database(ABC):
    """
    Abstract base class for a document database.

    Hands out collections by name.
    """

    @abstractmethod
    def collection(self, name: str) -> Collection:
        """
        Get a collection by name, creating it if needed.

        Args:
            name: Collection name

        Returns:
            Collection instance
        """
        pass

    def __getitem__(self, name: str) -> Collection:
        return self.collection(name)

    def drop(self) -> None:
        """
        Drop all collections.

        Optional method for stores that support it.
        """
        pass

    def close(self) -> None:
        """
        Close connections and cleanup resources.

        Optional method for stores with persistent connections.
        """
        pass


class StoreError(Exception):
    """Base exception for store client errors."""
    pass


class UnsupportedOperatorError(StoreError):
    """Query uses an operator the store does not understand."""
    pass
