"""
Recording store wrappers for tests.

RecordingDatabase wraps another database and records every call its
collections receive, so tests can assert how many store round trips an
operation made.
"""

from dataclasses import dataclass, field
from typing import Any, Iterator, Optional

from docmachine.store.base import Collection, Database
from docmachine.store.memory import InMemoryDatabase


@dataclass
class StoreCall:
    """One call received by a collection."""

    collection: str
    method: str
    args: tuple[Any, ...] = field(default_factory=tuple)


class RecordingCollection(Collection):
    """Collection delegating to another collection and recording each call."""

    def __init__(self, inner: Collection, calls: list[StoreCall]):
        super().__init__(inner.name)
        self.inner = inner
        self.calls = calls

    def _record(self, method: str, *args: Any) -> None:
        self.calls.append(StoreCall(self.name, method, args))

    def find_one(self, filter: dict[str, Any], modifiers: Optional[dict[str, Any]] = None) -> Optional[dict[str, Any]]:
        self._record("find_one", filter, modifiers)
        return self.inner.find_one(filter, modifiers)

    def find(self, filter: dict[str, Any], modifiers: Optional[dict[str, Any]] = None) -> Iterator[dict[str, Any]]:
        self._record("find", filter, modifiers)
        return self.inner.find(filter, modifiers)

    def count(self, filter: dict[str, Any]) -> int:
        self._record("count", filter)
        return self.inner.count(filter)

    def remove(self, filter: dict[str, Any]) -> int:
        self._record("remove", filter)
        return self.inner.remove(filter)

    def save(self, document: dict[str, Any]) -> Any:
        self._record("save", document)
        return self.inner.save(document)

    def create_index(self, spec: Any, **options: Any) -> str:
        self._record("create_index", spec, options)
        return self.inner.create_index(spec, **options)


class RecordingDatabase(Database):
    """
    Database recording every collection call.

    Example:
        >>> db = RecordingDatabase()
        >>> User.set_database(db)
        >>> user.destroy()
        >>> db.methods()
        ['remove']
    """

    def __init__(self, inner: Optional[Database] = None):
        self.inner = inner or InMemoryDatabase()
        self.calls: list[StoreCall] = []
        self._collections: dict[str, RecordingCollection] = {}

    def collection(self, name: str) -> RecordingCollection:
        if name not in self._collections:
            self._collections[name] = RecordingCollection(self.inner.collection(name), self.calls)
        return self._collections[name]

    def methods(self, collection: Optional[str] = None) -> list[str]:
        """Names of the recorded calls, in order, skipping index creation."""
        return [
            call.method
            for call in self.calls
            if call.method != "create_index" and (collection is None or call.collection == collection)
        ]

    def reset_calls(self) -> None:
        self.calls.clear()

    def drop(self) -> None:
        self.inner.drop()
        self._collections.clear()
        self.calls.clear()

    def close(self) -> None:
        self.inner.close()
