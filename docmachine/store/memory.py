"""
In-memory store for docmachine.

Simple dict-based storage for testing and examples without requiring
an external document store. Understands the mongo-style criteria the
query compiler produces.
"""

import re
from copy import deepcopy
from datetime import datetime
from typing import Any, Iterator, Optional
from uuid import uuid4

from docmachine.store.base import (
    Collection,
    Database,
    StoreError,
    UnsupportedOperatorError,
)


class DuplicateKeyError(StoreError):
    """Unique index violation."""
    pass


_MISSING = object()


def _lookup(document: dict[str, Any], path: str) -> Any:
    """Resolve a dotted path inside a document, or _MISSING."""
    value: Any = document
    for part in path.split("."):
        if isinstance(value, dict) and part in value:
            value = value[part]
        else:
            return _MISSING
    return value


def _compare(value: Any, operator: str, target: Any) -> bool:
    if value is _MISSING or value is None:
        return False
    try:
        if operator == "$gt":
            return bool(value > target)
        if operator == "$gte":
            return bool(value >= target)
        if operator == "$lt":
            return bool(value < target)
        return bool(value <= target)
    except TypeError:
        # Mismatched types never match, as in the document stores we model
        return False


def _equals(value: Any, target: Any) -> bool:
    if value is _MISSING:
        return target is None
    if isinstance(value, list) and not isinstance(target, list):
        return target in value
    return bool(value == target)


def _matches_operator(value: Any, operator: str, target: Any, expression: dict[str, Any]) -> bool:
    """Check a single operator expression against a field value."""
    if operator == "$eq":
        return _equals(value, target)
    elif operator == "$ne":
        return not _equals(value, target)
    elif operator in ("$gt", "$gte", "$lt", "$lte"):
        return _compare(value, operator, target)
    elif operator == "$in":
        return any(_equals(value, item) for item in target)
    elif operator == "$nin":
        return not any(_equals(value, item) for item in target)
    elif operator == "$exists":
        return (value is not _MISSING) == bool(target)
    elif operator == "$regex":
        if not isinstance(value, str):
            return False
        flags = re.IGNORECASE if "i" in expression.get("$options", "") else 0
        return re.search(target, value, flags) is not None
    elif operator == "$options":
        # Consumed by $regex
        return True
    elif operator == "$all":
        return isinstance(value, list) and all(item in value for item in target)
    elif operator == "$size":
        return isinstance(value, list) and len(value) == target
    elif operator == "$not":
        return not _matches_field(value, target)
    raise UnsupportedOperatorError(f"Unsupported query operator: {operator}")


def _is_operator_expression(condition: Any) -> bool:
    return isinstance(condition, dict) and bool(condition) and all(
        isinstance(key, str) and key.startswith("$") for key in condition
    )


def _matches_field(value: Any, condition: Any) -> bool:
    if _is_operator_expression(condition):
        return all(
            _matches_operator(value, operator, target, condition)
            for operator, target in condition.items()
        )
    return _equals(value, condition)


def matches(document: dict[str, Any], criteria: dict[str, Any]) -> bool:
    """
    Check if a document matches mongo-style criteria.

    Args:
        document: Stored document
        criteria: Filter criteria

    Returns:
        True if every condition matches

    Example:
        >>> matches({"age": 30}, {"age": {"$gte": 18}})
        True
    """
    for key, condition in criteria.items():
        if key == "$and":
            if not all(matches(document, sub) for sub in condition):
                return False
        elif key == "$or":
            if not any(matches(document, sub) for sub in condition):
                return False
        elif key == "$nor":
            if any(matches(document, sub) for sub in condition):
                return False
        elif key.startswith("$"):
            raise UnsupportedOperatorError(f"Unsupported top-level operator: {key}")
        elif not _matches_field(_lookup(document, key), condition):
            return False
    return True


# Cross-type order: null, numbers, strings, objects, arrays, binary,
# booleans, dates, then anything else grouped by type name.
def _sort_value(value: Any) -> tuple[int, str, Any]:
    if value is _MISSING or value is None:
        return (0, "", None)
    if isinstance(value, bool):
        return (6, "", value)
    if isinstance(value, (int, float)):
        return (1, "", value)
    if isinstance(value, str):
        return (2, "", value)
    if isinstance(value, dict):
        return (3, "", tuple((name, _sort_value(item)) for name, item in value.items()))
    if isinstance(value, (list, tuple)):
        return (4, "", tuple(_sort_value(item) for item in value))
    if isinstance(value, bytes):
        return (5, "", value)
    if isinstance(value, datetime):
        return (7, "", value)
    return (8, type(value).__name__, repr(value))


def _sort_key(field: str):
    def key(document: dict[str, Any]) -> tuple[int, str, Any]:
        return _sort_value(_lookup(document, field))
    return key


def _project(document: dict[str, Any], fields: Any) -> dict[str, Any]:
    if isinstance(fields, dict):
        include = [name for name, flag in fields.items() if flag]
        exclude = [name for name, flag in fields.items() if not flag]
        if include:
            fields = include
        else:
            return {k: v for k, v in document.items() if k not in exclude}
    projected = {"_id": document.get("_id")}
    for name in fields:
        if name in document:
            projected[name] = document[name]
    return projected


class InMemoryCollection(Collection):
    """
    Collection stored in a Python dict.

    Data is lost when the process ends. Useful for testing and examples.

    Example:
        >>> users = InMemoryCollection("users")
        >>> user_id = users.save({"name": "Alice"})
        >>> users.find_one({"_id": user_id})["name"]
        'Alice'
    """

    def __init__(self, name: str):
        super().__init__(name)
        # Storage: {_id: document}
        self._documents: dict[Any, dict[str, Any]] = {}
        self.indexes: dict[str, tuple[Any, dict[str, Any]]] = {}

    def _select(self, filter: dict[str, Any], modifiers: Optional[dict[str, Any]]) -> Iterator[dict[str, Any]]:
        modifiers = modifiers or {}
        # Snapshot so callers may remove documents while streaming
        candidates = list(self._documents.values())

        sort = modifiers.get("sort")
        if sort:
            candidates = [doc for doc in candidates if matches(doc, filter)]
            for field, direction in reversed(list(sort)):
                candidates.sort(key=_sort_key(field), reverse=direction < 0)
            selected: Iterator[dict[str, Any]] = iter(candidates)
        else:
            selected = (doc for doc in candidates if matches(doc, filter))

        skip = modifiers.get("skip") or 0
        limit = modifiers.get("limit") or 0
        fields = modifiers.get("fields")

        for position, document in enumerate(selected):
            if position < skip:
                continue
            if limit and position >= skip + limit:
                break
            result = deepcopy(document)
            if fields:
                result = _project(result, fields)
            yield result

    def find_one(
        self,
        filter: dict[str, Any],
        modifiers: Optional[dict[str, Any]] = None,
    ) -> Optional[dict[str, Any]]:
        """Fetch the first matching document."""
        modifiers = dict(modifiers or {})
        modifiers["limit"] = 1
        return next(self._select(filter, modifiers), None)

    def find(
        self,
        filter: dict[str, Any],
        modifiers: Optional[dict[str, Any]] = None,
    ) -> Iterator[dict[str, Any]]:
        """Lazily iterate matching documents."""
        return self._select(filter, modifiers)

    def count(self, filter: dict[str, Any]) -> int:
        """Count matching documents."""
        if not filter:
            return len(self._documents)
        return sum(1 for doc in self._documents.values() if matches(doc, filter))

    def remove(self, filter: dict[str, Any]) -> int:
        """Remove matching documents."""
        doomed = [key for key, doc in self._documents.items() if matches(doc, filter)]
        for key in doomed:
            del self._documents[key]
        return len(doomed)

    def save(self, document: dict[str, Any]) -> Any:
        """Insert or replace a document, assigning an _id if missing."""
        stored = deepcopy(document)
        if stored.get("_id") is None:
            stored["_id"] = uuid4().hex
        self._check_unique(stored)
        self._documents[stored["_id"]] = stored
        return stored["_id"]

    def _check_unique(self, document: dict[str, Any]) -> None:
        for name, (spec, options) in self.indexes.items():
            if not options.get("unique"):
                continue
            fields = [field for field, _ in spec]
            values = [_lookup(document, field) for field in fields]
            if options.get("sparse") and all(value is _MISSING for value in values):
                continue
            for other in self._documents.values():
                if other["_id"] == document["_id"]:
                    continue
                if [_lookup(other, field) for field in fields] == values:
                    raise DuplicateKeyError(
                        f"Duplicate key for index {name} in {self.name}: {values}"
                    )

    def create_index(self, spec: Any, **options: Any) -> str:
        """Record an index. Unique indexes are enforced on save."""
        if isinstance(spec, str):
            spec = [(spec, 1)]
        spec = [tuple(part) for part in spec]
        name = options.get("name") or "_".join(f"{field}_{direction}" for field, direction in spec)
        self.indexes[name] = (spec, options)
        return name

    def __len__(self) -> int:
        return len(self._documents)


class InMemoryDatabase(Database):
    """
    In-memory database holding InMemoryCollection instances.

    Example:
        >>> db = InMemoryDatabase()
        >>> class User(Document, database=db):
        ...     name: str
    """

    def __init__(self, name: str = "memory"):
        self.name = name
        self._collections: dict[str, InMemoryCollection] = {}

    def collection(self, name: str) -> InMemoryCollection:
        """Get a collection by name, creating it if needed."""
        if name not in self._collections:
            self._collections[name] = InMemoryCollection(name)
        return self._collections[name]

    def collection_names(self) -> list[str]:
        """Names of collections created so far."""
        return list(self._collections)

    def drop(self) -> None:
        """Drop all collections."""
        self._collections.clear()
