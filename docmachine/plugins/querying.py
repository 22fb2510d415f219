"""
Querying plugin: the finder facade of a document type.

Every read goes through find_one() or find_many(), so wrapping those two
(as the query logger does) covers every finder.
"""

from typing import Any, Callable, Iterable, Iterator, Mapping, Optional, Union

from docmachine.exceptions import ArgumentError, DocumentNotFound
from docmachine.plugins.base import Plugin
from docmachine.plugins.hooks import class_method
from docmachine.query.compiler import CompiledQuery, compile_query, invert_order, parse_order
from docmachine.query.options import QueryOptions

Options = Union[QueryOptions, Mapping[str, Any], None]

_REMOVED_FINDERS = ("first", "last", "all")


def _flatten_ids(ids: Iterable[Any]) -> list[Any]:
    """Flatten one level of id lists, dropping None and duplicates (order kept)."""
    flat: list[Any] = []
    for value in ids:
        values = value if isinstance(value, (list, tuple, set, frozenset)) else [value]
        for item in values:
            if item is not None and item not in flat:
                flat.append(item)
    return flat


def _is_many(ids: tuple[Any, ...]) -> bool:
    return len(ids) > 1 or isinstance(ids[0], (list, tuple, set, frozenset))


def _assert_no_first_last_or_all(model: type, ids: tuple[Any, ...]) -> None:
    if ids and isinstance(ids[0], str) and ids[0] in _REMOVED_FINDERS:
        raise ArgumentError(
            f"{model.__name__}.find({ids[0]!r}) is no longer supported, "
            f"use {model.__name__}.{ids[0]}() instead."
        )


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, Mapping, list, tuple, set)):
        return len(value) == 0
    return False


class Querying(Plugin):
    """
    Finders, counters and bulk mutations.

    Example:
        >>> User.create({"name": "Alice", "age": 30}, {"name": "Bob", "age": 20})
        [<User ...>, <User ...>]
        >>> User.first(conditions={"age__gte": 21}).name
        'Alice'
        >>> User.last(order="age asc").name
        'Alice'
        >>> User.count(conditions={"name": ["Alice", "Bob"]})
        2
    """

    name = "querying"
    requires = ("persistence", "lifecycle")

    # Canonical finders

    @class_method
    def to_query(cls, options: Options = None, **kwargs: Any) -> CompiledQuery:
        """Compile options into (criteria, modifiers)."""
        return compile_query(options, **kwargs)

    @class_method
    def to_criteria(cls, options: Options = None, **kwargs: Any) -> dict[str, Any]:
        return compile_query(options, **kwargs).criteria

    @class_method
    def find_one(cls, options: Options = None, **kwargs: Any) -> Optional[Any]:
        """
        Fetch the first document matching the options.

        Returns:
            A persisted document, or None
        """
        criteria, modifiers = compile_query(options, **kwargs)
        document = cls.collection().find_one(criteria, modifiers)
        if document is None:
            return None
        return cls.load(document)

    @class_method
    def find_many(cls, options: Options = None, **kwargs: Any) -> list[Any]:
        """Fetch every document matching the options."""
        criteria, modifiers = compile_query(options, **kwargs)
        return [cls.load(document) for document in cls.collection().find(criteria, modifiers)]

    @class_method
    def find_each(
        cls,
        options: Options = None,
        visitor: Optional[Callable[[Any], Any]] = None,
        **kwargs: Any,
    ) -> Optional[Iterator[Any]]:
        """
        Stream matching documents one at a time.

        Without a visitor, returns a lazy iterator (not restartable). With a
        visitor, calls it for each document and returns None.

        Example:
            >>> for user in User.find_each(conditions={"active": True}):
            ...     send_newsletter(user)
            >>> User.find_each(order="name", visitor=print)
        """
        criteria, modifiers = compile_query(options, **kwargs)
        documents = (cls.load(document) for document in cls.collection().find(criteria, modifiers))
        if visitor is None:
            return documents
        for document in documents:
            visitor(document)
        return None

    @class_method
    def count(cls, options: Options = None, **kwargs: Any) -> int:
        """Number of documents matching the options' criteria."""
        return cls.collection().count(compile_query(options, **kwargs).criteria)

    @class_method
    def exists(cls, options: Options = None, **kwargs: Any) -> bool:
        return cls.count(options, **kwargs) != 0

    # Derived finders

    @class_method
    def find(cls, *ids: Any, **options: Any) -> Any:
        """
        Find by id.

        Args:
            *ids: One id, several ids, or a list of ids
            **options: Additional query options

        Returns:
            One document (or None) for a single id, a list for several ids

        Example:
            >>> User.find(user_id)
            >>> User.find(id1, id2, order="name")
            >>> User.find([id1, id2])
        """
        _assert_no_first_last_or_all(cls, ids)
        if not ids:
            return None
        if _is_many(ids):
            return cls.find_many(QueryOptions.parse(options, ids=_flatten_ids(ids)))
        if ids[0] is None:
            return None
        return cls.find_one(QueryOptions.parse(options, ids=ids[0]))

    @class_method
    def find_or_raise(cls, *ids: Any, **options: Any) -> Any:
        """
        Like find(), but raise unless every requested id is found.

        Raises:
            DocumentNotFound: If no id is given, or any id does not resolve
        """
        _assert_no_first_last_or_all(cls, ids)
        collection = cls.collection().name
        if not ids:
            raise DocumentNotFound(f"Couldn't find {cls.__name__} without an ID", collection=collection)

        if _is_many(ids):
            wanted = _flatten_ids(ids)
            documents = cls.find_many(QueryOptions.parse(options, ids=wanted))
            if len(documents) != len(wanted):
                listed = ", ".join(repr(i) for i in wanted)
                raise DocumentNotFound(
                    f"Couldn't find all of the {cls.__name__} ids ({listed}): "
                    f"found {len(documents)}, expected {len(wanted)}",
                    ids=wanted,
                    collection=collection,
                    found=len(documents),
                    expected=len(wanted),
                )
            return documents

        document = cls.find(ids[0], **options)
        if document is None:
            raise DocumentNotFound(
                f"Document match {ids[0]!r} does not exist in {collection} collection",
                ids=[ids[0]],
                collection=collection,
                found=0,
                expected=1,
            )
        return document

    @class_method
    def find_by_id(cls, id: Any) -> Optional[Any]:
        return cls.find(id)

    @class_method
    def first(cls, options: Options = None, **kwargs: Any) -> Optional[Any]:
        return cls.find_one(options, **kwargs)

    @class_method
    def last(cls, options: Options = None, **kwargs: Any) -> Optional[Any]:
        """
        The last document for the given order.

        Raises:
            ArgumentError: If no order is given, or the order names no field
        """
        query = QueryOptions.parse(options, **kwargs)
        if not parse_order(query.order):
            raise ArgumentError("order option must be provided when using last")
        return cls.find_one(query.merge(order=invert_order(query.order)))

    @class_method
    def all(cls, options: Options = None, **kwargs: Any) -> list[Any]:
        return cls.find_many(options, **kwargs)

    @class_method
    def first_or_create(cls, attrs: Mapping[str, Any]) -> Any:
        """
        First document matching ``attrs``, or a new saved one.

        Only declared keys of ``attrs`` are used to build the new document.
        """
        return cls.first(conditions=dict(attrs)) or cls.create(
            {name: value for name, value in attrs.items() if cls.has_key(name)}
        )

    @class_method
    def first_or_new(cls, attrs: Mapping[str, Any]) -> Any:
        """Like first_or_create(), without saving."""
        return cls.first(conditions=dict(attrs)) or cls(
            {name: value for name, value in attrs.items() if cls.has_key(name)}
        )

    # Bulk mutations

    @class_method
    def create(cls, *docs: Any, **attrs: Any) -> Any:
        """
        Build and save one document per attribute mapping.

        Keyword arguments are the attributes of one more document.

        Example:
            >>> User.create(name="Alice")
            >>> User.create([{"name": "Bob"}, {"name": "Carol"}])

        Returns:
            The document when one was given, otherwise a list
        """
        return Querying._initialize_each(cls, docs + ((attrs,) if attrs else ()), lambda document: document.save())

    @class_method
    def create_or_raise(cls, *docs: Any, **attrs: Any) -> Any:
        """Like create(), with save_or_raise()."""
        return Querying._initialize_each(cls, docs + ((attrs,) if attrs else ()), lambda document: document.save_or_raise())

    @staticmethod
    def _initialize_each(model: Any, docs: tuple[Any, ...], save: Callable[[Any], Any]) -> Any:
        attribute_sets: list[Any] = []
        for doc in docs or ({},):
            attribute_sets.extend(doc if isinstance(doc, (list, tuple)) else [doc])

        instances = []
        for attrs in attribute_sets:
            instance = model(attrs)
            save(instance)
            instances.append(instance)
        return instances[0] if len(instances) == 1 else instances

    @class_method
    def update(cls, *args: Any) -> Any:
        """
        Update documents by id.

        Example:
            >>> User.update(user_id, {"name": "Alice"})
            <User ...>
            >>> User.update({id1: {"age": 31}, id2: {"age": 21}})
            [<User ...>, <User ...>]

        Raises:
            ArgumentError: If the arguments are malformed (before any store call)
        """
        if len(args) == 1:
            updates = args[0]
            if not isinstance(updates, Mapping):
                raise ArgumentError("Updating multiple documents takes 1 argument and it must be a mapping")
            pairs = list(updates.items())
        elif len(args) == 2:
            pairs = [(args[0], args[1])]
        else:
            raise ArgumentError(f"update() takes an id and a mapping of attributes, or one mapping ({len(args)} given)")

        for id, attrs in pairs:
            if _is_blank(id) or not isinstance(attrs, Mapping) or not attrs:
                raise ArgumentError("Updating a single document requires an id and a mapping of attributes")

        instances = []
        for id, attrs in pairs:
            document = cls.find_or_raise(id)
            document.update_attributes(attrs)
            instances.append(document)
        return instances if len(args) == 1 else instances[0]

    @class_method
    def delete(cls, *ids: Any) -> int:
        """Remove documents by id without loading them (no callbacks)."""
        return cls.collection().remove(compile_query(ids=_flatten_ids(ids)).criteria)

    @class_method
    def delete_all(cls, options: Options = None, **kwargs: Any) -> int:
        """Remove every matching document in one store call (no callbacks)."""
        return cls.collection().remove(compile_query(options, **kwargs).criteria)

    @class_method
    def destroy(cls, *ids: Any) -> list[Any]:
        """Load each document strictly and destroy it (callbacks run)."""
        documents = cls.find_or_raise(_flatten_ids(ids))
        for document in documents:
            document.destroy()
        return documents

    @class_method
    def destroy_all(cls, options: Options = None, **kwargs: Any) -> None:
        """Stream matching documents and destroy each one (callbacks run)."""
        cls.find_each(options, visitor=lambda document: document.destroy(), **kwargs)
