"""
Document base class for docmachine.

A Document subclass maps a typed record onto documents of one collection.
Its behavior is composed from plugins (see docmachine.plugins); the class
itself only handles configuration and construction.
"""

import logging
from typing import Any, ClassVar, Mapping, Optional, Sequence, Union

from docmachine.exceptions import ArgumentError
from docmachine.plugins import DEFAULT_PLUGINS
from docmachine.plugins.base import Composition, Plugin
from docmachine.store.base import Database


class Document:
    """
    Base class for documents.

    Keys are declared as annotations, optionally with ``Key(...)`` for
    defaults, constraints and indexes.

    Example:
        >>> db = InMemoryDatabase()
        >>> class User(Document, database=db):
        ...     name: str
        ...     email: str = Key(unique=True)
        ...     age: int = Key(0, ge=0)
        ...
        >>> user = User.create(name="Alice", email="alice@example.com")
        >>> User.find(user.id).name
        'Alice'

        Alternative syntax using class attributes:
        >>> class Post(Document):
        ...     database = db
        ...     collection_name = "articles"
        ...     title: str
    """

    # Configuration (inherited by subclasses)
    database: ClassVar[Optional[Database]] = None
    collection_name: ClassVar[Optional[str]] = None
    logger: ClassVar[Optional[logging.Logger]] = None

    # Total time spent in finders, in milliseconds
    query_runtime: ClassVar[float] = 0.0

    __composition__: ClassVar[Composition]

    def __init_subclass__(
        cls,
        database: Optional[Database] = None,
        collection: Optional[str] = None,
        logger: Union[logging.Logger, str, None] = None,
        plugins: Sequence[type[Plugin]] = (),
        **kwargs: Any,
    ):
        """
        Compose the subclass from its parent's plugins.

        Args:
            database: Database to bind (alternative to the ClassVar)
            collection: Collection name (alternative to ``collection_name``)
            logger: Query logger, or the name of one
            plugins: Extra plugins to install after the inherited ones
            **kwargs: Additional arguments passed to parent
        """
        super().__init_subclass__(**kwargs)

        if database is not None:
            cls.database = database
        if collection is not None:
            cls.collection_name = collection
        if logger is not None:
            cls.logger = logger  # type: ignore[assignment]

        cls.__composition__.inherit(cls)
        for plugin in plugins:
            cls.__composition__.install(plugin)

    def __init__(self, attrs: Optional[Mapping[str, Any]] = None, **kwargs: Any):
        """
        Build a new, unsaved document.

        Args:
            attrs: Attribute mapping
            **kwargs: More attributes, overriding ``attrs``
        """
        if attrs is not None and not isinstance(attrs, Mapping):
            raise ArgumentError(f"{type(self).__name__} attributes must be a mapping, got {type(attrs).__name__}")
        type(self).__composition__.initialize(self)
        data = dict(attrs or {})
        data.update(kwargs)
        self.assign(data)

    def __getattr__(self, name: str) -> Any:
        # Only called when normal lookup fails: dynamic (undeclared) attributes
        attributes = self.__dict__.get("_attributes")
        if attributes is not None and name in attributes:
            return attributes[name]
        raise AttributeError(f"'{type(self).__name__}' object has no attribute '{name}'")

    def __getitem__(self, name: str) -> Any:
        return self.read_attribute(name)

    def __setitem__(self, name: str, value: Any) -> None:
        self.write_attribute(name, value)

    @classmethod
    def plugin(cls, plugin: type[Plugin]) -> None:
        """
        Install a plugin on this document type and its existing subclasses.

        Every type is checked before any is changed, so the plugin ends up
        installed on all of them or on none.

        Example:
            >>> User.plugin(SoftDelete)

        Raises:
            PluginDependencyError: If the plugin cannot be composed
        """
        cls.__composition__._check(plugin)
        targets = [cls]
        for model in targets:
            for subclass in model.__subclasses__():
                if subclass not in targets and plugin.name not in subclass.plugin_names():
                    targets.append(subclass)

        for model in targets[1:]:
            model.__composition__._check(plugin)
        for model in targets:
            model.__composition__.install(plugin)

    @classmethod
    def plugins(cls) -> list[type[Plugin]]:
        """Installed plugins, in install order."""
        return list(cls.__composition__.plugins)

    @classmethod
    def plugin_names(cls) -> list[str]:
        return cls.__composition__.plugin_names()


Document.__composition__ = Composition(Document)
for _plugin in DEFAULT_PLUGINS:
    Document.__composition__.install(_plugin)
del _plugin
