"""
Persistence plugin: binds a document type to a collection in a database.
"""

import logging
import re
import weakref
from typing import Any

from docmachine.exceptions import ConfigurationError
from docmachine.plugins.base import Plugin
from docmachine.plugins.hooks import class_method
from docmachine.store.base import Collection, Database

logger = logging.getLogger(__name__)


def collection_name_for(class_name: str) -> str:
    """
    Default collection name for a document class.

    Example:
        >>> collection_name_for("BlogPost")
        'blog_posts'
        >>> collection_name_for("Category")
        'categories'
    """
    snake = re.sub(r"(?<!^)(?=[A-Z])", "_", class_name).lower()
    if snake.endswith(("ss", "us", "x", "z", "ch", "sh")):
        return snake + "es"
    if snake.endswith("s"):
        # Already plural
        return snake
    if snake.endswith("y") and not snake.endswith(("ay", "ey", "oy", "uy")):
        return snake[:-1] + "ies"
    return snake + "s"


class Persistence(Plugin):
    """
    Collection binding.

    Subclasses share their parent's collection unless they name their own.
    """

    name = "persistence"
    requires = ("keys",)

    @staticmethod
    def configure(model: Any) -> None:
        if "collection_name" not in vars(model):
            inherited = getattr(model, "collection_name", None)
            if inherited is None and model.__mro__[1] is not object:
                inherited = collection_name_for(model.__name__)
            model.collection_name = inherited
        model._indexed_collections = weakref.WeakSet()

    @class_method
    def set_collection_name(cls, name: str) -> None:
        cls.collection_name = name

    @class_method
    def set_database(cls, database: Database) -> None:
        cls.database = database
        cls._indexed_collections = weakref.WeakSet()

    @class_method
    def collection(cls) -> Collection:
        """
        The store collection for this document type.

        Declared indexes (``Key(index=True)``) are created the first time each
        collection object is used, so a dropped and recreated collection gets
        them again.

        Raises:
            ConfigurationError: If no database is bound
        """
        if cls.database is None:
            raise ConfigurationError(
                f"No database configured for {cls.__name__}. "
                f"Set {cls.__name__}.database = YourDatabase() or pass database=YourDatabase() to class definition."
            )
        if not cls.collection_name:
            raise ConfigurationError(f"No collection name configured for {cls.__name__}")

        collection = cls.database.collection(cls.collection_name)
        if collection not in cls._indexed_collections:
            cls._indexed_collections.add(collection)
            for name, key in cls.keys().items():
                if key.indexed:
                    options = {"unique": True} if key.unique else {}
                    if key.sparse:
                        options["sparse"] = True
                    logger.debug(f"Ensuring index on {cls.collection_name}.{name}")
                    collection.create_index(name, **options)
        return collection

    @class_method
    def ensure_index(cls, spec: Any, **options: Any) -> str:
        """
        Create an index on the collection.

        Example:
            >>> User.ensure_index([("last_name", 1), ("first_name", 1)], unique=True)
        """
        return cls.collection().create_index(spec, **options)

    @class_method
    def embeddable(cls) -> bool:
        return False
