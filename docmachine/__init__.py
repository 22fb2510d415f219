"""
docmachine - ActiveRecord-style document mapper for Python.

Maps typed records onto documents of a schemaless document store, with
behavior composed from plugins: keys, persistence, lifecycle, dirty
tracking, validations, callbacks, finders and query logging.
"""

from docmachine.document import Document
from docmachine.exceptions import (
    ArgumentError,
    ConfigurationError,
    DocMachineError,
    DocumentDestroyed,
    DocumentNotFound,
    DocumentNotValid,
    PluginDependencyError,
)
from docmachine.fields import Key
from docmachine.plugins import Plugin, ReloadAware, class_method, instance_method, instance_property
from docmachine.plugins.hooks import (
    after_create,
    after_destroy,
    after_save,
    after_update,
    after_validation,
    before_create,
    before_destroy,
    before_save,
    before_update,
    before_validation,
    validate,
)
from docmachine.query import QueryOptions, compile_query, invert_order
from docmachine.store import Collection, Database, InMemoryDatabase, StoreError

__version__ = "0.1.0"

__all__ = [
    "Document",
    "Key",
    "Plugin",
    "ReloadAware",
    "class_method",
    "instance_method",
    "instance_property",
    "before_validation",
    "after_validation",
    "before_save",
    "after_save",
    "before_create",
    "after_create",
    "before_update",
    "after_update",
    "before_destroy",
    "after_destroy",
    "validate",
    "QueryOptions",
    "compile_query",
    "invert_order",
    "Collection",
    "Database",
    "InMemoryDatabase",
    "StoreError",
    "DocMachineError",
    "DocumentNotFound",
    "DocumentNotValid",
    "DocumentDestroyed",
    "ArgumentError",
    "PluginDependencyError",
    "ConfigurationError",
]
