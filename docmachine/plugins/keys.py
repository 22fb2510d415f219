"""
Keys plugin: the key schema of a document type.

Collects annotated keys from the document class and its mixins, compiles
them into a pydantic model used for validation, and exposes each key as
a typecasting attribute.
"""

import inspect
import typing
from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, create_model
from pydantic_core import PydanticUndefined

from docmachine.exceptions import ArgumentError
from docmachine.fields import KeyInfo, KeyProperty
from docmachine.plugins.base import Plugin
from docmachine.plugins.hooks import class_method, instance_method, instance_property

IDENTITY_KEY = "_id"

# Class attributes of Document that are configuration, not keys
RESERVED_NAMES = frozenset({"database", "collection_name", "logger", "query_runtime"})


def _is_class_var(annotation: Any) -> bool:
    if isinstance(annotation, str):
        return annotation.startswith(("ClassVar", "typing.ClassVar"))
    return annotation is ClassVar or typing.get_origin(annotation) is ClassVar


def _declared_keys(klass: type) -> list[KeyInfo]:
    """Keys annotated directly on ``klass``."""
    annotations = inspect.get_annotations(klass)
    if not annotations:
        return []
    try:
        hints = typing.get_type_hints(klass, include_extras=True)
    except (NameError, TypeError):
        # Unresolvable forward references are treated as Any
        hints = {}

    keys = []
    for name, raw in annotations.items():
        annotation = hints.get(name, raw)
        if _is_class_var(annotation):
            continue
        if name == "id":
            name = IDENTITY_KEY
        if name in RESERVED_NAMES or (name.startswith("_") and name != IDENTITY_KEY):
            continue
        if isinstance(annotation, str):
            annotation = Any
        default = vars(klass).get("id" if name == IDENTITY_KEY else name, PydanticUndefined)
        if name == IDENTITY_KEY and default is PydanticUndefined:
            default = None
        keys.append(KeyInfo.build(name, annotation, default))
    return keys


def _build_schema(model: type, keys: dict[str, KeyInfo]) -> type[BaseModel]:
    definitions = {
        name: key.schema_definition()
        for name, key in keys.items()
        if name != IDENTITY_KEY
    }
    return create_model(  # type: ignore[call-overload, no-any-return]
        f"{model.__name__}Schema",
        __config__=ConfigDict(extra="allow", arbitrary_types_allowed=True),
        **definitions,
    )


def _install_accessor(model: type, name: str) -> None:
    setattr(model, name, KeyProperty(name))
    if name == IDENTITY_KEY:
        setattr(model, "id", KeyProperty(IDENTITY_KEY))


class Keys(Plugin):
    """
    Key schema and attribute access.

    Example:
        >>> class User(Document):
        ...     name: str
        ...     age: int = Key(0, ge=0)
        >>> User.keys()
        {'_id': KeyInfo(...), 'name': KeyInfo(...), 'age': KeyInfo(...)}
        >>> User(age="42").age
        42
    """

    name = "keys"

    @staticmethod
    def configure(model: type) -> None:
        keys: dict[str, KeyInfo] = {}
        parent_keys: Optional[dict[str, KeyInfo]] = None
        for base in model.__mro__[1:]:
            if "_keys" in vars(base):
                parent_keys = vars(base)["_keys"]
                break

        if parent_keys is None:
            keys[IDENTITY_KEY] = KeyInfo.build(IDENTITY_KEY, Any, None)
        else:
            keys.update(parent_keys)

        # Mixins are plain classes in the MRO; their annotations become keys too
        declared: list[KeyInfo] = []
        for klass in reversed(model.__mro__):
            if klass is object or "_keys" in vars(klass):
                continue
            declared.extend(_declared_keys(klass))

        composition = vars(model).get("__composition__")
        for key in declared:
            if composition is not None and composition.has_operation(key.name):
                raise ArgumentError(f"Key '{key.name}' of {model.__name__} conflicts with an operation of the same name")
            keys[key.name] = key

        model._keys = keys  # type: ignore[attr-defined]
        model.__schema__ = _build_schema(model, keys)  # type: ignore[attr-defined]
        for key in declared:
            _install_accessor(model, key.name)
        if parent_keys is None:
            _install_accessor(model, IDENTITY_KEY)

    @staticmethod
    def initialize(instance: Any) -> None:
        attributes: dict[str, Any] = {}
        for name, key in type(instance)._keys.items():
            if not key.required:
                attributes[name] = key.default()
        instance._attributes = attributes

    @class_method
    def keys(cls) -> dict[str, KeyInfo]:
        """Declared keys, in declaration order, including _id."""
        return dict(cls._keys)

    @class_method
    def has_key(cls, name: str) -> bool:
        return (IDENTITY_KEY if name == "id" else name) in cls._keys

    @class_method
    def key(cls, name: str, annotation: Any = Any, default: Any = None) -> KeyInfo:
        """
        Declare a key after the class has been defined.

        Example:
            >>> User.key("nickname", str, Key(None, max_length=20))
        """
        if cls.__composition__.has_operation(name):
            raise ArgumentError(f"Key '{name}' of {cls.__name__} conflicts with an operation of the same name")
        info = KeyInfo.build(name, annotation, default)
        keys = dict(cls._keys)
        keys[name] = info
        cls._keys = keys
        cls.__schema__ = _build_schema(cls, keys)
        _install_accessor(cls, name)
        return info

    @class_method
    def schema(cls) -> type[BaseModel]:
        """The pydantic model compiled from the keys."""
        return cls.__schema__  # type: ignore[no-any-return]

    @instance_method
    def read_attribute(self, name: str) -> Any:
        if name == "id":
            name = IDENTITY_KEY
        return self._attributes.get(name)

    @instance_method
    def write_attribute(self, name: str, value: Any) -> None:
        if name == "id":
            name = IDENTITY_KEY
        key = type(self)._keys.get(name)
        self._attributes[name] = key.cast(value) if key is not None else value

    @instance_method
    def assign(self, attrs: Optional[dict[str, Any]] = None) -> None:
        """Write each attribute; unknown names are stored as dynamic attributes."""
        for name, value in (attrs or {}).items():
            self.write_attribute(name, value)

    @instance_method
    def replace_attributes(self, attrs: dict[str, Any]) -> None:
        """Replace the whole attribute map (defaults, then ``attrs``)."""
        Keys.initialize(self)
        self.assign(attrs)

    @instance_property
    def attributes(self) -> dict[str, Any]:
        """Copy of the attribute map, with _id when assigned."""
        data = {name: value for name, value in self._attributes.items() if name != IDENTITY_KEY}
        if self._attributes.get(IDENTITY_KEY) is not None:
            data = {IDENTITY_KEY: self._attributes[IDENTITY_KEY], **data}
        return data

    @instance_method
    def to_mongo(self) -> dict[str, Any]:
        """Document to hand to the store."""
        return self.attributes
