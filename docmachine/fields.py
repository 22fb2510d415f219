"""
Key definitions for docmachine.

Extends Pydantic's field system with document-specific metadata like
indexes and uniqueness. Keys are declared as annotations on a Document
subclass, optionally with a Key(...) default carrying the metadata.
"""

from copy import deepcopy
from dataclasses import dataclass
from functools import cached_property
from typing import Any, Optional, Callable

from pydantic import Field as PydanticField, TypeAdapter, ValidationError
from pydantic.fields import FieldInfo
from pydantic_core import PydanticUndefined


def Key(
    default: Any = PydanticUndefined,
    *,
    # Standard Pydantic validation
    default_factory: Optional[Callable[[], Any]] = None,
    title: Optional[str] = None,
    description: Optional[str] = None,
    examples: Optional[list[Any]] = None,
    gt: Optional[float] = None,
    ge: Optional[float] = None,
    lt: Optional[float] = None,
    le: Optional[float] = None,
    min_length: Optional[int] = None,
    max_length: Optional[int] = None,
    pattern: Optional[str] = None,
    # Document-specific options
    index: bool = False,
    unique: bool = False,
    sparse: bool = False,
    **extra: Any,
) -> Any:
    """
    Define a document key with validation and index metadata.

    Args:
        default: Default value for the key
        default_factory: Factory function for default values
        title: Human-readable title
        description: Key description
        examples: Example values
        gt: Greater than validation
        ge: Greater than or equal validation
        lt: Less than validation
        le: Less than or equal validation
        min_length: Minimum string/list length
        max_length: Maximum string/list length
        pattern: Regex pattern for string validation
        index: Whether to create a store index on first use
        unique: Whether the index enforces unique values
        sparse: Whether the index skips documents without the key
        **extra: Additional Pydantic field arguments

    Returns:
        FieldInfo object with document metadata

    Example:
        >>> class User(Document):
        ...     email: str = Key(unique=True)
        ...     name: str = Key(max_length=100)
        ...     age: int = Key(0, ge=0, le=150)
        ...     tags: list[str] = Key(default_factory=list)
    """
    json_schema_extra = extra.pop("json_schema_extra", {})
    json_schema_extra.update({
        "document": {
            # unique implies an index
            "index": index or unique,
            "unique": unique,
            "sparse": sparse,
        }
    })

    if default_factory is not None:
        extra["default_factory"] = default_factory
    else:
        extra["default"] = default

    return PydanticField(  # type: ignore[call-overload]
        title=title,
        description=description,
        examples=examples,
        gt=gt,
        ge=ge,
        lt=lt,
        le=le,
        min_length=min_length,
        max_length=max_length,
        pattern=pattern,
        json_schema_extra=json_schema_extra,
        **extra,
    )


def get_key_metadata(field_info: FieldInfo) -> dict[str, Any]:
    """
    Extract document metadata from a FieldInfo object.

    Example:
        >>> get_key_metadata(Key(unique=True))["index"]
        True
    """
    extra = getattr(field_info, "json_schema_extra", None)
    if isinstance(extra, dict):
        data = extra.get("document", {})
        if isinstance(data, dict):
            return data
    return {}


@dataclass
class KeyInfo:
    """A declared key: its name, type annotation and field definition."""

    name: str
    annotation: Any
    field_info: FieldInfo

    @classmethod
    def build(cls, name: str, annotation: Any, default: Any = PydanticUndefined) -> "KeyInfo":
        """Build from an annotation and the class-level default, if any."""
        if isinstance(default, FieldInfo):
            field_info = default
        else:
            field_info = PydanticField(default=default)
        return cls(name, annotation, field_info)

    @property
    def required(self) -> bool:
        return self.field_info.is_required()

    @property
    def indexed(self) -> bool:
        return bool(get_key_metadata(self.field_info).get("index"))

    @property
    def unique(self) -> bool:
        return bool(get_key_metadata(self.field_info).get("unique"))

    @property
    def sparse(self) -> bool:
        return bool(get_key_metadata(self.field_info).get("sparse"))

    def default(self) -> Any:
        """Fresh default value for a new document."""
        if self.field_info.default_factory is not None:
            return self.field_info.default_factory()  # type: ignore[call-arg]
        return deepcopy(self.field_info.default)

    @cached_property
    def adapter(self) -> TypeAdapter:
        return TypeAdapter(self.annotation)

    def cast(self, value: Any) -> Any:
        """
        Typecast a value to the key's type.

        Values that cannot be cast are kept as given; valid() reports them.

        Example:
            >>> KeyInfo.build("age", int).cast("42")
            42
        """
        if value is None:
            return None
        try:
            return self.adapter.validate_python(value)
        except ValidationError:
            return value

    def schema_definition(self) -> tuple[Any, FieldInfo]:
        """(annotation, FieldInfo) pair for pydantic.create_model()."""
        return (self.annotation, self.field_info)


class KeyProperty:
    """Descriptor exposing a key as an attribute of the document."""

    def __init__(self, name: str):
        self.name = name

    def __get__(self, instance: Any, owner: type) -> Any:
        if instance is None:
            return self
        return instance.read_attribute(self.name)

    def __set__(self, instance: Any, value: Any) -> None:
        instance.write_attribute(self.name, value)

    def __repr__(self) -> str:
        return f"<KeyProperty {self.name}>"
