"""
Validations plugin: schema validation and custom validators.

valid() checks the attribute map against the pydantic model compiled from
the keys, then runs every ``@validate`` method. Problems are collected in
``errors`` in the shape of pydantic's ``ValidationError.errors()``.
"""

from typing import Any, Optional

from pydantic import ValidationError

from docmachine.plugins.base import Plugin
from docmachine.plugins.hooks import instance_method, instance_property, marked_functions

BASE = "base"


class Errors(list):
    """
    Validation errors of a document.

    Each entry is a dict with ``loc``, ``msg`` and ``type``, like the
    entries of ``pydantic.ValidationError.errors()``.

    Example:
        >>> user.errors.add("email", "is invalid")
        >>> user.errors.on("email")
        ['is invalid']
        >>> user.errors.full_messages()
        ['email is invalid']
    """

    def add(self, field: Optional[str], message: str, kind: str = "custom") -> None:
        """Add an error; a field of None applies to the whole document."""
        loc = (field,) if field else ()
        self.append({"loc": loc, "msg": message, "type": kind})

    def extend_from(self, error: ValidationError) -> None:
        for entry in error.errors(include_url=False):
            self.append({"loc": tuple(entry["loc"]), "msg": entry["msg"], "type": entry["type"]})

    def on(self, field: str) -> list[str]:
        """Messages for one field."""
        return [entry["msg"] for entry in self if entry["loc"][:1] == (field,)]

    def fields(self) -> set[str]:
        return {str(entry["loc"][0]) if entry["loc"] else BASE for entry in self}

    def full_messages(self) -> list[str]:
        messages = []
        for entry in self:
            if entry["loc"]:
                location = ".".join(str(part) for part in entry["loc"])
                messages.append(f"{location} {entry['msg']}")
            else:
                messages.append(entry["msg"])
        return messages

    def to_dict(self) -> dict[str, list[str]]:
        grouped: dict[str, list[str]] = {}
        for entry in self:
            field = str(entry["loc"][0]) if entry["loc"] else BASE
            grouped.setdefault(field, []).append(entry["msg"])
        return grouped


class Validations(Plugin):
    """
    Validation gate for save().

    Example:
        >>> class User(Document):
        ...     name: str
        ...     age: int = Key(0, ge=0)
        >>> user = User(age=-1)
        >>> user.valid()
        False
        >>> user.errors.full_messages()
        ['name Field required', 'age Input should be greater than or equal to 0']
    """

    name = "validations"
    requires = ("keys", "lifecycle")

    @staticmethod
    def configure(model: Any) -> None:
        model._validators = marked_functions(model, "_is_validator")

    @staticmethod
    def initialize(instance: Any) -> None:
        instance._errors = Errors()

    @instance_property
    def errors(self) -> Errors:
        return self._errors

    @instance_method(chain=True)
    def valid(self, call_next) -> bool:
        self._errors.clear()
        self.validate_schema()
        for validator in type(self)._validators:
            validator(self)
        return bool(call_next()) and not self._errors

    @instance_method
    def validate_schema(self) -> None:
        """Check the attribute map against the key schema, adding errors."""
        keys = type(self)._keys
        data = {}
        for name, value in self._attributes.items():
            if name == "_id":
                continue
            # None on an optional key means "not set"
            if value is None and name in keys and not keys[name].required:
                continue
            data[name] = value
        try:
            type(self).schema().model_validate(data)
        except ValidationError as e:
            self._errors.extend_from(e)
