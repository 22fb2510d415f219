"""
Dirty plugin: tracks which keys changed since the last load or save.
"""

from typing import Any

from docmachine.plugins.base import Plugin
from docmachine.plugins.hooks import class_method, instance_method, instance_property


class Dirty(Plugin):
    """
    Change tracking.

    Wraps write_attribute to remember original values, and clears them
    after load, save and reload.

    Example:
        >>> user = User.find(user_id)
        >>> user.name = "Bob"
        >>> user.changed_fields
        {'name'}
        >>> user.changes
        {'name': ('Alice', 'Bob')}
        >>> user.save()
        >>> user.is_changed
        False
    """

    name = "dirty"
    requires = ("keys", "lifecycle")

    @staticmethod
    def initialize(instance: Any) -> None:
        instance._changed = {}

    @instance_method(chain=True)
    def write_attribute(self, call_next, name: str, value: Any) -> None:
        name = "_id" if name == "id" else name
        had_value = name in self._attributes
        old = self._attributes.get(name)
        call_next(name, value)
        new = self._attributes.get(name)

        if name not in self._changed:
            if not had_value or old != new:
                self._changed[name] = old
        elif self._changed[name] == new:
            # Changed back to the original value
            del self._changed[name]

    @instance_method(chain=True)
    def save(self, call_next, *args: Any, **kwargs: Any) -> bool:
        result = call_next(*args, **kwargs)
        if result:
            self.clear_changes()
        return result

    @instance_method(chain=True)
    def reload(self, call_next) -> Any:
        result = call_next()
        self.clear_changes()
        return result

    @class_method(chain=True)
    def load(cls, call_next, document: dict[str, Any]) -> Any:
        instance = call_next(document)
        instance.clear_changes()
        return instance

    @instance_method
    def clear_changes(self) -> None:
        self._changed = {}

    @instance_property
    def changed_fields(self) -> set[str]:
        return set(self._changed)

    @instance_property
    def is_changed(self) -> bool:
        return bool(self._changed)

    @instance_property
    def changes(self) -> dict[str, tuple[Any, Any]]:
        """Map of changed key -> (original value, current value)."""
        return {name: (old, self._attributes.get(name)) for name, old in self._changed.items()}

    @instance_method
    def attribute_was(self, name: str) -> Any:
        """The value a key had when last loaded or saved."""
        if name in self._changed:
            return self._changed[name]
        return self._attributes.get(name)
