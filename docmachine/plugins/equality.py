"""
Equality plugin: documents compare equal by type and identity.
"""

from typing import Any

from docmachine.plugins.base import Plugin
from docmachine.plugins.hooks import instance_method


class Equality(Plugin):
    """
    Identity-based equality.

    Two documents are equal when they are of the same type and have the same
    id. Unsaved documents without an id are only equal to themselves.
    """

    name = "equality"
    requires = ("keys",)

    @instance_method(name="__eq__")
    def eq(self, other: Any) -> bool:
        if self is other:
            return True
        if type(other) is not type(self):
            return NotImplemented
        return self.id is not None and self.id == other.id

    @instance_method(name="__hash__")
    def hash_(self) -> int:
        """
        Hash by type and id.

        The hash follows the id, so it changes when save() assigns one. Do
        not keep unsaved documents in sets or as dict keys across a save.
        """
        if self.id is None:
            return object.__hash__(self)
        return hash((type(self), self.id))
