"""
Inspect plugin: readable repr for documents.
"""

from typing import Any

from docmachine.plugins.base import Plugin
from docmachine.plugins.hooks import instance_method


class Inspect(Plugin):
    name = "inspect"
    requires = ("keys",)

    @instance_method(name="__repr__")
    def repr_(self) -> str:
        """
        Example:
            >>> User(name="Alice", age=30)
            <User _id: None, age: 30, name: 'Alice'>
        """
        attributes: dict[str, Any] = {"_id": self._attributes.get("_id")}
        for name in sorted(self._attributes):
            if name != "_id":
                attributes[name] = self._attributes[name]
        body = ", ".join(f"{name}: {value!r}" for name, value in attributes.items())
        return f"<{type(self).__name__} {body}>"
